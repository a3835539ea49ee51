"""Name search over the forest and helpers for the expanded-node view state."""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import AbstractSet, Iterable, Optional, Sequence

from taxonomy.tree.builder import TreeView


class FilterMode(str, Enum):
    # A direct hit keeps its whole subtree; an indirect hit keeps only the
    # paths that lead to hits.
    BRANCH = "branch"
    # Only hits and their ancestors survive.
    PATHS = "paths"


def _prune(views: Sequence[TreeView], needle: str, mode: FilterMode) -> list[TreeView]:
    """Post-order pass with an explicit stack, so depth is unbounded."""

    kept: dict[str, Optional[TreeView]] = {}
    stack: list[tuple[TreeView, bool]] = [(view, False) for view in reversed(views)]
    while stack:
        view, children_done = stack.pop()
        if not children_done:
            stack.append((view, True))
            stack.extend((child, False) for child in reversed(view.children))
            continue
        children = [c for c in (kept.pop(child.id) for child in view.children) if c is not None]
        hit = needle in view.name.lower()
        if hit and mode is FilterMode.BRANCH:
            kept[view.id] = replace(view, children=view.children)
        elif hit or children:
            kept[view.id] = replace(view, children=children)
        else:
            kept[view.id] = None
    return [v for v in (kept.pop(view.id) for view in views) if v is not None]


def filter_tree(
    forest: Sequence[TreeView], query: str, mode: FilterMode = FilterMode.BRANCH
) -> list[TreeView]:
    """Keep nodes whose name contains ``query`` (case-insensitive) and their ancestors.

    A blank query returns the forest as given. Any other query is matched as
    typed, surrounding spaces included.
    """

    if not (query or "").strip():
        return list(forest)
    return _prune(forest, query.lower(), mode)


def collect_ids(forest: Iterable[TreeView]) -> set[str]:
    """Ids of every node present in ``forest``."""

    ids: set[str] = set()
    for root in forest:
        ids.update(view.id for view in root.walk())
    return ids


def ids_to_level(forest: Iterable[TreeView], max_level: int) -> set[str]:
    ids: set[str] = set()
    for root in forest:
        ids.update(view.id for view in root.walk() if view.level <= max_level)
    return ids


def expand_for_filter(expanded: AbstractSet[str], filtered: Iterable[TreeView]) -> frozenset[str]:
    """The expanded set after revealing every node of a filtered forest."""

    return frozenset(expanded) | collect_ids(filtered)
