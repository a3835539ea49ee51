"""Derive the rooted forest, depths and product counts from the flat store."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from taxonomy.models.node import Node, NodeType
from taxonomy.models.product import Product
from taxonomy.tree.errors import NodeNotFoundError
from taxonomy.tree.store import NodeStore


@dataclass(slots=True)
class TreeView:
    """A node placed in the forest. ``level`` is 1 for root-level nodes."""

    node: Node
    level: int
    children: list["TreeView"] = field(default_factory=list)
    product_count: int = 0
    descendant_ids: frozenset[str] = frozenset()

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def type(self) -> NodeType:
        return self.node.type

    @property
    def parent_id(self) -> Optional[str]:
        return self.node.parent_id

    def walk(self) -> Iterable["TreeView"]:
        stack = [self]
        while stack:
            view = stack.pop()
            yield view
            stack.extend(reversed(view.children))


def group_children(nodes: Iterable[Node]) -> dict[Optional[str], list[Node]]:
    grouped: dict[Optional[str], list[Node]] = defaultdict(list)
    for node in nodes:
        grouped[node.parent_id].append(node)
    return grouped


def build_forest(nodes: Sequence[Node], products: Sequence[Product] = ()) -> list[TreeView]:
    """Group nodes under their parents starting from the root level.

    Works bottom-up with an explicit stack so arbitrarily deep trees do not
    hit the interpreter recursion limit.
    """

    grouped = group_children(nodes)
    direct_counts = Counter(p.node_id for p in products)

    roots = [TreeView(node=n, level=1) for n in grouped.get(None, [])]
    order: list[TreeView] = []
    stack = list(roots)
    while stack:
        view = stack.pop()
        order.append(view)
        view.children = [
            TreeView(node=child, level=view.level + 1)
            for child in grouped.get(view.id, [])
        ]
        stack.extend(view.children)

    for view in reversed(order):
        ids = {view.id}
        count = direct_counts.get(view.id, 0)
        for child in view.children:
            ids |= child.descendant_ids
            count += child.product_count
        view.descendant_ids = frozenset(ids)
        view.product_count = count
    return roots


def collect_descendant_ids(nodes: Iterable[Node], node_id: str) -> set[str]:
    """The descendant-inclusive id set of ``node_id``."""

    grouped = group_children(nodes)
    found = {node_id}
    stack = [node_id]
    while stack:
        for child in grouped.get(stack.pop(), []):
            if child.id not in found:
                found.add(child.id)
                stack.append(child.id)
    return found


def ancestry(store: NodeStore, node_id: str) -> list[Node]:
    """Nodes from the root down to ``node_id`` (inclusive)."""

    path: list[Node] = []
    seen: set[str] = set()
    current = store.require(node_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        path.append(current)
        current = store.get(current.parent_id)
    path.reverse()
    return path


def depth_of(store: NodeStore, node_id: Optional[str]) -> int:
    """Depth of ``node_id``; ``None`` (the root area) has depth 0."""

    if node_id is None:
        return 0
    return len(ancestry(store, node_id))


def resolve_path(store: NodeStore, node_id: str) -> list[str]:
    return [node.name for node in ancestry(store, node_id)]


def format_path(names: Sequence[str], separator: str = " > ") -> str:
    return separator.join(names)


class TreeBuilder:
    """Lazily rebuilt forest over a store and a product snapshot."""

    def __init__(self, store: NodeStore, products: Sequence[Product] = ()):
        self.store = store
        self.products = products
        self._forest: Optional[list[TreeView]] = None
        self._index: dict[str, TreeView] = {}
        store.subscribe(lambda _revision: self.invalidate())

    def invalidate(self) -> None:
        self._forest = None
        self._index = {}

    def forest(self) -> list[TreeView]:
        if self._forest is None:
            self._forest = build_forest(self.store.all(), self.products)
            self._index = {view.id: view for root in self._forest for view in root.walk()}
        return self._forest

    def find(self, node_id: str) -> TreeView:
        self.forest()
        view = self._index.get(node_id)
        if view is None:
            raise NodeNotFoundError(node_id)
        return view

    def descendant_ids(self, node_id: str) -> frozenset[str]:
        return self.find(node_id).descendant_ids

    def product_count(self, node_id: str) -> int:
        return self.find(node_id).product_count

    def total_products(self) -> int:
        return len(self.products)

    def per_node_counts(self) -> dict[str, int]:
        self.forest()
        return {node_id: view.product_count for node_id, view in self._index.items()}
