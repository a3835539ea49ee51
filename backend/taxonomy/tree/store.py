"""Flat, id-indexed collection of taxonomy nodes.

The store performs no validation; the mutation engine is responsible for the
tree invariants. Every write bumps ``revision`` so derived views can tell when
they are stale and recompute on next read.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Optional

from taxonomy.models.node import Node
from taxonomy.tree.errors import NodeNotFoundError

Listener = Callable[[int], None]


class NodeStore:
    def __init__(self, nodes: Iterable[Node] = ()):
        self._nodes: dict[str, Node] = {}
        self._listeners: list[Listener] = []
        self.revision = 0
        for node in nodes:
            self._nodes[node.id] = node

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def get(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def require(self, node_id: str) -> Node:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def all(self) -> list[Node]:
        return list(self._nodes.values())

    def insert(self, node: Node) -> None:
        self._nodes[node.id] = node
        self._touch()

    def update(self, node_id: str, partial: dict[str, Any]) -> Node:
        node = self.require(node_id)
        for key, value in partial.items():
            if not hasattr(node, key):
                raise AttributeError(f"Node has no field {key!r}")
            setattr(node, key, value)
        self._touch()
        return node

    def remove(self, node_id: str) -> None:
        if self._nodes.pop(node_id, None) is not None:
            self._touch()

    def reposition(self, node_id: str, anchor_id: Optional[str], *, after: bool) -> None:
        """Move ``node_id`` next to ``anchor_id`` in iteration order.

        Sibling order is derived from iteration order, so this is how
        before/after drops are realised. With no anchor the node goes last.
        """

        node = self.require(node_id)
        items = [(k, v) for k, v in self._nodes.items() if k != node_id]
        if anchor_id is None or anchor_id == node_id or anchor_id not in self._nodes:
            items.append((node_id, node))
        else:
            index = next(i for i, (k, _) in enumerate(items) if k == anchor_id)
            items.insert(index + 1 if after else index, (node_id, node))
        self._nodes = dict(items)
        self._touch()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _touch(self) -> None:
        self.revision += 1
        for listener in self._listeners:
            listener(self.revision)
