"""Validated structural changes to the taxonomy: add, rename, update, move, delete.

Every operation validates completely before the first store write, so a
rejected call leaves the store exactly as it was.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from loguru import logger

from taxonomy.models.node import Node, NodeType, SectorExtras, type_for_depth, type_label_for_depth
from taxonomy.tree import branch_codes
from taxonomy.tree.builder import TreeBuilder, collect_descendant_ids, depth_of
from taxonomy.tree.errors import (
    EmptyNameError,
    ErrorKind,
    HasChildrenError,
    InvalidMoveError,
    ProposalError,
)
from taxonomy.tree.store import NodeStore

DEFAULT_PALETTE_SIZE = 10


class DropKind(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"


class DeletePolicy(str, Enum):
    CASCADE = "cascade"
    REJECT = "reject"


def classify_drop_zone(offset_y: float, height: float) -> DropKind:
    """Top quarter of the target is ``before``, bottom quarter ``after``."""

    if offset_y < height * 0.25:
        return DropKind.BEFORE
    if offset_y > height * 0.75:
        return DropKind.AFTER
    return DropKind.INSIDE


@dataclass(slots=True)
class MovePlan:
    node_id: str
    node_name: str
    target_id: Optional[str]
    drop_kind: DropKind
    new_parent_id: Optional[str]
    new_depth: int
    new_type: NodeType
    description: str
    retyped: dict[str, NodeType] = field(default_factory=dict)
    descendant_count: int = 0
    product_count: int = 0


@dataclass(slots=True)
class DeletePlan:
    node_id: str
    node_name: str
    removed_ids: list[str]
    child_count: int
    product_count: int
    orphaned_product_ids: list[str] = field(default_factory=list)

    @property
    def requires_confirmation(self) -> bool:
        return self.child_count > 0 or self.product_count > 0


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise EmptyNameError()
    return cleaned


def _without_color(metadata: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in metadata.items() if k != "colorIndex"}


class MutationEngine:
    def __init__(
        self,
        store: NodeStore,
        builder: TreeBuilder,
        *,
        palette_size: int = DEFAULT_PALETTE_SIZE,
        delete_policy: DeletePolicy = DeletePolicy.CASCADE,
    ):
        self.store = store
        self.builder = builder
        self.palette_size = palette_size
        self.delete_policy = delete_policy

    # -- add / rename / update -------------------------------------------------

    def next_color_index(self, *, exclude_id: Optional[str] = None) -> int:
        """Lowest palette slot not used by a root-level sector."""

        sectors = [
            n for n in self.store.all()
            if n.parent_id is None and n.type is NodeType.SECTOR and n.id != exclude_id
        ]
        used = {
            s.sector.color_index if s.sector is not None else position % self.palette_size
            for position, s in enumerate(sectors)
        }
        for index in range(self.palette_size):
            if index not in used:
                return index
        return len(sectors) % self.palette_size

    def add(
        self,
        parent_id: Optional[str],
        name: str,
        *,
        node_type: Optional[NodeType] = None,
        branch_code: Optional[str] = None,
        description: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Node:
        cleaned = _clean_name(name)
        if parent_id is not None:
            self.store.require(parent_id)
        depth = depth_of(self.store, parent_id) + 1
        resolved_type = node_type or type_for_depth(depth)

        taken = branch_codes.existing_codes(self.store.all())
        if branch_code:
            branch_codes.ensure_valid(branch_code, taken)
        else:
            branch_code = branch_codes.suggest(cleaned, taken) or None

        # The colour slot lives on SectorExtras, never in the metadata bag.
        extra_metadata = dict(metadata or {})
        requested_color = extra_metadata.pop("colorIndex", None)
        extras = None
        if resolved_type is NodeType.SECTOR:
            if requested_color is None:
                requested_color = self.next_color_index()
            extras = SectorExtras(color_index=int(requested_color))

        node = Node(
            id=f"node-{uuid.uuid4().hex[:12]}",
            name=cleaned,
            type=resolved_type,
            parent_id=parent_id,
            description=description,
            metadata=extra_metadata,
            branch_code=branch_code,
            sector=extras,
        )
        self.store.insert(node)
        logger.bind(
            node_id=node.id, parent_id=parent_id, type=node.type.value, branch_code=branch_code
        ).info("node_added")
        return node

    def rename(self, node_id: str, name: str) -> Node:
        cleaned = _clean_name(name)
        self.store.require(node_id)
        node = self.store.update(node_id, {"name": cleaned})
        logger.bind(node_id=node_id).info("node_renamed")
        return node

    def update(self, node_id: str, partial: dict[str, Any]) -> Node:
        """Apply a partial update; ``parent_id`` is routed through Move.

        Supported keys: ``name``, ``description``, ``metadata``,
        ``branch_code`` (empty means re-suggest) and ``parent_id``.
        """

        node = self.store.require(node_id)
        changes: dict[str, Any] = {}
        if "name" in partial:
            changes["name"] = _clean_name(partial["name"])
        if "description" in partial:
            changes["description"] = partial["description"]
        if "metadata" in partial:
            metadata = dict(partial["metadata"] or {})
            color_index = metadata.pop("colorIndex", None)
            changes["metadata"] = metadata
            if color_index is not None and node.type is NodeType.SECTOR:
                changes["sector"] = SectorExtras(color_index=int(color_index))
        if "branch_code" in partial:
            taken = branch_codes.existing_codes(self.store.all(), exclude_id=node_id)
            code = partial["branch_code"]
            if code:
                branch_codes.ensure_valid(code, taken)
            else:
                code = branch_codes.suggest(changes.get("name", node.name), taken) or None
            changes["branch_code"] = code

        plan = None
        if "parent_id" in partial and partial["parent_id"] != node.parent_id:
            plan = self.plan_reparent(node_id, partial["parent_id"])

        if changes:
            self.store.update(node_id, changes)
            logger.bind(node_id=node_id, fields=sorted(changes)).info("node_updated")
        if plan is not None:
            self._write_move(plan)
        return node

    # -- move ------------------------------------------------------------------

    def _resolve_drop(
        self, node: Node, target_id: Optional[str], drop_kind: DropKind
    ) -> tuple[Optional[str], str]:
        if target_id is None:
            return None, "to root level"
        target = self.store.require(target_id)
        if target.id == node.id:
            raise InvalidMoveError(
                ErrorKind.SELF_PARENT, "A node cannot be dropped onto itself", node_id=node.id
            )
        if drop_kind is DropKind.INSIDE:
            return target.id, f'inside "{target.name}"'
        parent = self.store.get(target.parent_id)
        if parent is None:
            return None, "to root level"
        return parent.id, f'under "{parent.name}"'

    def _build_move_plan(
        self,
        node: Node,
        new_parent_id: Optional[str],
        target_id: Optional[str],
        drop_kind: DropKind,
        target_phrase: str,
    ) -> MovePlan:
        if new_parent_id == node.id:
            raise InvalidMoveError(
                ErrorKind.SELF_PARENT, "A node cannot become its own parent", node_id=node.id
            )
        subtree = collect_descendant_ids(self.store.all(), node.id)
        if new_parent_id is not None and new_parent_id in subtree:
            raise InvalidMoveError(
                ErrorKind.CYCLIC_MOVE,
                "A node cannot be moved into its own subtree",
                node_id=node.id,
            )

        old_depth = depth_of(self.store, node.id)
        new_depth = depth_of(self.store, new_parent_id) + 1
        delta = new_depth - old_depth
        retyped = {
            node_id: type_for_depth(depth_of(self.store, node_id) + delta)
            for node_id in subtree
        }
        new_type = type_for_depth(new_depth)
        products = sum(1 for p in self.builder.products if p.node_id in subtree)
        description = (
            f'Move "{node.name}" {target_phrase} as {type_label_for_depth(new_depth)}'
        )
        return MovePlan(
            node_id=node.id,
            node_name=node.name,
            target_id=target_id,
            drop_kind=drop_kind,
            new_parent_id=new_parent_id,
            new_depth=new_depth,
            new_type=new_type,
            description=description,
            retyped=retyped,
            descendant_count=len(subtree) - 1,
            product_count=products,
        )

    def plan_move(self, node_id: str, target_id: Optional[str], drop_kind: DropKind) -> MovePlan:
        """Validate a drop of ``node_id`` relative to ``target_id``.

        ``target_id=None`` is a drop on the root area. Nothing is written.
        """

        node = self.store.require(node_id)
        new_parent_id, phrase = self._resolve_drop(node, target_id, drop_kind)
        return self._build_move_plan(node, new_parent_id, target_id, drop_kind, phrase)

    def plan_reparent(self, node_id: str, new_parent_id: Optional[str]) -> MovePlan:
        """Move ``node_id`` to be the last child of ``new_parent_id``."""

        node = self.store.require(node_id)
        if new_parent_id is None:
            return self._build_move_plan(node, None, None, DropKind.INSIDE, "to root level")
        parent = self.store.require(new_parent_id)
        return self._build_move_plan(
            node, parent.id, parent.id, DropKind.INSIDE, f'inside "{parent.name}"'
        )

    def _replan_move(self, plan: MovePlan) -> MovePlan:
        fresh = self.plan_move(plan.node_id, plan.target_id, plan.drop_kind)
        if fresh.new_parent_id != plan.new_parent_id or fresh.new_depth != plan.new_depth:
            raise ProposalError(
                ErrorKind.STALE_PROPOSAL,
                "The tree changed since this move was proposed; propose it again",
            )
        return fresh

    def apply_move(self, plan: MovePlan) -> Node:
        """Re-validate ``plan`` against the current store, then write it."""

        return self._write_move(self._replan_move(plan))

    def move(self, node_id: str, target_id: Optional[str], drop_kind: DropKind) -> Node:
        return self._write_move(self.plan_move(node_id, target_id, drop_kind))

    def _write_move(self, plan: MovePlan) -> Node:
        node = self.store.require(plan.node_id)
        changes: dict[str, Any] = {"parent_id": plan.new_parent_id, "type": plan.new_type}
        if plan.new_type is NodeType.SECTOR:
            if node.sector is None:
                changes["sector"] = SectorExtras(color_index=self.next_color_index(exclude_id=node.id))
        else:
            changes["sector"] = None
            changes["metadata"] = _without_color(node.metadata)
        self.store.update(node.id, changes)

        for node_id, node_type in plan.retyped.items():
            if node_id == plan.node_id:
                continue
            descendant = self.store.require(node_id)
            self.store.update(
                node_id,
                {"type": node_type, "sector": None, "metadata": _without_color(descendant.metadata)},
            )

        if plan.drop_kind is DropKind.INSIDE or plan.target_id is None:
            self.store.reposition(node.id, None, after=True)
        else:
            self.store.reposition(node.id, plan.target_id, after=plan.drop_kind is DropKind.AFTER)

        logger.bind(
            node_id=node.id,
            parent_id=plan.new_parent_id,
            type=plan.new_type.value,
            retyped=len(plan.retyped),
        ).info("node_moved")
        return node

    # -- delete ----------------------------------------------------------------

    def plan_delete(self, node_id: str) -> DeletePlan:
        node = self.store.require(node_id)
        view = self.builder.find(node_id)
        if self.delete_policy is DeletePolicy.REJECT and view.children:
            raise HasChildrenError(node_id, len(view.children))
        removed = [v.id for v in view.walk()]
        removed_set = set(removed)
        orphaned = [p.id for p in self.builder.products if p.node_id in removed_set]
        return DeletePlan(
            node_id=node.id,
            node_name=node.name,
            removed_ids=removed,
            child_count=len(view.children),
            product_count=view.product_count,
            orphaned_product_ids=orphaned,
        )

    def apply_delete(self, plan: DeletePlan) -> DeletePlan:
        fresh = self.plan_delete(plan.node_id)
        if set(fresh.removed_ids) != set(plan.removed_ids):
            raise ProposalError(
                ErrorKind.STALE_PROPOSAL,
                "The subtree changed since this delete was proposed; propose it again",
            )
        return self._write_delete(fresh)

    def delete(self, node_id: str) -> DeletePlan:
        return self._write_delete(self.plan_delete(node_id))

    def _write_delete(self, plan: DeletePlan) -> DeletePlan:
        for node_id in reversed(plan.removed_ids):
            self.store.remove(node_id)
        logger.bind(
            node_id=plan.node_id,
            removed=len(plan.removed_ids),
            orphaned_products=len(plan.orphaned_product_ids),
        ).info("node_deleted")
        return plan

    # -- branch codes ----------------------------------------------------------

    def backfill_branch_codes(self) -> list[tuple[str, str]]:
        plan = branch_codes.plan_backfill(self.store.all())
        for node_id, code in plan:
            self.store.update(node_id, {"branch_code": code})
        if plan:
            logger.bind(assigned=len(plan)).info("branch_codes_backfilled")
        return plan
