"""Pydantic schemas for move and delete proposals."""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from taxonomy.models.node import NodeType
from taxonomy.schemas.common import CamelModel
from taxonomy.schemas.node import NodeOut
from taxonomy.tree.mutations import DropKind
from taxonomy.tree.proposals import ProposalAction, ProposalState


class MoveRequest(CamelModel):
    """Drop of a node relative to ``target_id``; no target means the root area."""

    target_id: Optional[str] = None
    drop_kind: Optional[DropKind] = None
    # Pointer position within the target row, used when drop_kind is omitted.
    offset_y: Optional[float] = Field(default=None, ge=0)
    height: Optional[float] = Field(default=None, gt=0)


class MovePreview(CamelModel):
    node_id: str
    node_name: str
    target_id: Optional[str]
    drop_kind: DropKind
    new_parent_id: Optional[str]
    new_type: NodeType
    description: str
    descendant_count: int
    product_count: int


class DeletePreview(CamelModel):
    node_id: str
    node_name: str
    removed_ids: List[str]
    child_count: int
    product_count: int
    requires_confirmation: bool
    orphaned_product_ids: List[str]


class ProposalOut(CamelModel):
    id: str
    action: ProposalAction
    state: ProposalState
    revision: int
    move: Optional[MovePreview] = None
    delete: Optional[DeletePreview] = None


class ConfirmOut(CamelModel):
    proposal: ProposalOut
    node: Optional[NodeOut] = None
    revision: int
