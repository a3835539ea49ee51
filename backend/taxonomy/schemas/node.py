"""Pydantic schemas for taxonomy nodes."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import Field, field_validator

from taxonomy.models.node import Node, NodeType
from taxonomy.schemas.common import CamelModel


def _normalise_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().upper()


class NodeCreate(CamelModel):
    name: str = Field(..., max_length=255)
    parent_id: Optional[str] = None
    type: Optional[NodeType] = None
    description: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    branch_code: Optional[str] = None
    expected_revision: Optional[int] = None

    @field_validator("branch_code", mode="before")
    @classmethod
    def _normalise_branch_code(cls, value: Optional[str]) -> Optional[str]:
        return _normalise_code(value)


class NodeUpdate(CamelModel):
    expected_revision: Optional[int] = None
    name: Optional[str] = Field(default=None, max_length=255)
    parent_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    branch_code: Optional[str] = None

    @field_validator("branch_code", mode="before")
    @classmethod
    def _normalise_branch_code(cls, value: Optional[str]) -> Optional[str]:
        return _normalise_code(value)


class NodeOut(CamelModel):
    id: str
    name: str
    type: NodeType
    parent_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    branch_code: Optional[str] = None

    @classmethod
    def from_node(cls, node: Node) -> "NodeOut":
        return cls(
            id=node.id,
            name=node.name,
            type=node.type,
            parent_id=node.parent_id,
            description=node.description,
            metadata=node.wire_metadata(),
            branch_code=node.branch_code,
        )


class NodeListOut(CamelModel):
    items: List[NodeOut]
    total: int
    revision: int


class TreeNodeOut(NodeOut):
    level: int
    product_count: int
    children: List["TreeNodeOut"] = Field(default_factory=list)


class TreeOut(CamelModel):
    items: List[TreeNodeOut]
    expand_ids: List[str]
    total_products: int
    revision: int


class PathOut(CamelModel):
    ids: List[str]
    names: List[str]
    branch_codes: List[Optional[str]]
    label: str


class StockCodeOut(CamelModel):
    node_id: str
    stock_code: str


TreeNodeOut.model_rebuild()
