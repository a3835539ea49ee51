"""Taxonomy node entity and the depth to type mapping."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class NodeType(str, Enum):
    SECTOR = "sector"
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    GROUP = "group"


TYPE_LABELS = {
    NodeType.SECTOR: "Sector",
    NodeType.CATEGORY: "Category",
    NodeType.SUBCATEGORY: "Sub-Category",
    NodeType.GROUP: "Custom Level",
}


def type_for_depth(depth: int) -> NodeType:
    """Map a depth (root-level nodes have depth 1) to its canonical type."""

    if depth <= 1:
        return NodeType.SECTOR
    if depth == 2:
        return NodeType.CATEGORY
    if depth == 3:
        return NodeType.SUBCATEGORY
    return NodeType.GROUP


def type_label_for_depth(depth: int) -> str:
    return TYPE_LABELS[type_for_depth(depth)]


@dataclass(slots=True)
class SectorExtras:
    """Extras carried only by sector-typed nodes."""

    color_index: int


@dataclass(slots=True)
class Node:
    id: str
    name: str
    type: NodeType
    parent_id: Optional[str] = None
    description: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    branch_code: Optional[str] = None
    sector: Optional[SectorExtras] = None

    def wire_metadata(self) -> Optional[dict[str, Any]]:
        """Metadata as stored on the wire, with the sector colour slot folded in."""

        data = dict(self.metadata)
        if self.sector is not None:
            data["colorIndex"] = self.sector.color_index
        return data or None

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "parentId": self.parent_id,
        }
        if self.description is not None:
            payload["description"] = self.description
        metadata = self.wire_metadata()
        if metadata is not None:
            payload["metadata"] = metadata
        if self.branch_code:
            payload["branchCode"] = self.branch_code
        return payload

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> "Node":
        node_type = NodeType(payload["type"])
        metadata = dict(payload.get("metadata") or {})
        color_index = metadata.pop("colorIndex", None)
        sector = None
        if node_type is NodeType.SECTOR and color_index is not None:
            sector = SectorExtras(color_index=int(color_index))
        elif color_index is not None:
            metadata["colorIndex"] = color_index
        return cls(
            id=payload["id"],
            name=payload["name"],
            type=node_type,
            parent_id=payload.get("parentId"),
            description=payload.get("description"),
            metadata=metadata,
            branch_code=payload.get("branchCode") or None,
            sector=sector,
        )
