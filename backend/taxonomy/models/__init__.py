"""Domain model exports for convenient imports elsewhere in the app."""

from taxonomy.models.node import (
    TYPE_LABELS,
    Node,
    NodeType,
    SectorExtras,
    type_for_depth,
    type_label_for_depth,
)
from taxonomy.models.product import Product

__all__ = [
    "TYPE_LABELS",
    "Node",
    "NodeType",
    "Product",
    "SectorExtras",
    "type_for_depth",
    "type_label_for_depth",
]
