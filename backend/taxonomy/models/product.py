from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Product:
    """The slice of a catalog product the taxonomy engine reads."""

    id: str
    name: str
    node_id: str
