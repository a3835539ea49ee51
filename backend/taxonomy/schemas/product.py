from typing import Dict, List, Optional

from pydantic import Field

from taxonomy.schemas.common import CamelModel


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    node_id: str
    id: Optional[str] = Field(default=None, max_length=100)


class ProductOut(CamelModel):
    id: str
    name: str
    node_id: str


class ProductListOut(CamelModel):
    items: List[ProductOut]
    total: int


class CountsOut(CamelModel):
    total: int
    by_node: Dict[str, int]
