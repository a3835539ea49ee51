from typing import Optional

from pydantic import Field

from taxonomy.schemas.common import CamelModel


class BranchCodeSuggestRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


class BranchCodeSuggestOut(CamelModel):
    code: str


class BranchCodeValidateRequest(CamelModel):
    code: str = ""
    # Node whose current code should not count as taken (editing in place).
    node_id: Optional[str] = None


class BranchCodeValidateOut(CamelModel):
    valid: bool
    kind: Optional[str] = None
    message: Optional[str] = None


class BackfillOut(CamelModel):
    assigned: dict[str, str]
    revision: int
