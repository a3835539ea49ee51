"""Typed errors raised by the taxonomy engine.

Every error blocks exactly one operation and leaves the store untouched.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    EMPTY_NAME = "empty_name"
    INVALID_BRANCH_CODE = "invalid_branch_code"
    DUPLICATE_BRANCH_CODE = "duplicate_branch_code"
    SELF_PARENT = "self_parent"
    CYCLIC_MOVE = "cyclic_move"
    NOT_FOUND = "not_found"
    ALLOCATION_EXHAUSTED = "allocation_exhausted"
    HAS_CHILDREN = "has_children"
    STALE_PROPOSAL = "stale_proposal"
    NO_PENDING_PROPOSAL = "no_pending_proposal"


class TaxonomyError(Exception):
    """Base class; ``kind`` identifies the failure for callers."""

    kind: ErrorKind

    def __init__(self, kind: ErrorKind, message: str, *, node_id: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.node_id = node_id


class EmptyNameError(TaxonomyError):
    def __init__(self) -> None:
        super().__init__(ErrorKind.EMPTY_NAME, "Name must not be empty")


class NodeNotFoundError(TaxonomyError):
    def __init__(self, node_id: str) -> None:
        super().__init__(ErrorKind.NOT_FOUND, f"Node {node_id!r} not found", node_id=node_id)


class InvalidBranchCodeError(TaxonomyError):
    """Format violation or, with ``DUPLICATE_BRANCH_CODE``, a uniqueness violation."""

    def __init__(self, kind: ErrorKind, message: str, code: str) -> None:
        super().__init__(kind, message)
        self.code = code


class AllocationExhaustedError(TaxonomyError):
    def __init__(self, base: str) -> None:
        super().__init__(
            ErrorKind.ALLOCATION_EXHAUSTED,
            f"No free branch code left for base {base!r}; enter one manually",
        )
        self.base = base


class InvalidMoveError(TaxonomyError):
    """``SELF_PARENT`` or ``CYCLIC_MOVE``."""


class HasChildrenError(TaxonomyError):
    def __init__(self, node_id: str, child_count: int) -> None:
        super().__init__(
            ErrorKind.HAS_CHILDREN,
            f"Node {node_id!r} has {child_count} child node(s) and cannot be deleted",
            node_id=node_id,
        )


class ProposalError(TaxonomyError):
    """``STALE_PROPOSAL`` or ``NO_PENDING_PROPOSAL``."""
