"""Helpers for optimistic concurrency control."""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, status


def _ensure_expected_revision(current: int, expected: Optional[int]) -> None:
    """Raise HTTP 409 if the store revision moved past the one the client saw."""

    if expected is None or current == expected:
        return
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Taxonomy has been updated by someone else. Please reload and try again.",
    )
