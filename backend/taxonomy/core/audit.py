"""Audit logging utilities."""

from __future__ import annotations

from typing import Any, Optional

from loguru import logger


def log_audit(
    user_code: str,
    entity: str,
    entity_id: Optional[str],
    action: str,
    details: Optional[dict[str, Any]] = None,
    remote_addr: Optional[str] = None,
) -> None:
    logger.bind(
        audit=True,
        user_code=user_code,
        entity=entity,
        entity_id=entity_id,
        action=action,
        details=details,
        remote_addr=remote_addr,
    ).info("audit")
