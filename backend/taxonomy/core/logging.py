"""Loguru setup for the taxonomy service."""

from __future__ import annotations

import logging
from contextvars import ContextVar
from sys import stdout
from typing import Any

from loguru import logger

from taxonomy.core.config import settings

request_id_ctx_var: ContextVar[str] = ContextVar("request_id", default="-")
user_code_ctx_var: ContextVar[str] = ContextVar("user_code", default="-")

# Used when LOG_JSON is off; engine events carry their fields in ``extra``.
TEXT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | "
    "{extra[request_id]} {extra[user_code]} | {message} | {extra}"
)


def _patch_record(record: dict[str, Any]) -> None:
    record["extra"].setdefault("request_id", request_id_ctx_var.get())
    record["extra"].setdefault("user_code", user_code_ctx_var.get())


def setup_logging() -> None:
    """Route taxonomy events and access records to a single stdout sink."""

    logging.basicConfig(level=logging.INFO)
    # RequestContextLogMiddleware writes the access record.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logger.remove()
    logger.configure(
        patcher=_patch_record,
        extra={"service": settings.APP_NAME, "env": settings.ENV},
    )
    sink_options: dict[str, Any] = {"serialize": True}
    if not settings.LOG_JSON:
        sink_options = {"format": TEXT_FORMAT, "colorize": False}
    logger.add(
        stdout,
        level=settings.LOG_LEVEL,
        enqueue=True,
        backtrace=False,
        diagnose=False,
        **sink_options,
    )
