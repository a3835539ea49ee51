"""ASGI middleware: request context for taxonomy logs and the body size cap."""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from taxonomy.core.config import settings
from taxonomy.core.logging import request_id_ctx_var, user_code_ctx_var

WRITE_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})


class RequestContextLogMiddleware(BaseHTTPMiddleware):
    """Tag every log line of a request with its id and acting user.

    The acting user comes from ``X-User-Code``; audit records read it back
    from ``request.state``. The access record flags tree writes so they can be
    told apart from reads without parsing paths.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        user_code = request.headers.get("X-User-Code") or "-"
        request.state.request_id = request_id
        request.state.user_code = user_code
        tokens = (request_id_ctx_var.set(request_id), user_code_ctx_var.set(user_code))
        started = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            logger.bind(
                method=request.method,
                path=request.url.path,
                write=request.method in WRITE_METHODS,
                status=response.status_code if response is not None else 500,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            ).info("taxonomy_request")
            if response is not None:
                response.headers.setdefault("X-Request-ID", request_id)
            request_id_ctx_var.reset(tokens[0])
            user_code_ctx_var.reset(tokens[1])


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuse bodies declared larger than ``MAX_BODY_BYTES``.

    The refusal uses the same ``{"detail", "kind"}`` shape as engine errors.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > settings.MAX_BODY_BYTES:
            logger.bind(declared=int(declared), limit=settings.MAX_BODY_BYTES).warning(
                "request_body_too_large"
            )
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={
                    "detail": f"Request body exceeds {settings.MAX_BODY_BYTES} bytes",
                    "kind": "payload_too_large",
                },
            )
        return await call_next(request)
