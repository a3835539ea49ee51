"""Translate taxonomy engine errors into HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from taxonomy.tree.errors import ErrorKind, TaxonomyError

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NO_PENDING_PROPOSAL: status.HTTP_404_NOT_FOUND,
    ErrorKind.SELF_PARENT: status.HTTP_409_CONFLICT,
    ErrorKind.CYCLIC_MOVE: status.HTTP_409_CONFLICT,
    ErrorKind.DUPLICATE_BRANCH_CODE: status.HTTP_409_CONFLICT,
    ErrorKind.HAS_CHILDREN: status.HTTP_409_CONFLICT,
    ErrorKind.STALE_PROPOSAL: status.HTTP_409_CONFLICT,
    ErrorKind.ALLOCATION_EXHAUSTED: status.HTTP_409_CONFLICT,
}


def status_for(exc: TaxonomyError) -> int:
    return STATUS_BY_KIND.get(exc.kind, status.HTTP_422_UNPROCESSABLE_ENTITY)


def init_error_handlers(app: FastAPI) -> None:
    """Attach the taxonomy error handler to the FastAPI app."""

    async def taxonomy_error_handler(request: Request, exc: TaxonomyError):
        code = status_for(exc)
        logger.bind(kind=exc.kind.value, status=code, path=str(request.url.path)).warning(
            "taxonomy_rejected"
        )
        return JSONResponse(
            status_code=code,
            content={"detail": exc.message, "kind": exc.kind.value},
        )

    app.add_exception_handler(TaxonomyError, taxonomy_error_handler)
