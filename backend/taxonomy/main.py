"""Application entry point for the catalog taxonomy API service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from loguru import logger

from taxonomy.api.routes.branch_codes import router as branch_codes_router
from taxonomy.api.routes.products import router as products_router
from taxonomy.api.routes.proposals import router as proposals_router
from taxonomy.api.routes.seed import router as seed_router
from taxonomy.api.routes.tree_nodes import router as tree_nodes_router
from taxonomy.core.config import settings
from taxonomy.core.deps import get_workspace
from taxonomy.core.errors import init_error_handlers
from taxonomy.core.logging import setup_logging
from taxonomy.core.middleware import BodySizeLimitMiddleware, RequestContextLogMiddleware

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SEED_SAMPLE_TREE:
        get_workspace().seed_sample()
    logger.bind(env=settings.ENV, delete_policy=settings.DELETE_POLICY).info("taxonomy_api_started")
    yield


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)

init_error_handlers(app)

app.add_middleware(RequestContextLogMiddleware)


def _cors_origins() -> list[str]:
    if settings.ENV == "prod":
        if not settings.CORS_ALLOWED_ORIGINS:
            raise RuntimeError("CORS_ALLOWED_ORIGINS must be configured for prod")
        return settings.CORS_ALLOWED_ORIGINS
    return settings.CORS_ALLOWED_ORIGINS or ["http://localhost:5173"]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "X-Request-ID",
        "X-User-Code",
    ],
)

app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.get("/api/healthz", tags=["system"], summary="Liveness probe")
def healthz() -> dict[str, str]:
    """Simple liveness probe that load balancers and monitors can call."""

    return {"status": "ok"}


app.include_router(tree_nodes_router, prefix="/api")
app.include_router(proposals_router, prefix="/api")
app.include_router(branch_codes_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(seed_router, prefix="/api")
