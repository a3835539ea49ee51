from functools import lru_cache

from fastapi import Request

from taxonomy.core.config import settings
from taxonomy.tree.mutations import DeletePolicy
from taxonomy.tree.workspace import TaxonomyWorkspace


@lru_cache(maxsize=1)
def get_workspace() -> TaxonomyWorkspace:
    """The single in-memory taxonomy session served by this process."""

    return TaxonomyWorkspace(
        palette_size=settings.SECTOR_PALETTE_SIZE,
        delete_policy=DeletePolicy(settings.DELETE_POLICY),
    )


def get_user_code(request: Request) -> str:
    return getattr(request.state, "user_code", None) or "-"


def remote_addr(request: Request) -> str | None:
    return request.client.host if request.client else None
