from fastapi import APIRouter, Depends

from taxonomy.core.deps import get_workspace
from taxonomy.tree.workspace import TaxonomyWorkspace

router = APIRouter(tags=["seed"])


@router.post("/seed")
async def seed(workspace: TaxonomyWorkspace = Depends(get_workspace)):
    if not workspace.seed_sample():
        return {"message": "Taxonomy already seeded"}
    return {"message": "Sample taxonomy loaded", "nodes": len(workspace.nodes())}
