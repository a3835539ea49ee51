from fastapi import APIRouter, Depends, Request

from taxonomy.core.audit import log_audit
from taxonomy.core.deps import get_user_code, get_workspace, remote_addr
from taxonomy.schemas.branch_code import (
    BackfillOut,
    BranchCodeSuggestOut,
    BranchCodeSuggestRequest,
    BranchCodeValidateOut,
    BranchCodeValidateRequest,
)
from taxonomy.tree import branch_codes
from taxonomy.tree.workspace import TaxonomyWorkspace

router = APIRouter(prefix="/branch-codes", tags=["branch-codes"])


@router.post("/suggest", response_model=BranchCodeSuggestOut)
async def suggest_branch_code(
    payload: BranchCodeSuggestRequest,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
):
    taken = branch_codes.existing_codes(workspace.nodes())
    return BranchCodeSuggestOut(code=branch_codes.suggest(payload.name, taken))


@router.post("/validate", response_model=BranchCodeValidateOut)
async def validate_branch_code(
    payload: BranchCodeValidateRequest,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
):
    taken = branch_codes.existing_codes(workspace.nodes(), exclude_id=payload.node_id)
    issue = branch_codes.validate(payload.code, taken)
    if issue is None:
        return BranchCodeValidateOut(valid=True)
    return BranchCodeValidateOut(valid=False, kind=issue.kind.value, message=issue.message)


@router.post("/backfill", response_model=BackfillOut)
async def backfill_branch_codes(
    request: Request,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
    user_code: str = Depends(get_user_code),
):
    assigned = dict(workspace.engine.backfill_branch_codes())
    if assigned:
        log_audit(
            user_code,
            "tree_node",
            None,
            "BACKFILL_BRANCH_CODES",
            details=assigned,
            remote_addr=remote_addr(request),
        )
    return BackfillOut(assigned=assigned, revision=workspace.revision)
