"""Two-phase move and delete: propose, inspect, then confirm or cancel."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from taxonomy.core.audit import log_audit
from taxonomy.core.deps import get_user_code, get_workspace, remote_addr
from taxonomy.models.node import Node
from taxonomy.schemas.node import NodeOut
from taxonomy.schemas.proposal import (
    ConfirmOut,
    DeletePreview,
    MovePreview,
    MoveRequest,
    ProposalOut,
)
from taxonomy.tree.mutations import DeletePlan, DropKind, MovePlan, classify_drop_zone
from taxonomy.tree.proposals import Proposal
from taxonomy.tree.workspace import TaxonomyWorkspace

router = APIRouter(tags=["proposals"])


def _proposal_out(proposal: Proposal) -> ProposalOut:
    plan = proposal.plan
    out = ProposalOut(
        id=proposal.id,
        action=proposal.action,
        state=proposal.state,
        revision=proposal.revision,
    )
    if isinstance(plan, MovePlan):
        out.move = MovePreview(
            node_id=plan.node_id,
            node_name=plan.node_name,
            target_id=plan.target_id,
            drop_kind=plan.drop_kind,
            new_parent_id=plan.new_parent_id,
            new_type=plan.new_type,
            description=plan.description,
            descendant_count=plan.descendant_count,
            product_count=plan.product_count,
        )
    elif isinstance(plan, DeletePlan):
        out.delete = DeletePreview(
            node_id=plan.node_id,
            node_name=plan.node_name,
            removed_ids=plan.removed_ids,
            child_count=plan.child_count,
            product_count=plan.product_count,
            requires_confirmation=plan.requires_confirmation,
            orphaned_product_ids=plan.orphaned_product_ids,
        )
    return out


@router.post(
    "/tree-nodes/{node_id}/move-proposal",
    response_model=ProposalOut,
    status_code=status.HTTP_201_CREATED,
)
async def propose_move(
    node_id: str,
    payload: MoveRequest,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
):
    drop_kind = payload.drop_kind
    if drop_kind is None and payload.target_id is not None:
        if payload.offset_y is None or payload.height is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="dropKind or offsetY and height are required",
            )
        drop_kind = classify_drop_zone(payload.offset_y, payload.height)
    proposal = workspace.propose_move(node_id, payload.target_id, drop_kind or DropKind.AFTER)
    return _proposal_out(proposal)


@router.post(
    "/tree-nodes/{node_id}/delete-proposal",
    response_model=ProposalOut,
    status_code=status.HTTP_201_CREATED,
)
async def propose_delete(node_id: str, workspace: TaxonomyWorkspace = Depends(get_workspace)):
    return _proposal_out(workspace.propose_delete(node_id))


@router.get("/proposals/current", response_model=ProposalOut)
async def current_proposal(workspace: TaxonomyWorkspace = Depends(get_workspace)):
    pending = workspace.proposals.pending
    if pending is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No pending proposal")
    return _proposal_out(pending)


@router.post("/proposals/{proposal_id}/confirm", response_model=ConfirmOut)
async def confirm_proposal(
    proposal_id: str,
    request: Request,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
    user_code: str = Depends(get_user_code),
):
    pending = workspace.proposals.pending
    result = workspace.confirm(proposal_id)
    proposal_out = _proposal_out(pending)
    node_out = NodeOut.from_node(result) if isinstance(result, Node) else None
    log_audit(
        user_code,
        "tree_node",
        proposal_out.move.node_id if proposal_out.move else proposal_out.delete.node_id,
        proposal_out.action.value.upper(),
        details=proposal_out.model_dump(mode="json", exclude={"state"}),
        remote_addr=remote_addr(request),
    )
    return ConfirmOut(proposal=proposal_out, node=node_out, revision=workspace.revision)


@router.post("/proposals/{proposal_id}/cancel", response_model=ProposalOut)
async def cancel_proposal(proposal_id: str, workspace: TaxonomyWorkspace = Depends(get_workspace)):
    return _proposal_out(workspace.cancel(proposal_id))
