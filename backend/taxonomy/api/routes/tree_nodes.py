from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status

from taxonomy.core.audit import log_audit
from taxonomy.core.deps import get_user_code, get_workspace, remote_addr
from taxonomy.core.optimistic_lock import _ensure_expected_revision
from taxonomy.schemas.node import (
    NodeCreate,
    NodeListOut,
    NodeOut,
    NodeUpdate,
    PathOut,
    StockCodeOut,
    TreeNodeOut,
    TreeOut,
)
from taxonomy.tree.builder import TreeView, format_path
from taxonomy.tree.query import FilterMode
from taxonomy.tree.workspace import TaxonomyWorkspace

router = APIRouter(prefix="/tree-nodes", tags=["tree-nodes"])

_UPDATE_FIELDS = {"name", "parent_id", "description", "metadata", "branch_code"}


def _tree_out(root: TreeView) -> TreeNodeOut:
    # Reversed preorder visits every child before its parent.
    built: dict[str, TreeNodeOut] = {}
    for view in reversed(list(root.walk())):
        built[view.id] = TreeNodeOut(
            **NodeOut.from_node(view.node).model_dump(),
            level=view.level,
            product_count=view.product_count,
            children=[built.pop(child.id) for child in view.children],
        )
    return built[root.id]


@router.get("", response_model=NodeListOut)
async def list_nodes(workspace: TaxonomyWorkspace = Depends(get_workspace)):
    items = [NodeOut.from_node(n) for n in workspace.nodes()]
    return NodeListOut(items=items, total=len(items), revision=workspace.revision)


@router.get("/tree", response_model=TreeOut)
async def get_tree(
    q: Optional[str] = None,
    mode: FilterMode = FilterMode.BRANCH,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
):
    forest = workspace.forest(q or "", mode)
    expand_ids: List[str] = sorted(workspace.expand_ids(forest)) if (q or "").strip() else []
    return TreeOut(
        items=[_tree_out(view) for view in forest],
        expand_ids=expand_ids,
        total_products=workspace.builder.total_products(),
        revision=workspace.revision,
    )


@router.get("/{node_id}", response_model=NodeOut)
async def get_node(node_id: str, workspace: TaxonomyWorkspace = Depends(get_workspace)):
    return NodeOut.from_node(workspace.get(node_id))


@router.get("/{node_id}/path", response_model=PathOut)
async def get_node_path(node_id: str, workspace: TaxonomyWorkspace = Depends(get_workspace)):
    path = workspace.path(node_id)
    names = [n.name for n in path]
    return PathOut(
        ids=[n.id for n in path],
        names=names,
        branch_codes=[n.branch_code for n in path],
        label=format_path(names),
    )


@router.get("/{node_id}/stock-code", response_model=StockCodeOut)
async def preview_stock_code(
    node_id: str,
    color_code: Optional[str] = None,
    product_number: Optional[int] = None,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
):
    code = workspace.stock_code(node_id, color_code=color_code, product_number=product_number)
    return StockCodeOut(node_id=node_id, stock_code=code)


@router.post("", response_model=NodeOut, status_code=status.HTTP_201_CREATED)
async def create_node(
    payload: NodeCreate,
    request: Request,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
    user_code: str = Depends(get_user_code),
):
    _ensure_expected_revision(workspace.revision, payload.expected_revision)
    node = workspace.engine.add(
        payload.parent_id,
        payload.name,
        node_type=payload.type,
        branch_code=payload.branch_code,
        description=payload.description,
        metadata=payload.metadata,
    )
    log_audit(
        user_code,
        "tree_node",
        node.id,
        "CREATE",
        details=payload.model_dump(exclude_unset=True, mode="json"),
        remote_addr=remote_addr(request),
    )
    return NodeOut.from_node(node)


@router.patch("/{node_id}", response_model=NodeOut)
async def update_node(
    node_id: str,
    payload: NodeUpdate,
    request: Request,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
    user_code: str = Depends(get_user_code),
):
    _ensure_expected_revision(workspace.revision, payload.expected_revision)
    data = payload.model_dump(exclude_unset=True)
    data.pop("expected_revision", None)
    partial = {k: v for k, v in data.items() if k in _UPDATE_FIELDS}
    if set(partial) == {"name"}:
        node = workspace.engine.rename(node_id, partial["name"])
    else:
        node = workspace.engine.update(node_id, partial)
    if partial:
        log_audit(
            user_code,
            "tree_node",
            node_id,
            "UPDATE",
            details=partial,
            remote_addr=remote_addr(request),
        )
    return NodeOut.from_node(node)


@router.delete("/{node_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_node(
    node_id: str,
    request: Request,
    expected_revision: Optional[int] = None,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
    user_code: str = Depends(get_user_code),
):
    _ensure_expected_revision(workspace.revision, expected_revision)
    plan = workspace.delete(node_id)
    log_audit(
        user_code,
        "tree_node",
        node_id,
        "DELETE",
        details={"removed": plan.removed_ids, "orphaned_products": plan.orphaned_product_ids},
        remote_addr=remote_addr(request),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
