from fastapi import APIRouter, Depends, HTTPException, Request, status

from taxonomy.core.audit import log_audit
from taxonomy.core.deps import get_user_code, get_workspace, remote_addr
from taxonomy.schemas.product import CountsOut, ProductCreate, ProductListOut, ProductOut
from taxonomy.tree.workspace import TaxonomyWorkspace

router = APIRouter(tags=["products"])


def _product_out(product) -> ProductOut:
    return ProductOut(id=product.id, name=product.name, node_id=product.node_id)


@router.get("/products", response_model=ProductListOut)
async def list_products(workspace: TaxonomyWorkspace = Depends(get_workspace)):
    items = [_product_out(p) for p in workspace.products]
    return ProductListOut(items=items, total=len(items))


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    request: Request,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
    user_code: str = Depends(get_user_code),
):
    if payload.id and any(p.id == payload.id for p in workspace.products):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Product id already exists"
        )
    product = workspace.add_product(payload.name, payload.node_id, payload.id)
    log_audit(
        user_code,
        "product",
        product.id,
        "CREATE",
        details={"name": product.name, "node_id": product.node_id},
        remote_addr=remote_addr(request),
    )
    return _product_out(product)


@router.get("/products/by-node/{node_id}", response_model=ProductListOut)
async def products_by_node(
    node_id: str,
    include_descendants: bool = False,
    workspace: TaxonomyWorkspace = Depends(get_workspace),
):
    items = [
        _product_out(p)
        for p in workspace.products_by_node(node_id, include_descendants=include_descendants)
    ]
    return ProductListOut(items=items, total=len(items))


@router.get("/counts", response_model=CountsOut)
async def product_counts(workspace: TaxonomyWorkspace = Depends(get_workspace)):
    return CountsOut(**workspace.counts())
