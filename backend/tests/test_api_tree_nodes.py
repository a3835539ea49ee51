"""HTTP-level tests for the taxonomy API against an isolated workspace."""

from __future__ import annotations

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from taxonomy.core.config import settings
from taxonomy.core.deps import get_workspace
from taxonomy.main import app
from taxonomy.tree.mutations import DeletePolicy
from taxonomy.tree.workspace import TaxonomyWorkspace


@pytest.fixture
async def client(workspace: TaxonomyWorkspace):
    app.dependency_overrides[get_workspace] = lambda: workspace
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


async def _create(client: AsyncClient, name: str, parent_id: str | None = None, **extra) -> dict:
    response = await client.post("/api/tree-nodes", json={"name": name, "parentId": parent_id, **extra})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


@pytest.mark.anyio
async def test_healthz(client):
    response = await client.get("/api/healthz")
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


@pytest.mark.anyio
async def test_create_sector_and_category(client):
    sector = await _create(client, "Chemical")
    assert sector["type"] == "sector"
    assert sector["branchCode"] == "CH"
    assert sector["metadata"] == {"colorIndex": 0}
    assert sector["parentId"] is None

    category = await _create(client, "Industrial Grade", sector["id"])
    assert category["type"] == "category"
    assert category["branchCode"] == "IG"
    assert category["metadata"] is None


@pytest.mark.anyio
async def test_create_rejects_bad_input(client):
    response = await client.post("/api/tree-nodes", json={"name": "X", "branchCode": "A-B"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["kind"] == "invalid_branch_code"

    response = await client.post("/api/tree-nodes", json={"name": "  "})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["kind"] == "empty_name"

    response = await client.post("/api/tree-nodes", json={"name": "X", "parentId": "missing"})
    assert response.status_code == status.HTTP_404_NOT_FOUND

    await _create(client, "Chemical", branchCode="chem")
    response = await client.post("/api/tree-nodes", json={"name": "Other", "branchCode": "CHEM"})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "duplicate_branch_code"


@pytest.mark.anyio
async def test_tree_filter_returns_expand_ids(client, sample):
    response = await client.get("/api/tree-nodes/tree", params={"q": "beta"})
    body = response.json()
    assert [item["name"] for item in body["items"]] == ["Root"]
    alpha = body["items"][0]["children"][0]
    assert [child["name"] for child in alpha["children"]] == ["Beta"]
    assert alpha["level"] == 2
    assert set(body["expandIds"]) == {sample["Root"], sample["Alpha"], sample["Beta"]}

    response = await client.get("/api/tree-nodes/tree")
    body = response.json()
    assert [item["name"] for item in body["items"]] == ["Root", "Other"]
    assert body["expandIds"] == []


@pytest.mark.anyio
async def test_path_and_stock_code(client, sample):
    response = await client.get(f"/api/tree-nodes/{sample['Beta']}/path")
    body = response.json()
    assert body["label"] == "Root > Alpha > Beta"
    assert body["branchCodes"] == ["RT", "LP", "BT"]

    response = await client.get(
        f"/api/tree-nodes/{sample['Beta']}/stock-code", params={"product_number": 7}
    )
    assert response.json()["stockCode"] == "P.RT.LP.BT.0007"


@pytest.mark.anyio
async def test_move_proposal_confirm_flow(client, workspace, sample):
    response = await client.post(
        f"/api/tree-nodes/{sample['Gamma']}/move-proposal",
        json={"targetId": sample["Other"], "dropKind": "inside"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    proposal = response.json()
    assert proposal["state"] == "proposed"
    assert proposal["move"]["description"] == 'Move "Gamma" inside "Other" as Category'
    assert workspace.get(sample["Gamma"]).parent_id == sample["Alpha"]

    current = await client.get("/api/proposals/current")
    assert current.json()["id"] == proposal["id"]

    response = await client.post(f"/api/proposals/{proposal['id']}/confirm")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["proposal"]["state"] == "applied"
    assert body["node"]["parentId"] == sample["Other"]
    assert body["node"]["type"] == "category"

    response = await client.get("/api/proposals/current")
    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.anyio
async def test_move_proposal_uses_pointer_position(client, sample):
    response = await client.post(
        f"/api/tree-nodes/{sample['Gamma']}/move-proposal",
        json={"targetId": sample["Other"], "offsetY": 2, "height": 40},
    )
    assert response.json()["move"]["dropKind"] == "before"
    assert response.json()["move"]["newType"] == "sector"

    response = await client.post(
        f"/api/tree-nodes/{sample['Gamma']}/move-proposal",
        json={"targetId": sample["Other"]},
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.anyio
async def test_cyclic_move_proposal_is_rejected(client, sample):
    response = await client.post(
        f"/api/tree-nodes/{sample['Root']}/move-proposal",
        json={"targetId": sample["Beta"], "dropKind": "inside"},
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "cyclic_move"


@pytest.mark.anyio
async def test_delete_proposal_then_cancel_and_confirm(client, workspace, sample):
    response = await client.post(f"/api/tree-nodes/{sample['Alpha']}/delete-proposal")
    proposal = response.json()
    assert proposal["delete"]["requiresConfirmation"] is True
    assert proposal["delete"]["childCount"] == 2

    response = await client.post(f"/api/proposals/{proposal['id']}/cancel")
    assert response.json()["state"] == "cancelled"
    response = await client.post(f"/api/proposals/{proposal['id']}/confirm")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["kind"] == "no_pending_proposal"

    proposal = (await client.post(f"/api/tree-nodes/{sample['Alpha']}/delete-proposal")).json()
    response = await client.post(f"/api/proposals/{proposal['id']}/confirm")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["node"] is None
    assert {n.name for n in workspace.nodes()} == {"Root", "Other"}


@pytest.mark.anyio
async def test_patch_and_delete_honour_expected_revision(client, workspace, sample):
    stale = workspace.revision - 1
    response = await client.patch(
        f"/api/tree-nodes/{sample['Alpha']}", json={"name": "Renamed", "expectedRevision": stale}
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert "updated" in response.json()["detail"].lower()

    response = await client.patch(
        f"/api/tree-nodes/{sample['Alpha']}",
        json={"name": "Renamed", "expectedRevision": workspace.revision},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Renamed"

    response = await client.delete(
        f"/api/tree-nodes/{sample['Gamma']}", params={"expected_revision": stale}
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    response = await client.delete(f"/api/tree-nodes/{sample['Gamma']}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert sample["Gamma"] not in workspace.store


@pytest.mark.anyio
async def test_patch_parent_null_moves_to_root(client, workspace, sample):
    response = await client.patch(f"/api/tree-nodes/{sample['Beta']}", json={"parentId": None})
    body = response.json()
    assert body["parentId"] is None
    assert body["type"] == "sector"
    assert body["metadata"]["colorIndex"] == 2


@pytest.mark.anyio
async def test_unknown_node_is_404(client):
    response = await client.get("/api/tree-nodes/missing")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["kind"] == "not_found"


@pytest.mark.anyio
async def test_branch_code_suggest_and_validate(client, sample):
    response = await client.post("/api/branch-codes/suggest", json={"name": "Alpha"})
    assert response.json() == {"code": "LP1"}

    response = await client.post("/api/branch-codes/validate", json={"code": "LP"})
    assert response.json()["valid"] is False
    assert response.json()["kind"] == "duplicate_branch_code"

    response = await client.post(
        "/api/branch-codes/validate", json={"code": "LP", "nodeId": sample["Alpha"]}
    )
    assert response.json()["valid"] is True


@pytest.mark.anyio
async def test_seed_products_and_counts(client, workspace):
    response = await client.post("/api/seed")
    assert response.json()["nodes"] == 9
    response = await client.post("/api/seed")
    assert response.json()["message"] == "Taxonomy already seeded"

    counts = (await client.get("/api/counts")).json()
    assert counts["total"] == 3

    chemical = next(n for n in workspace.nodes() if n.name == "Chemical")
    response = await client.post(
        "/api/products", json={"name": "Solvent", "nodeId": chemical.id, "id": "PRD-1"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    response = await client.post(
        "/api/products", json={"name": "Solvent", "nodeId": chemical.id, "id": "PRD-1"}
    )
    assert response.status_code == status.HTTP_409_CONFLICT

    response = await client.get(
        f"/api/products/by-node/{chemical.id}", params={"include_descendants": True}
    )
    assert response.json()["total"] == 2
    counts = (await client.get("/api/counts")).json()
    assert counts["byNode"][chemical.id] == 2


@pytest.mark.anyio
async def test_exhausted_branch_code_is_409(client, workspace):
    for _ in range(10):
        workspace.engine.add(None, "Copper")
    response = await client.post("/api/tree-nodes", json={"name": "Copper"})
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["kind"] == "allocation_exhausted"
    assert len(workspace.nodes()) == 10


@pytest.mark.anyio
async def test_reject_policy_refuses_delete_with_children():
    strict = TaxonomyWorkspace(delete_policy=DeletePolicy.REJECT)
    root = strict.engine.add(None, "Root")
    child = strict.engine.add(root.id, "Child")
    app.dependency_overrides[get_workspace] = lambda: strict
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            response = await http.delete(f"/api/tree-nodes/{root.id}")
            assert response.status_code == status.HTTP_409_CONFLICT
            assert response.json()["kind"] == "has_children"

            response = await http.post(f"/api/tree-nodes/{root.id}/delete-proposal")
            assert response.status_code == status.HTTP_409_CONFLICT

            response = await http.delete(f"/api/tree-nodes/{child.id}")
            assert response.status_code == status.HTTP_204_NO_CONTENT
    finally:
        app.dependency_overrides.clear()
    assert [n.id for n in strict.nodes()] == [root.id]


@pytest.mark.anyio
async def test_backfill_assigns_codes_and_reports_revision(client, workspace, sample):
    workspace.store.update(sample["Beta"], {"branch_code": None})
    response = await client.post("/api/branch-codes/backfill")
    body = response.json()
    assert body["assigned"] == {sample["Beta"]: "BT"}
    assert body["revision"] == workspace.revision
    assert workspace.get(sample["Beta"]).branch_code == "BT"

    response = await client.post("/api/branch-codes/backfill")
    assert response.json()["assigned"] == {}


@pytest.mark.anyio
async def test_oversized_body_is_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_BODY_BYTES", 16)
    response = await client.post("/api/tree-nodes", json={"name": "A name well past the limit"})
    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert response.json()["kind"] == "payload_too_large"
