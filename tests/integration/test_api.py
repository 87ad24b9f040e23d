"""Integration tests for API endpoints."""

from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from asset_audit.dependencies import get_container
from asset_audit.main import app
from asset_audit.schemas import UserProfileUpsert

_STAFF = {"X-User-Id": "u1"}
_OTHER = {"X-User-Id": "u2"}
_ADMIN = {"X-User-Id": "admin"}

_DRAFT = {
    "category": "Civil",
    "element": "Roof",
    "condition": 3,
    "priority": 4,
    "attachment_ref": "local://a.jpg",
}


@pytest_asyncio.fixture
async def client(container):
    """Test client backed by a temporary store with three seeded users."""
    await container.records.upsert_user_profile(UserProfileUpsert(id="u1", email="u1@test.com"))
    await container.records.upsert_user_profile(UserProfileUpsert(id="u2", email="u2@test.com"))
    await container.records.upsert_user_profile(
        UserProfileUpsert(id="admin", email="admin@test.com", role="admin")
    )
    await container.records.upsert_user_profile(
        UserProfileUpsert(id="gone", email="gone@test.com", is_active=False)
    )

    app.dependency_overrides[get_container] = lambda: container
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create(client, headers=_STAFF, **overrides):
    resp = await client.post("/api/assessments", json={**_DRAFT, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_requires_known_active_user(client):
    assert (await client.get("/api/assessments")).status_code == 401
    assert (await client.get("/api/assessments", headers={"X-User-Id": "stranger"})).status_code == 401
    assert (await client.get("/api/assessments", headers={"X-User-Id": "gone"})).status_code == 403


async def test_create_and_fetch(client):
    record = await _create(client)
    assert record["owner_id"] == "u1"
    assert record["id"].endswith("-00001")
    assert "/o/owners%2Fu1%2F" in record["attachment_ref"]

    resp = await client.get(f"/api/assessments/{record['id']}", headers=_STAFF)
    assert resp.status_code == 200
    assert resp.json() == record


async def test_durable_ref_is_served(client):
    record = await _create(client)
    path = record["attachment_ref"].removeprefix("http://testserver")
    resp = await client.get(path)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/jpeg"
    assert resp.content.startswith(b"\xff\xd8\xff")
    assert (await client.get("/v0/b/test-bucket/o/owners%2Fu1%2Fnope.jpg")).status_code == 404
    assert (await client.get("/v0/b/other-bucket/o/owners%2Fu1%2Fnope.jpg")).status_code == 404


async def test_create_validation_errors(client):
    resp = await client.post("/api/assessments", json={**_DRAFT, "element": "Pumps"}, headers=_STAFF)
    assert resp.status_code == 422
    resp = await client.post("/api/assessments", json={**_DRAFT, "condition": 9}, headers=_STAFF)
    assert resp.status_code == 422


async def test_upload_failure_maps_to_502(client):
    resp = await client.post(
        "/api/assessments", json={**_DRAFT, "attachment_ref": "local://missing.jpg"}, headers=_STAFF,
    )
    assert resp.status_code == 502
    assert resp.json()["code"] == "upload_failed"
    assert (await client.get("/api/assessments", headers=_STAFF)).json() == []


async def test_empty_payload_maps_to_422(client, capture_dir):
    (capture_dir / "empty.jpg").write_bytes(b"")
    resp = await client.post(
        "/api/assessments", json={**_DRAFT, "attachment_ref": "local://empty.jpg"}, headers=_STAFF,
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "empty_payload"


async def test_records_are_scoped_to_owner(client):
    record = await _create(client)
    assert (await client.get("/api/assessments", headers=_OTHER)).json() == []
    assert (await client.get(f"/api/assessments/{record['id']}", headers=_OTHER)).status_code == 404
    assert (await client.delete(f"/api/assessments/{record['id']}", headers=_OTHER)).status_code == 404
    assert (await client.get(f"/api/assessments/{record['id']}", headers=_ADMIN)).status_code == 200


async def test_list_all_requires_admin(client):
    await _create(client)
    await _create(client, headers=_OTHER)
    assert (await client.get("/api/assessments/all", headers=_STAFF)).status_code == 403
    resp = await client.get("/api/assessments/all", headers=_ADMIN)
    assert resp.status_code == 200
    assert {r["owner_id"] for r in resp.json()} == {"u1", "u2"}


async def test_patch(client):
    record = await _create(client)
    resp = await client.patch(
        f"/api/assessments/{record['id']}", json={"condition": 1, "notes": "resealed"}, headers=_STAFF,
    )
    assert resp.status_code == 200
    assert resp.json()["condition"] == 1
    assert resp.json()["notes"] == "resealed"

    resp = await client.patch(f"/api/assessments/{record['id']}", json={"owner_id": "u2"}, headers=_STAFF)
    assert resp.status_code == 422
    resp = await client.patch(f"/api/assessments/{record['id']}", json={"category": "Mechanical"}, headers=_STAFF)
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_value"


async def test_unknown_id_is_404(client):
    resp = await client.get("/api/assessments/01012024-00001", headers=_STAFF)
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


async def test_delete_returns_outcome(client):
    record = await _create(client)
    resp = await client.delete(f"/api/assessments/{record['id']}", headers=_STAFF)
    assert resp.status_code == 200
    body = resp.json()
    assert body["metadata_deleted"] is True
    assert body["attachment_deleted"] is True
    assert (await client.get(f"/api/assessments/{record['id']}", headers=_STAFF)).status_code == 404


async def test_clear_my_data(client):
    await _create(client)
    await _create(client)
    other = await _create(client, headers=_OTHER)
    resp = await client.delete("/api/assessments", headers=_STAFF)
    assert resp.status_code == 200
    assert resp.json()["metadata_deleted"] == 2
    assert resp.json()["partial"] is False
    assert [r["id"] for r in (await client.get("/api/assessments", headers=_OTHER)).json()] == [other["id"]]


async def test_admin_system_clear(client):
    await _create(client)
    await _create(client, headers=_OTHER)
    assert (await client.delete("/api/admin/assessments", headers=_STAFF)).status_code == 403
    resp = await client.delete("/api/admin/assessments", headers=_ADMIN)
    assert resp.json()["metadata_deleted"] == 2
    assert (await client.get("/api/assessments/all", headers=_ADMIN)).json() == []


async def test_attachment_check(client):
    resp = await client.post("/api/attachments/check", json={"uri": "local://a.jpg"}, headers=_STAFF)
    assert resp.json() == {"uri": "local://a.jpg", "kind": "local_capture", "reachable": True}
    resp = await client.post("/api/attachments/check", json={"uri": "local://b.jpg"}, headers=_STAFF)
    assert resp.json()["reachable"] is False


async def test_storage_endpoints(client):
    resp = await client.get("/api/storage/me", headers=_OTHER)
    assert resp.status_code == 200
    assert resp.json()["total_documents"] == 1  # the profile itself

    await _create(client)
    me = (await client.get("/api/storage/me", headers=_STAFF)).json()
    assert me["assessment_count"] == 1
    assert me["attachment_count"] == 1
    assert me["formatted_total_size"].endswith(("Bytes", "KB"))

    assert (await client.get("/api/storage/system", headers=_STAFF)).status_code == 403
    system = (await client.get("/api/storage/system", headers=_ADMIN)).json()
    assert system["total_users"] == 4
    assert len(system["user_breakdown"]) == 4


async def test_admin_users_and_sweep(client, container):
    users = (await client.get("/api/admin/users", headers=_ADMIN)).json()
    assert {u["id"] for u in users} == {"u1", "u2", "admin", "gone"}

    resp = await client.put(
        "/api/admin/users", json={"id": "u3", "email": "u3@test.com", "role": "staff"}, headers=_ADMIN,
    )
    assert resp.status_code == 200

    await container.blob_store.put("owners/u3/01012024-00001.jpg", b"x")
    resp = await client.post("/api/admin/sweep", params={"dry_run": True}, headers=_ADMIN)
    assert resp.status_code == 200
    assert resp.json()["scanned"] == 1
    assert resp.json()["dry_run"] is True


async def test_patch_null_required_field_is_422(client):
    record = await _create(client)
    resp = await client.patch(f"/api/assessments/{record['id']}", json={"condition": None}, headers=_STAFF)
    assert resp.status_code == 422
    assert (await client.get(f"/api/assessments/{record['id']}", headers=_STAFF)).json()["condition"] == 3
