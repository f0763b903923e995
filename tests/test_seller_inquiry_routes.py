import asyncio
import os

from marketplace_api.core.config import settings

FORM = {
    "name": "Ravi Kumar",
    "phone": "9876543210",
    "regNo": "mh12 ab1234",
    "kmDriven": "45000",
    "demand": "350000",
    "type": "car",
}


async def test_submit_returns_created_inquiry(client, container, media):
    response = await client.post(
        "/api/seller-inquiries",
        data=FORM,
        files=[
            ("photo", ("front.jpg", b"front-bytes", "image/jpeg")),
            ("photo", ("back.jpg", b"back-bytes", "image/jpeg")),
            ("rcCard", ("rc.jpg", b"rc-bytes", "image/jpeg")),
        ],
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["enrichmentPending"] is True
    data = body["data"]
    assert data["regNo"] == "MH12AB1234"
    assert data["type"] == "car"
    assert data["kmDriven"] == 45000.0
    assert data["status"] == "new"

    await container.scheduler.drain(timeout=5)

    assert len(media.seen_paths) == 3
    assert all(not os.path.exists(path) for path in media.seen_paths)
    stored = await container.inquiries.get(data["id"])
    assert len(stored.photos) == 2
    assert stored.rc_card
    assert stored.make == "Maruti Suzuki"


async def test_submit_reports_all_invalid_fields(client, inquiry_repository):
    response = await client.post("/api/seller-inquiries", data={"name": "Ravi", "kmDriven": "many"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert [error["field"] for error in body["errors"]] == ["phone", "regNo", "kmDriven", "demand"]
    assert "phone" in body["message"]
    assert inquiry_repository.rows == {}


async def test_submit_rejects_more_than_five_photos(client, inquiry_repository):
    files = [("photo", (f"p{index}.jpg", b"bytes", "image/jpeg")) for index in range(6)]

    response = await client.post("/api/seller-inquiries", data=FORM, files=files)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert inquiry_repository.rows == {}


async def test_concurrent_submissions_ack_before_any_merge(client, container, registry, inquiry_repository):
    registry.gate = asyncio.Event()

    responses = await asyncio.gather(
        *[client.post("/api/seller-inquiries", data=dict(FORM, phone=f"98765{index:05d}")) for index in range(100)]
    )

    assert [response.status_code for response in responses] == [201] * 100
    assert len({response.json()["data"]["id"] for response in responses}) == 100
    assert inquiry_repository.merges == []

    registry.gate.set()
    outcomes = await container.scheduler.drain(timeout=10)

    assert len(outcomes) == 100
    assert len(inquiry_repository.merges) == 100


async def test_admin_routes_require_token(client):
    for method, path in [
        ("GET", "/api/seller-inquiries"),
        ("GET", "/api/seller-inquiries/1"),
        ("PUT", "/api/seller-inquiries/1"),
        ("DELETE", "/api/seller-inquiries/1"),
        ("GET", "/api/seller-inquiries/lookup/MH12AB1234"),
    ]:
        response = await client.request(method, path, json={} if method == "PUT" else None)
        assert response.status_code == 401, path
        assert response.json()["success"] is False


async def test_admin_list_get_update_delete(client, container, auth_headers):
    created = await client.post("/api/seller-inquiries", data=FORM)
    inquiry_id = created.json()["data"]["id"]
    await container.scheduler.drain(timeout=5)

    listing = await client.get("/api/seller-inquiries", headers=auth_headers)
    assert listing.status_code == 200
    assert listing.json()["count"] == 1

    detail = await client.get(f"/api/seller-inquiries/{inquiry_id}", headers=auth_headers)
    assert detail.json()["data"]["make"] == "Maruti Suzuki"

    updated = await client.put(
        f"/api/seller-inquiries/{inquiry_id}",
        json={"status": "contacted", "notes": "called, wants 3.4L"},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["status"] == "contacted"
    assert updated.json()["data"]["make"] == "Maruti Suzuki"

    filtered = await client.get("/api/seller-inquiries", params={"status": "new"}, headers=auth_headers)
    assert filtered.json()["count"] == 0

    deleted = await client.delete(f"/api/seller-inquiries/{inquiry_id}", headers=auth_headers)
    assert deleted.status_code == 200

    missing = await client.get(f"/api/seller-inquiries/{inquiry_id}", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["success"] is False


async def test_update_rejects_unknown_status(client, container, auth_headers):
    created = await client.post("/api/seller-inquiries", data=FORM)
    inquiry_id = created.json()["data"]["id"]

    response = await client.put(
        f"/api/seller-inquiries/{inquiry_id}",
        json={"status": "sold"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "status"


async def test_update_and_delete_missing_inquiry(client, auth_headers):
    updated = await client.put("/api/seller-inquiries/999", json={"status": "rejected"}, headers=auth_headers)
    deleted = await client.delete("/api/seller-inquiries/999", headers=auth_headers)

    assert updated.status_code == 404
    assert deleted.status_code == 404


async def test_public_lookup(client):
    response = await client.get("/api/seller-inquiries/public-lookup/mh12%20ab1234")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["regNo"] == "MH12AB1234"
    assert data["make"] == "Maruti Suzuki"
    assert data["rcOwnerCount"] == "1"


async def test_lookup_miss_and_blank_plate(client, auth_headers):
    miss = await client.get("/api/seller-inquiries/lookup/KA01MJ9999", headers=auth_headers)
    blank = await client.get("/api/seller-inquiries/public-lookup/%20%20")

    assert miss.status_code == 404
    assert blank.status_code == 400


async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["status"] == "healthy"
    assert "X-Request-ID" in response.headers


async def test_submit_rejects_over_long_fields(client, inquiry_repository):
    response = await client.post(
        "/api/seller-inquiries",
        data=dict(FORM, name="R" * 201, regNo="MH12AB1234" * 3),
    )

    assert response.status_code == 400
    assert [error["field"] for error in response.json()["errors"]] == ["name", "regNo"]
    assert inquiry_repository.rows == {}


async def test_submit_rejects_upload_over_size_limit(client, inquiry_repository, media, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    spool_dir = tmp_path / "spool"
    spool_dir.mkdir()
    monkeypatch.setattr(settings, "upload_tmp_dir", str(spool_dir))

    response = await client.post(
        "/api/seller-inquiries",
        data=FORM,
        files=[
            ("photo", ("front.jpg", b"front-bytes", "image/jpeg")),
            ("rcCard", ("rc.jpg", b"rc-bytes", "image/jpeg")),
        ],
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "photo"
    assert inquiry_repository.rows == {}
    assert media.seen_paths == []
    assert os.listdir(spool_dir) == []
