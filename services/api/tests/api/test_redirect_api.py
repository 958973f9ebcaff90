"""API tests for GET /{short_code}."""

from datetime import timedelta

from freezegun import freeze_time


async def create(client, url="https://example.com/target", **extra):
    response = await client.post("/shorten", json={"url": url, **extra})
    assert response.status_code == 201
    return response.json()["shortCode"]


async def test_redirect_returns_301(client):
    code = await create(client)

    response = await client.get(f"/{code}")

    assert response.status_code == 301
    assert response.headers["location"] == "https://example.com/target"


async def test_redirect_counts_clicks(client):
    code = await create(client)

    for _ in range(3):
        await client.get(f"/{code}")

    stats = (await client.get(f"/api/stats/{code}")).json()
    assert stats["clicks"] == 3
    assert stats["lastAccessed"] is not None


async def test_redirect_unknown_code(client):
    response = await client.get("/nope1")

    assert response.status_code == 404
    assert response.json() == {"error": "Short URL not found", "shortCode": "nope1"}


async def test_redirect_malformed_code(client):
    response = await client.get("/bad.code")

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


async def test_redirect_expired_code(client):
    with freeze_time("2026-01-01 12:00:00", real_asyncio=True) as frozen:
        code = await create(client, validity=1)
        frozen.tick(timedelta(minutes=2))

        response = await client.get(f"/{code}")

    assert response.status_code == 410
    data = response.json()
    assert data["error"] == "Short URL has expired"
    assert data["shortCode"] == code
    assert data["expiredAt"].startswith("2026-01-01T12:01:00")

    stats = (await client.get(f"/api/stats/{code}")).json()
    assert stats["clicks"] == 0
    assert stats["isExpired"] is True


async def test_redirect_inactive_code(client):
    code = await create(client)
    await client.patch(f"/api/urls/{code}/status", json={"isActive": False})

    response = await client.get(f"/{code}")

    assert response.status_code == 404
    stats = (await client.get(f"/api/stats/{code}")).json()
    assert stats["isActive"] is False
    assert stats["clicks"] == 0


async def test_redirect_after_delete(client):
    code = await create(client)
    await client.delete(f"/api/urls/{code}")

    response = await client.get(f"/{code}")

    assert response.status_code == 404


async def test_security_headers(client):
    code = await create(client)

    response = await client.get(f"/{code}")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
    assert "X-Request-ID" in response.headers


async def test_request_id_is_echoed(client):
    response = await client.get("/api/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-123"


async def test_fixed_routes_win_over_redirect(client):
    assert (await client.get("/api/health")).json() == {"status": "healthy"}
    assert (await client.get("/metrics")).status_code == 200

    root = await client.get("/")
    assert root.status_code == 200
    assert "POST /shorten" in root.json()["endpoints"]
