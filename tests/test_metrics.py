import pytest


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    res = await client.get("/api/metrics")
    assert res.status_code == 200

    data = res.json()

    # Check structure
    assert data["status"] == "Online"
    assert "cpu" in data
    assert "ram" in data
    assert data["database"] == "Connected"

    # Check data types
    assert isinstance(data["uptime"], int)
    assert isinstance(data["dbLatency"], float)


@pytest.mark.asyncio
async def test_redis_status_is_super_admin_only(client, admin_headers, make_user, headers_for):
    res = await client.get("/api/metrics/redis", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "Disabled"

    visitor = await make_user()
    res = await client.get("/api/metrics/redis", headers=headers_for(visitor))
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_root_and_unknown_route(client):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.json()["success"] is True

    res = await client.get("/api/does-not-exist")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Not Found", "statusCode": 404}
