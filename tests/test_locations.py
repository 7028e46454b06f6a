import pytest

from app.models.user import UserRole


def location_payload(**overrides):
    payload = {
        "name": "Engineering Building",
        "description": "Main engineering teaching building",
        "department": "Computer Science",
        "category": "academic",
        "coordinates": {"latitude": 40.0, "longitude": -74.0},
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_location_as_super_admin(client, admin_headers, super_admin):
    res = await client.post("/api/locations", headers=admin_headers, json=location_payload())
    assert res.status_code == 201

    data = res.json()["data"]
    assert data["name"] == "Engineering Building"
    assert data["coordinates"] == {"latitude": 40.0, "longitude": -74.0}
    assert data["createdBy"]["id"] == str(super_admin.id)
    assert data["isActive"] is True
    assert data["images"] == []


@pytest.mark.asyncio
async def test_invalid_latitude_is_reported_on_the_field(client, admin_headers):
    res = await client.post(
        "/api/locations",
        headers=admin_headers,
        json=location_payload(coordinates={"latitude": 91, "longitude": 0}),
    )
    assert res.status_code == 400

    body = res.json()
    assert body["success"] is False
    error = body["errors"][0]
    assert error["field"] == "coordinates.latitude"
    assert "Latitude" in error["message"]


@pytest.mark.asyncio
async def test_invalid_longitude(client, admin_headers):
    res = await client.post(
        "/api/locations",
        headers=admin_headers,
        json=location_payload(coordinates={"latitude": 0, "longitude": 200}),
    )
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "coordinates.longitude"


@pytest.mark.asyncio
async def test_short_description_and_bad_media(client, admin_headers):
    res = await client.post(
        "/api/locations",
        headers=admin_headers,
        json=location_payload(description="short", audioUrl="notes.txt"),
    )
    assert res.status_code == 400
    messages = {e["field"]: e["message"] for e in res.json()["errors"]}
    assert messages["description"] == "Description must be between 10 and 1000 characters"
    assert messages["audioUrl"] == "Invalid audio file format"


@pytest.mark.asyncio
async def test_duplicate_name_is_conflict(client, admin_headers, make_location):
    await make_location(name="Engineering Building")

    res = await client.post("/api/locations", headers=admin_headers, json=location_payload())
    assert res.status_code == 400
    assert res.json()["errors"] == [{"field": "name", "message": "Location with this name already exists"}]


@pytest.mark.asyncio
async def test_only_super_admin_creates_locations(client, make_user, headers_for):
    cs_admin = await make_user(role=UserRole.DepartmentAdmin)
    res = await client.post("/api/locations", headers=headers_for(cs_admin), json=location_payload())
    assert res.status_code == 403

    res = await client.post("/api/locations", json=location_payload())
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_pagination(client, make_location):
    for i in range(12):
        await make_location(name=f"Hall {i:02d}")

    res = await client.get("/api/locations", params={"page": 2, "limit": 5})
    assert res.status_code == 200

    data = res.json()["data"]
    assert len(data["locations"]) == 5
    assert data["pagination"] == {"page": 2, "limit": 5, "total": 12, "pages": 3}


@pytest.mark.asyncio
async def test_limit_is_capped(client, make_location):
    await make_location()
    res = await client.get("/api/locations", params={"limit": 500})
    assert res.json()["data"]["pagination"]["limit"] == 100

    res = await client.get("/api/locations", params={"page": 0})
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_public_sees_only_active_locations(client, make_location, make_user, headers_for, admin_headers):
    await make_location(name="Open Hall")
    hidden = await make_location(name="Closed Hall", is_active=False)
    visitor = await make_user()

    for headers in ({}, headers_for(visitor)):
        res = await client.get("/api/locations", headers=headers, params={"isActive": "false"})
        assert [loc["name"] for loc in res.json()["data"]["locations"]] == ["Open Hall"]

        res = await client.get(f"/api/locations/{hidden.id}", headers=headers)
        assert res.status_code == 404

    res = await client.get("/api/locations", headers=admin_headers, params={"isActive": "false"})
    assert [loc["name"] for loc in res.json()["data"]["locations"]] == ["Closed Hall"]

    res = await client.get(f"/api/locations/{hidden.id}", headers=admin_headers)
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_search_and_department_filters(client, make_location):
    await make_location(name="Central Library", department="Library", description="Books and quiet study rooms")
    await make_location(name="Robotics Lab", department="Computer Science", description="Robots and sensors lab")

    res = await client.get("/api/locations", params={"search": "QUIET"})
    assert [loc["name"] for loc in res.json()["data"]["locations"]] == ["Central Library"]

    res = await client.get("/api/locations", params={"search": "library"})
    assert [loc["name"] for loc in res.json()["data"]["locations"]] == ["Central Library"]

    res = await client.get("/api/locations", params={"department": "Computer Science"})
    assert [loc["name"] for loc in res.json()["data"]["locations"]] == ["Robotics Lab"]

    res = await client.get("/api/locations", params={"search": "%"})
    assert res.json()["data"]["locations"] == []

    res = await client.get("/api/locations/department/library")
    assert [loc["name"] for loc in res.json()["data"]["locations"]] == ["Central Library"]


@pytest.mark.asyncio
async def test_library_admin_scenario(client, admin_headers, make_location, make_user, headers_for):
    library = await make_location(name="Central Library", department="Library")
    lab = await make_location(name="Robotics Lab", department="Computer Science")

    res = await client.post(
        "/api/users",
        headers=admin_headers,
        json={
            "name": "Library Admin",
            "email": "libadmin@example.com",
            "password": "password123",
            "role": "departmentAdmin",
            "department": "Library",
            "faculty": "Information Services",
            "assignedLocations": [str(library.id)],
        },
    )
    assert res.status_code == 201

    login = await client.post("/api/auth/login", json={"email": "libadmin@example.com", "password": "password123"})
    headers = {"Authorization": f"Bearer {login.json()['data']['token']}"}

    res = await client.put(
        f"/api/locations/{library.id}", headers=headers, json={"description": "Renovated central library building"}
    )
    assert res.status_code == 200
    assert res.json()["data"]["description"] == "Renovated central library building"

    res = await client.put(
        f"/api/locations/{lab.id}", headers=headers, json={"description": "Trying to edit someone else's lab"}
    )
    assert res.status_code == 403
    assert res.json()["message"] == "You can only modify locations assigned to you"


@pytest.mark.asyncio
async def test_department_admin_cannot_change_location_department(client, make_location, make_user, headers_for):
    lab = await make_location(name="Robotics Lab", department="Computer Science")
    cs_admin = await make_user(role=UserRole.DepartmentAdmin, assigned_locations=[lab.id])

    res = await client.put(f"/api/locations/{lab.id}", headers=headers_for(cs_admin), json={"department": "Library"})
    assert res.status_code == 403

    res = await client.put(
        f"/api/locations/{lab.id}",
        headers=headers_for(cs_admin),
        json={"coordinates": {"latitude": 41.5, "longitude": -73.25}},
    )
    assert res.status_code == 200
    assert res.json()["data"]["coordinates"] == {"latitude": 41.5, "longitude": -73.25}
    assert res.json()["data"]["department"] == "Computer Science"


@pytest.mark.asyncio
async def test_delete_location(client, admin_headers, make_location, make_user, headers_for):
    lab = await make_location()
    visitor = await make_user()

    res = await client.delete(f"/api/locations/{lab.id}", headers=headers_for(visitor))
    assert res.status_code == 403

    res = await client.delete(f"/api/locations/{lab.id}", headers=admin_headers)
    assert res.status_code == 200

    res = await client.get(f"/api/locations/{lab.id}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_location_stats(client, make_location):
    await make_location(department="Library")
    await make_location(department="Library")
    await make_location(department="Computer Science")
    await make_location(department="Computer Science", is_active=False)

    res = await client.get("/api/locations/stats")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["totalLocations"] == 3
    assert data["departmentDistribution"] == [
        {"department": "Library", "count": 2},
        {"department": "Computer Science", "count": 1},
    ]


@pytest.mark.asyncio
async def test_created_location_then_unassigned_admin_is_forbidden(
    client, admin_headers, super_admin, make_user, headers_for
):
    res = await client.post(
        "/api/locations",
        headers=admin_headers,
        json=location_payload(name="Library", coordinates={"latitude": 31.5, "longitude": 74.3}),
    )
    assert res.status_code == 201
    created = res.json()["data"]
    assert created["isActive"] is True
    assert created["createdBy"]["id"] == str(super_admin.id)

    unassigned = await make_user(role=UserRole.DepartmentAdmin, assigned_locations=[])
    res = await client.put(
        f"/api/locations/{created['id']}", headers=headers_for(unassigned), json={"name": "Library2"}
    )
    assert res.status_code == 403
