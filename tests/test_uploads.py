from contextlib import contextmanager
from unittest.mock import AsyncMock, patch

import pytest

from app.core.exceptions import InternalError
from app.models.user import UserRole

BUCKET_URL = "https://storage.example.com/campus-media/locations"


def fake_upload(fail_on=()):
    async def _upload(file, kind):
        if file.filename in fail_on:
            raise InternalError("Failed to upload file to cloud storage.")
        return f"{BUCKET_URL}/{kind}/{file.filename}"
    return AsyncMock(side_effect=_upload)


@contextmanager
def stored(upload):
    with patch("app.services.location_service.ensure_storage_available"), patch(
        "app.services.location_service.upload_media", upload
    ):
        yield upload


@pytest.mark.asyncio
async def test_upload_appends_images_and_replaces_single_media(client, admin_headers, make_location):
    location = await make_location(images=[f"{BUCKET_URL}/images/old.jpg"])

    with stored(fake_upload()) as mocked:
        res = await client.post(
            f"/api/locations/{location.id}/upload",
            headers=admin_headers,
            files=[
                ("images", ("front.jpg", b"jpeg-bytes", "image/jpeg")),
                ("images", ("side.png", b"png-bytes", "image/png")),
                ("audio", ("tour.mp3", b"mp3-bytes", "audio/mpeg")),
            ],
        )

    assert res.status_code == 200
    assert mocked.await_count == 3
    data = res.json()["data"]
    assert data["images"] == [
        f"{BUCKET_URL}/images/old.jpg",
        f"{BUCKET_URL}/images/front.jpg",
        f"{BUCKET_URL}/images/side.png",
    ]
    assert data["audio"] == f"{BUCKET_URL}/audio/tour.mp3"


@pytest.mark.asyncio
async def test_partial_failure_keeps_successful_uploads(client, admin_headers, make_location):
    location = await make_location()

    with stored(fake_upload(fail_on={"broken.jpg"})):
        res = await client.post(
            f"/api/locations/{location.id}/upload",
            headers=admin_headers,
            files=[
                ("images", ("good.jpg", b"jpeg-bytes", "image/jpeg")),
                ("images", ("broken.jpg", b"jpeg-bytes", "image/jpeg")),
            ],
        )

    assert res.status_code == 400
    errors = res.json()["errors"]
    assert len(errors) == 1
    assert errors[0]["field"] == "images"
    assert errors[0]["message"].startswith("broken.jpg")

    res = await client.get(f"/api/locations/{location.id}")
    assert res.json()["data"]["images"] == [f"{BUCKET_URL}/images/good.jpg"]


@pytest.mark.asyncio
async def test_bad_extension_uploads_nothing(client, admin_headers, make_location):
    location = await make_location()

    with stored(fake_upload()) as mocked:
        res = await client.post(
            f"/api/locations/{location.id}/upload",
            headers=admin_headers,
            files=[
                ("images", ("good.jpg", b"jpeg-bytes", "image/jpeg")),
                ("video", ("clip.exe", b"nope", "application/octet-stream")),
            ],
        )

    assert res.status_code == 400
    mocked.assert_not_awaited()


@pytest.mark.asyncio
async def test_too_many_images(client, admin_headers, make_location):
    location = await make_location()
    files = [("images", (f"img{i}.jpg", b"jpeg-bytes", "image/jpeg")) for i in range(6)]

    with stored(fake_upload()) as mocked:
        res = await client.post(f"/api/locations/{location.id}/upload", headers=admin_headers, files=files)

    assert res.status_code == 400
    mocked.assert_not_awaited()


@pytest.mark.asyncio
async def test_department_admin_uploads_only_to_assigned_locations(
    client, make_location, make_user, headers_for
):
    lab = await make_location(name="Robotics Lab")
    library = await make_location(name="Central Library", department="Library")
    cs_admin = await make_user(role=UserRole.DepartmentAdmin, assigned_locations=[lab.id])
    files = [("view360", ("pano.jpg", b"jpeg-bytes", "image/jpeg"))]

    with stored(fake_upload()):
        res = await client.post(f"/api/locations/{library.id}/upload", headers=headers_for(cs_admin), files=files)
        assert res.status_code == 403

        res = await client.post(f"/api/locations/{lab.id}/upload", headers=headers_for(cs_admin), files=files)
        assert res.status_code == 200
        assert res.json()["data"]["view360"] == f"{BUCKET_URL}/view360/pano.jpg"


@pytest.mark.asyncio
async def test_storage_not_configured(client, admin_headers):
    res = await client.post("/api/uploads/sign", headers=admin_headers, json={"folder": "locations"})
    assert res.status_code == 500
    assert res.json()["message"] == "Storage service unavailable."


@pytest.mark.asyncio
async def test_sign_upload(client, admin_headers, make_user, headers_for):
    signed = {
        "bucket": "campus-media",
        "folder": "locations",
        "path": "locations/abc123",
        "signed_url": "https://storage.example.com/upload/sign/locations/abc123?token=t",
        "token": "t",
    }

    with patch("app.api.endpoints.uploads.create_signed_upload", return_value=signed) as mocked:
        res = await client.post("/api/uploads/sign", headers=admin_headers, json={"folder": "/locations/"})
        assert res.status_code == 200
        mocked.assert_called_once_with("locations")
        assert res.json()["data"]["signedUrl"] == signed["signed_url"]

        visitor = await make_user()
        res = await client.post("/api/uploads/sign", headers=headers_for(visitor), json={"folder": "locations"})
        assert res.status_code == 403

        res = await client.post("/api/uploads/sign", headers=admin_headers, json={"folder": "../secrets"})
        assert res.status_code == 400


@pytest.mark.asyncio
async def test_upload_without_storage_is_server_error(client, admin_headers, make_location):
    location = await make_location()

    res = await client.post(
        f"/api/locations/{location.id}/upload",
        headers=admin_headers,
        files=[("images", ("front.jpg", b"jpeg-bytes", "image/jpeg"))],
    )
    assert res.status_code == 500
    assert res.json()["message"] == "Storage service unavailable."

    res = await client.get(f"/api/locations/{location.id}")
    assert res.json()["data"]["images"] == []
