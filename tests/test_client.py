import pytest
from httpx import ASGITransport

from app.client import ApiError, AuthSession, CampusClient
from app.main import app
from app.models.user import UserRole


@pytest.fixture
def api(session_factory):
    return CampusClient("http://testserver", transport=ASGITransport(app=app))


def test_auth_session_roles():
    session = AuthSession()
    assert not session.is_authenticated
    assert not session.is_admin

    session.token = "abc"
    session.user = {"role": "departmentAdmin"}
    assert session.is_department_admin
    assert session.is_admin
    assert not session.is_super_admin

    session.clear()
    assert session.token is None
    assert session.user is None


@pytest.mark.asyncio
async def test_login_profile_logout(api, make_user):
    await make_user(role=UserRole.SuperAdmin, email="root@example.com")

    async with api:
        user = await api.login("root@example.com", "password123")
        assert user["role"] == "superAdmin"
        assert api.session.is_super_admin

        profile = await api.profile()
        assert profile["email"] == "root@example.com"

        page = await api.get("/api/users")
        assert page["pagination"]["total"] == 1

        await api.logout()
        assert not api.session.is_authenticated


@pytest.mark.asyncio
async def test_errors_are_raised_as_api_error(api, make_user):
    await make_user(email="someone@example.com")

    async with api:
        with pytest.raises(ApiError) as excinfo:
            await api.login("someone@example.com", "wrong-password")
        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "Invalid credentials"

        await api.login("someone@example.com", "password123")
        with pytest.raises(ApiError) as excinfo:
            await api.post("/api/locations", json={"name": "x"})
        assert excinfo.value.status_code in (400, 403)
        assert api.session.is_authenticated


@pytest.mark.asyncio
async def test_401_clears_session(session_factory):
    session = AuthSession(token="stale-token", user={"role": "superAdmin"})

    async with CampusClient("http://testserver", session=session, transport=ASGITransport(app=app)) as api:
        with pytest.raises(ApiError) as excinfo:
            await api.get("/api/auth/profile")

    assert excinfo.value.status_code == 401
    assert not session.is_authenticated
    assert session.user is None
