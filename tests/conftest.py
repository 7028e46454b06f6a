import os
import uuid
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# FORCE TESTING MODE
# This must be done BEFORE importing app.main so settings, the engine
# and the rate limiter all see the test configuration.
# ------------------------------------------------------------------
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-campus-tour-suite"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_KEY", None)
os.environ.pop("REDIS_URL", None)

from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.main import app
from app.api.deps import get_db_session
from app.core.database import build_engine
from app.core.security import create_access_token
from app.models.location import Location, LocationCategory
from app.models.user import UserRole
from app.services.auth_service import create_user

PASSWORD = "password123"


# ------------------------------------------------------------------
# DATABASE: fresh in-memory SQLite per test
# ------------------------------------------------------------------
@pytest_asyncio.fixture
async def session_factory():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    yield factory

    app.dependency_overrides.pop(get_db_session, None)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Uses ASGITransport() instead of app=... (httpx >= 0.27)
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


# ------------------------------------------------------------------
# FACTORIES
# ------------------------------------------------------------------
@pytest.fixture
def make_user(db_session):
    async def _make(role=UserRole.User, department=None, faculty=None, assigned_locations=None, **kwargs):
        if role == UserRole.DepartmentAdmin:
            department = department or "Computer Science"
            faculty = faculty or "Engineering"
        return await create_user(
            session=db_session,
            name=kwargs.get("name", f"{role.value} tester"),
            email=kwargs.get("email", f"user{uuid.uuid4().int % 10**10}@example.com"),
            password=kwargs.get("password", PASSWORD),
            role=role,
            department=department,
            faculty=faculty,
            assigned_locations=assigned_locations,
        )
    return _make


@pytest.fixture
def make_location(db_session):
    async def _make(name=None, department="Computer Science", is_active=True, **kwargs):
        location = Location(
            name=name or f"Location {uuid.uuid4().hex[:8]}",
            description=kwargs.get("description", "A building on the main campus"),
            department=department,
            category=kwargs.get("category", LocationCategory.Academic),
            latitude=kwargs.get("latitude", 40.0),
            longitude=kwargs.get("longitude", -74.0),
            images=kwargs.get("images", []),
            is_active=is_active,
        )
        db_session.add(location)
        await db_session.commit()
        await db_session.refresh(location)
        return location
    return _make


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


@pytest_asyncio.fixture
async def super_admin(make_user):
    return await make_user(role=UserRole.SuperAdmin, name="Super Administrator")


@pytest_asyncio.fixture
async def admin_headers(super_admin):
    return auth_headers(super_admin)


@pytest.fixture
def headers_for():
    return auth_headers
