# app/services/auth_service.py

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from loguru import logger
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from app.models.user import User, UserRole
from app.core.config import settings
from app.core.exceptions import Conflict, Unauthorized, ValidationFailed
from app.core.security import (
    hash_password,
    verify_password,
    create_access_token,
)
from app.schemas.auth import AuthPayload
from app.schemas.user import UserRead


# ============================================================================
# FETCH USER BY EMAIL
# ============================================================================
async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


# ============================================================================
# FETCH USER BY ID
# ============================================================================
async def get_user_by_id(session: AsyncSession, user_id: uuid.UUID | str) -> User | None:
    if not isinstance(user_id, uuid.UUID):
        try:
            user_id = uuid.UUID(str(user_id))
        except ValueError:
            return None
    return await session.get(User, user_id)


# ============================================================================
# ROLE-CONDITIONAL FIELDS
# ============================================================================
def normalize_role_fields(
    role: UserRole,
    department: Optional[str],
    faculty: Optional[str],
    assigned_locations: Optional[Iterable] = None,
) -> tuple[Optional[str], Optional[str], list[str]]:
    """
    departmentAdmin  -> department + faculty required, assignments kept
    user/superAdmin  -> no department, faculty or assignments
    """
    if role == UserRole.DepartmentAdmin:
        errors = []
        if not department:
            errors.append({"field": "department", "message": "Department is required for department admins"})
        if not faculty:
            errors.append({"field": "faculty", "message": "Faculty is required for department admins"})
        if errors:
            raise ValidationFailed(errors=errors)
        return department, faculty, [str(loc) for loc in (assigned_locations or [])]

    return None, None, []


# ============================================================================
# CREATE USER
# ============================================================================
async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.User,
    department: str | None = None,
    faculty: str | None = None,
    assigned_locations: Iterable | None = None,
) -> User:

    department, faculty, assigned = normalize_role_fields(role, department, faculty, assigned_locations)

    if await get_user_by_email(session, email):
        raise Conflict("User with this email already exists", field="email")

    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        department=department,
        faculty=faculty,
        assigned_locations=assigned,
    )

    session.add(user)

    try:
        await session.commit()
        await session.refresh(user)
        return user

    except IntegrityError:
        # unique index on email settles concurrent registrations
        await session.rollback()
        raise Conflict("User with this email already exists", field="email")


# ============================================================================
# AUTHENTICATE
# ============================================================================
async def authenticate_user(session: AsyncSession, email: str, password: str) -> User:
    """
    Same message for unknown email, inactive account and wrong password.
    lastLogin only moves on success.
    """
    user = await get_user_by_email(session, email)
    if not user or not user.is_active:
        raise Unauthorized("Invalid credentials")

    if not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid credentials")

    user.last_login = datetime.now(timezone.utc)
    session.add(user)
    await session.commit()
    await session.refresh(user)

    logger.info(f"User {user.id} logged in")
    return user


# ============================================================================
# LOGIN / REGISTER RESPONSE
# ============================================================================
def create_auth_payload(user: User) -> AuthPayload:
    token = create_access_token(subject=str(user.id))
    return AuthPayload(
        user=UserRead.model_validate(user),
        token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


# ============================================================================
# SELF-SERVICE PROFILE
# ============================================================================
async def update_profile(
    session: AsyncSession,
    user: User,
    name: str | None = None,
    email: str | None = None,
) -> User:
    if email and email != user.email:
        if await get_user_by_email(session, email):
            raise Conflict("Email already in use", field="email")
        user.email = email

    if name:
        user.name = name

    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Email already in use", field="email")

    await session.refresh(user)
    return user


async def change_password(
    session: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationFailed(
            "Current password is incorrect",
            errors=[{"field": "currentPassword", "message": "Current password is incorrect"}],
        )

    user.password_hash = hash_password(new_password)
    session.add(user)
    await session.commit()
