# app/services/user_service.py

from sqlmodel import select, or_
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from loguru import logger
from typing import Iterable, Optional
import uuid

from app.models.user import User, UserRole
from app.models.location import Location
from app.core.exceptions import Conflict, NotFound, ValidationFailed
from app.core.pagination import PageParams, contains, paginate
from app.schemas.user import RoleCount, UserStats, UserUpdate
from app.services.auth_service import get_user_by_email, get_user_by_id, normalize_role_fields
from app.services.department_service import same_department


# ------------------------------------------------------------
# LIST USERS (paginated + filtered)
# ------------------------------------------------------------
async def list_users(
    session: AsyncSession,
    params: PageParams,
    role: Optional[UserRole] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = True,
    scope_department: Optional[str] = None,
):
    query = select(User).order_by(User.created_at.desc())

    if is_active is not None:
        query = query.where(User.is_active == is_active)
    if role:
        query = query.where(User.role == role)
    if department:
        query = query.where(same_department(User.department, department))
    if scope_department is not None:
        query = query.where(same_department(User.department, scope_department))
    if search:
        query = query.where(
            or_(
                contains(User.name, search),
                contains(User.email, search),
                contains(User.department, search),
            )
        )

    return await paginate(session, query, params)


# ------------------------------------------------------------
# GET ONE (404 for unknown or deactivated accounts)
# ------------------------------------------------------------
async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID, include_inactive: bool = False) -> User:
    user = await get_user_by_id(session, user_id)
    if not user or (not user.is_active and not include_inactive):
        raise NotFound("User not found")
    return user


async def ensure_locations_exist(session: AsyncSession, location_ids: Iterable[uuid.UUID]) -> list[str]:
    ids = list(dict.fromkeys(location_ids))
    if not ids:
        return []

    result = await session.execute(select(Location.id).where(Location.id.in_(ids)))
    found = set(result.scalars().all())
    missing = [str(i) for i in ids if i not in found]
    if missing:
        raise ValidationFailed(
            "Unknown location in assignedLocations",
            errors=[{"field": "assignedLocations", "message": f"Location {m} does not exist"} for m in missing],
        )
    return [str(i) for i in ids]


# ------------------------------------------------------------
# UPDATE (partial)
# ------------------------------------------------------------
async def update_user(session: AsyncSession, user: User, data: UserUpdate) -> User:
    changes = data.model_dump(exclude_unset=True)

    email = changes.get("email")
    if email and email != user.email:
        if await get_user_by_email(session, email):
            raise Conflict("Email already in use", field="email")
        user.email = email

    if changes.get("name"):
        user.name = changes["name"]

    role = changes.get("role") or user.role
    department = changes["department"] if "department" in changes else user.department
    faculty = changes["faculty"] if "faculty" in changes else user.faculty

    assigned = user.assigned_locations
    if changes.get("assigned_locations") is not None:
        assigned = await ensure_locations_exist(session, changes["assigned_locations"])

    user.department, user.faculty, user.assigned_locations = normalize_role_fields(
        role, department, faculty, assigned
    )
    user.role = role

    if changes.get("is_active") is not None:
        user.is_active = changes["is_active"]

    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Email already in use", field="email")

    await session.refresh(user)
    return user


# ------------------------------------------------------------
# ACTIVATE / DEACTIVATE / DELETE
# ------------------------------------------------------------
async def set_user_active(session: AsyncSession, user: User, active: bool) -> User:
    user.is_active = active
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"User {user.id} marked as {'active' if active else 'inactive'}")
    return user


async def delete_user(session: AsyncSession, user: User) -> None:
    await session.delete(user)
    await session.commit()
    logger.info(f"User {user.id} deleted")


# ------------------------------------------------------------
# STATS (active users per role)
# ------------------------------------------------------------
async def user_stats(session: AsyncSession) -> UserStats:
    result = await session.execute(
        select(User.role, func.count(User.id))
        .where(User.is_active == True)  # noqa: E712
        .group_by(User.role)
    )
    distribution = [RoleCount(role=row[0], count=row[1]) for row in result.all()]

    return UserStats(
        total_users=sum(r.count for r in distribution),
        role_distribution=distribution,
    )
