# app/services/department_service.py
"""
Departments are referenced from users and locations by name, not by key.
Every name comparison goes through `same_department` (SQL) or
`same_department_name` (in memory) so the matching rule lives in one place.
"""

from sqlmodel import select, or_
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from loguru import logger
from typing import Optional
import uuid

from app.models.department import Department
from app.models.location import Location
from app.models.user import User
from app.core.exceptions import Conflict, NotFound, ValidationFailed
from app.core.pagination import PageParams, contains, paginate
from app.schemas.department import (
    DepartmentCreate,
    DepartmentRead,
    DepartmentStat,
    DepartmentStats,
    DepartmentUpdate,
)
from app.schemas.user import UserSummary


# ------------------------------------------------------------
# NAME MATCHING
# ------------------------------------------------------------
def same_department(column, name: str):
    """Case-insensitive equality on a department-name column."""
    return func.lower(column) == department_key(name)


def department_key(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def same_department_name(a: Optional[str], b: Optional[str]) -> bool:
    """In-memory counterpart of `same_department`. A missing name never matches."""
    return bool(department_key(a)) and department_key(a) == department_key(b)


async def _count_by_department(session: AsyncSession, column, active_column) -> dict[str, int]:
    result = await session.execute(
        select(func.lower(column), func.count())
        .where(active_column == True)  # noqa: E712
        .where(column.is_not(None))
        .group_by(func.lower(column))
    )
    return {row[0]: row[1] for row in result.all()}


# ------------------------------------------------------------
# LOOKUPS
# ------------------------------------------------------------
async def _load(session: AsyncSession, department_id: uuid.UUID) -> Optional[Department]:
    # populate_existing refreshes the selectin-loaded head after writes
    result = await session.execute(
        select(Department)
        .where(Department.id == department_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_department_or_404(session: AsyncSession, department_id: uuid.UUID) -> Department:
    department = await _load(session, department_id)
    if not department:
        raise NotFound("Department not found")
    return department


async def get_department_by_name(session: AsyncSession, name: str) -> Optional[Department]:
    result = await session.execute(select(Department).where(same_department(Department.name, name)))
    return result.scalars().first()


async def location_count(session: AsyncSession, name: str) -> int:
    result = await session.execute(
        select(func.count(Location.id))
        .where(same_department(Location.department, name))
        .where(Location.is_active == True)  # noqa: E712
    )
    return result.scalar_one()


async def to_read(session: AsyncSession, department: Department) -> DepartmentRead:
    read = DepartmentRead.model_validate(department)
    read.location_count = await location_count(session, department.name)
    return read


# ------------------------------------------------------------
# LIST
# ------------------------------------------------------------
async def list_departments(
    session: AsyncSession,
    params: PageParams,
    search: Optional[str] = None,
    is_active: Optional[bool] = True,
) -> tuple[list[DepartmentRead], object]:
    query = select(Department).order_by(Department.name.asc())

    if is_active is not None:
        query = query.where(Department.is_active == is_active)
    if search:
        query = query.where(or_(contains(Department.name, search), contains(Department.description, search)))

    departments, pagination = await paginate(session, query, params)

    counts = await _count_by_department(session, Location.department, Location.is_active)
    items = []
    for department in departments:
        read = DepartmentRead.model_validate(department)
        read.location_count = counts.get(department.name.lower(), 0)
        items.append(read)

    return items, pagination


# ------------------------------------------------------------
# CREATE / UPDATE
# ------------------------------------------------------------
async def _validate_head(session: AsyncSession, head_id: Optional[uuid.UUID]) -> None:
    if head_id is None:
        return
    head = await session.get(User, head_id)
    if not head or not head.is_active:
        raise ValidationFailed(
            "Invalid department head user",
            errors=[{"field": "headId", "message": "Invalid department head user"}],
        )


async def _ensure_name_free(session: AsyncSession, name: str, exclude_id: Optional[uuid.UUID] = None) -> None:
    existing = await get_department_by_name(session, name)
    if existing and existing.id != exclude_id:
        raise Conflict("Department with this name already exists", field="name")


async def _commit(session: AsyncSession, department: Department) -> Department:
    session.add(department)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Department with this name already exists", field="name")
    return await get_department_or_404(session, department.id)


async def create_department(session: AsyncSession, data: DepartmentCreate) -> Department:
    await _ensure_name_free(session, data.name)
    await _validate_head(session, data.head_id)

    department = Department(
        id=uuid.uuid4(),
        name=data.name,
        description=data.description,
        head_id=data.head_id,
    )
    department = await _commit(session, department)
    logger.info(f"Department '{department.name}' created")
    return department


async def update_department(session: AsyncSession, department: Department, data: DepartmentUpdate) -> Department:
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") and changes["name"] != department.name:
        await _ensure_name_free(session, changes["name"], exclude_id=department.id)
        department.name = changes["name"]

    if "head_id" in changes:
        await _validate_head(session, changes["head_id"])
        department.head_id = changes["head_id"]

    if "description" in changes:
        department.description = changes["description"]

    if changes.get("is_active") is not None:
        department.is_active = changes["is_active"]

    return await _commit(session, department)


# ------------------------------------------------------------
# DELETE (refused while anything active still points here)
# ------------------------------------------------------------
async def delete_department(session: AsyncSession, department: Department) -> None:
    locations = await location_count(session, department.name)
    users = (
        await session.execute(
            select(func.count(User.id))
            .where(same_department(User.department, department.name))
            .where(User.is_active == True)  # noqa: E712
        )
    ).scalar_one()

    if locations or users:
        raise Conflict(
            f"Cannot delete department with {locations} active location(s) and {users} active user(s)",
            field="name",
        )

    await session.delete(department)
    await session.commit()
    logger.info(f"Department '{department.name}' deleted")


# ------------------------------------------------------------
# MEMBERS
# ------------------------------------------------------------
async def department_users(session: AsyncSession, department: Department, params: PageParams):
    query = (
        select(User)
        .where(same_department(User.department, department.name))
        .where(User.is_active == True)  # noqa: E712
        .order_by(User.name.asc())
    )
    return await paginate(session, query, params)


async def department_locations(
    session: AsyncSession,
    name: str,
    params: PageParams,
    is_active: Optional[bool] = True,
):
    query = select(Location).where(same_department(Location.department, name)).order_by(Location.name.asc())
    if is_active is not None:
        query = query.where(Location.is_active == is_active)
    return await paginate(session, query, params)


# ------------------------------------------------------------
# STATS
# ------------------------------------------------------------
async def department_stats(session: AsyncSession) -> DepartmentStats:
    result = await session.execute(
        select(Department).where(Department.is_active == True).order_by(Department.name.asc())  # noqa: E712
    )
    departments = result.scalars().all()

    location_counts = await _count_by_department(session, Location.department, Location.is_active)
    user_counts = await _count_by_department(session, User.department, User.is_active)

    stats = [
        DepartmentStat(
            department=d.name,
            location_count=location_counts.get(d.name.lower(), 0),
            user_count=user_counts.get(d.name.lower(), 0),
            head=UserSummary.model_validate(d.head) if d.head else None,
        )
        for d in departments
    ]
    return DepartmentStats(total_departments=len(stats), department_stats=stats)
