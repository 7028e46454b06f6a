# app/api/endpoints/departments.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from app.api.deps import get_db_session, require_admin, require_super_admin
from app.core.pagination import PageParams, page_params
from app.core.rbac import Action, Resource, actor_from_user, authorize, enforce
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.department import (
    DepartmentCreate,
    DepartmentPage,
    DepartmentRead,
    DepartmentStats,
    DepartmentUpdate,
)
from app.schemas.location import LocationPage, LocationRead
from app.schemas.user import UserPage, UserRead
from app.services.department_service import (
    create_department,
    delete_department,
    department_locations,
    department_stats,
    department_users,
    get_department_or_404,
    list_departments,
    to_read,
    update_department,
)

router = APIRouter(prefix="/api/departments", tags=["Departments"])


# -------------------------------------------------------------------
# Public reads
# -------------------------------------------------------------------
@router.get("", response_model=ApiResponse[DepartmentPage])
async def get_departments(
    params: PageParams = Depends(page_params),
    search: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_db_session),
):
    departments, pagination = await list_departments(session, params, search=search)
    return ApiResponse(
        message="Departments retrieved successfully",
        data=DepartmentPage(departments=departments, pagination=pagination),
    )


@router.get("/stats", response_model=ApiResponse[DepartmentStats])
async def get_department_stats(session: AsyncSession = Depends(get_db_session)):
    return ApiResponse(message="Department statistics retrieved successfully", data=await department_stats(session))


@router.get("/{department_id}", response_model=ApiResponse[DepartmentRead])
async def get_department(department_id: UUID, session: AsyncSession = Depends(get_db_session)):
    department = await get_department_or_404(session, department_id)
    return ApiResponse(message="Department retrieved successfully", data=await to_read(session, department))


@router.get("/{department_id}/locations", response_model=ApiResponse[LocationPage])
async def get_department_locations(
    department_id: UUID,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
):
    department = await get_department_or_404(session, department_id)
    locations, pagination = await department_locations(session, department.name, params)
    return ApiResponse(
        message="Department locations retrieved successfully",
        data=LocationPage(locations=[LocationRead.model_validate(loc) for loc in locations], pagination=pagination),
    )


# -------------------------------------------------------------------
# Admin reads
# -------------------------------------------------------------------
@router.get("/{department_id}/users", response_model=ApiResponse[UserPage])
async def get_department_users(
    department_id: UUID,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    enforce(authorize(actor_from_user(current_user), Action.Read, Resource.Department))

    department = await get_department_or_404(session, department_id)
    users, pagination = await department_users(session, department, params)
    return ApiResponse(
        message="Department users retrieved successfully",
        data=UserPage(users=[UserRead.model_validate(u) for u in users], pagination=pagination),
    )


# -------------------------------------------------------------------
# Writes (superAdmin only)
# -------------------------------------------------------------------
@router.post("", response_model=ApiResponse[DepartmentRead], status_code=status.HTTP_201_CREATED)
async def create_new_department(
    data: DepartmentCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    enforce(authorize(actor_from_user(current_user), Action.Create, Resource.Department))

    department = await create_department(session, data)
    return ApiResponse(message="Department created successfully", data=await to_read(session, department))


@router.put("/{department_id}", response_model=ApiResponse[DepartmentRead])
async def edit_department(
    department_id: UUID,
    data: DepartmentUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    enforce(authorize(actor_from_user(current_user), Action.Update, Resource.Department))

    department = await get_department_or_404(session, department_id)
    department = await update_department(session, department, data)
    return ApiResponse(message="Department updated successfully", data=await to_read(session, department))


@router.delete("/{department_id}", response_model=ApiResponse[None])
async def remove_department(
    department_id: UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_super_admin),
):
    enforce(authorize(actor_from_user(current_user), Action.Delete, Resource.Department))

    department = await get_department_or_404(session, department_id)
    await delete_department(session, department)
    return ApiResponse(message="Department deleted successfully")
