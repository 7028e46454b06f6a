# app/api/endpoints/users.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID
from loguru import logger

from app.api.deps import get_db_session, require_admin
from app.core.config import settings
from app.core.exceptions import Forbidden
from app.core.pagination import PageParams, page_params
from app.core.rbac import (
    Action,
    DepartmentAdmin,
    Resource,
    UserTarget,
    actor_from_user,
    authorize,
    enforce,
)
from app.schemas.common import ApiResponse
from app.schemas.user import UserCreate, UserPage, UserRead, UserStats, UserUpdate
from app.services.auth_service import create_user
from app.services.department_service import same_department_name
from app.services.user_service import (
    delete_user,
    ensure_locations_exist,
    get_user_or_404,
    list_users,
    set_user_active,
    update_user,
    user_stats,
)
from app.models.user import User, UserRole

router = APIRouter(prefix="/api/users", tags=["Users"])


def _scope_for(actor) -> Optional[str]:
    if settings.ENFORCE_DEPARTMENT_SCOPING and isinstance(actor, DepartmentAdmin):
        return actor.department
    return None


# -------------------------------------------------------------------
# Stats (declared before /{user_id})
# -------------------------------------------------------------------
@router.get("/stats", response_model=ApiResponse[UserStats])
async def get_user_stats(
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    enforce(authorize(actor_from_user(current_user), Action.Read, Resource.User))
    return ApiResponse(message="User statistics retrieved successfully", data=await user_stats(session))


# -------------------------------------------------------------------
# List users (paginated, filtered)
# -------------------------------------------------------------------
@router.get("", response_model=ApiResponse[UserPage])
async def get_users(
    params: PageParams = Depends(page_params),
    role: Optional[UserRole] = Query(None),
    department: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(True, alias="isActive"),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    actor = actor_from_user(current_user)
    enforce(authorize(actor, Action.Read, Resource.User))

    users, pagination = await list_users(
        session,
        params,
        role=role,
        department=department,
        search=search,
        is_active=is_active,
        scope_department=_scope_for(actor),
    )
    return ApiResponse(
        message="Users retrieved successfully",
        data=UserPage(users=[UserRead.model_validate(u) for u in users], pagination=pagination),
    )


# -------------------------------------------------------------------
# Get one user
# -------------------------------------------------------------------
@router.get("/{user_id}", response_model=ApiResponse[UserRead])
async def get_user(
    user_id: UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    actor = actor_from_user(current_user)
    user = await get_user_or_404(session, user_id)
    enforce(authorize(actor, Action.Read, Resource.User, UserTarget.of(user)))

    scope = _scope_for(actor)
    if scope is not None and not same_department_name(user.department, scope):
        raise Forbidden("You can only manage users in your department")

    return ApiResponse(message="User retrieved successfully", data=UserRead.model_validate(user))


# -------------------------------------------------------------------
# Create user (superAdmin: any role; departmentAdmin: own department)
# -------------------------------------------------------------------
@router.post("", response_model=ApiResponse[UserRead], status_code=status.HTTP_201_CREATED)
async def create_new_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    actor = actor_from_user(current_user)
    enforce(
        authorize(
            actor,
            Action.Create,
            Resource.User,
            UserTarget(role=data.role, department=data.department),
            {"role": data.role, "department": data.department, "assigned_locations": data.assigned_locations},
        )
    )

    assigned = await ensure_locations_exist(session, data.assigned_locations or [])
    user = await create_user(
        session=session,
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
        department=data.department,
        faculty=data.faculty,
        assigned_locations=assigned,
    )
    logger.info(f"User {user.id} ({user.role.value}) created by {current_user.id}")
    return ApiResponse(message="User created successfully", data=UserRead.model_validate(user))


# -------------------------------------------------------------------
# Update user (partial)
# -------------------------------------------------------------------
@router.put("/{user_id}", response_model=ApiResponse[UserRead])
async def edit_user(
    user_id: UUID,
    data: UserUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    actor = actor_from_user(current_user)
    user = await get_user_or_404(session, user_id, include_inactive=True)
    enforce(
        authorize(actor, Action.Update, Resource.User, UserTarget.of(user), data.model_dump(exclude_unset=True))
    )

    user = await update_user(session, user, data)
    return ApiResponse(message="User updated successfully", data=UserRead.model_validate(user))


# -------------------------------------------------------------------
# Activate / deactivate (superAdmin only)
# -------------------------------------------------------------------
@router.put("/{user_id}/active", response_model=ApiResponse[UserRead])
async def activate_user(
    user_id: UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    user = await get_user_or_404(session, user_id, include_inactive=True)
    enforce(authorize(actor_from_user(current_user), Action.Activate, Resource.User, UserTarget.of(user)))

    user = await set_user_active(session, user, True)
    return ApiResponse(message="User activated successfully", data=UserRead.model_validate(user))


@router.put("/{user_id}/inactive", response_model=ApiResponse[UserRead])
async def deactivate_user(
    user_id: UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    user = await get_user_or_404(session, user_id, include_inactive=True)
    enforce(authorize(actor_from_user(current_user), Action.Deactivate, Resource.User, UserTarget.of(user)))

    user = await set_user_active(session, user, False)
    return ApiResponse(message="User deactivated successfully", data=UserRead.model_validate(user))


# -------------------------------------------------------------------
# Delete user (superAdmin only, never a superAdmin)
# -------------------------------------------------------------------
@router.delete("/{user_id}", response_model=ApiResponse[None])
async def remove_user(
    user_id: UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    user = await get_user_or_404(session, user_id, include_inactive=True)
    enforce(authorize(actor_from_user(current_user), Action.Delete, Resource.User, UserTarget.of(user)))

    await delete_user(session, user)
    return ApiResponse(message="User deleted successfully")
