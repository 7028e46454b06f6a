# app/api/endpoints/locations.py

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from app.api.deps import get_db_session, get_current_user, get_optional_user, require_admin
from app.core.config import settings
from app.core.pagination import PageParams, page_params
from app.core.rbac import (
    Action,
    DepartmentAdmin,
    LocationTarget,
    Resource,
    actor_from_user,
    authorize,
    enforce,
    is_admin,
)
from app.models.location import LocationCategory
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.location import LocationCreate, LocationPage, LocationRead, LocationStats, LocationUpdate
from app.services.location_service import (
    attach_media,
    create_location,
    delete_location,
    get_location_or_404,
    list_locations,
    location_stats,
    locations_by_department,
    update_location,
)

router = APIRouter(prefix="/api/locations", tags=["Locations"])


def _page(locations, pagination) -> LocationPage:
    return LocationPage(locations=[LocationRead.model_validate(loc) for loc in locations], pagination=pagination)


# -------------------------------------------------------------------
# List (public; only admins can look past active locations)
# -------------------------------------------------------------------
@router.get("", response_model=ApiResponse[LocationPage])
async def get_locations(
    params: PageParams = Depends(page_params),
    search: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    category: Optional[LocationCategory] = Query(None),
    is_active: Optional[bool] = Query(True, alias="isActive"),
    session: AsyncSession = Depends(get_db_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    actor = actor_from_user(current_user)
    if not is_admin(actor):
        is_active = True

    scope = None
    if settings.ENFORCE_DEPARTMENT_SCOPING and isinstance(actor, DepartmentAdmin):
        scope = actor.department

    locations, pagination = await list_locations(
        session,
        params,
        search=search,
        department=department,
        category=category,
        is_active=is_active,
        scope_department=scope,
    )
    return ApiResponse(message="Locations retrieved successfully", data=_page(locations, pagination))


@router.get("/stats", response_model=ApiResponse[LocationStats])
async def get_location_stats(session: AsyncSession = Depends(get_db_session)):
    return ApiResponse(message="Location statistics retrieved successfully", data=await location_stats(session))


@router.get("/department/{department}", response_model=ApiResponse[LocationPage])
async def get_locations_by_department(
    department: str,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
):
    locations, pagination = await locations_by_department(session, department, params)
    return ApiResponse(message="Locations retrieved successfully", data=_page(locations, pagination))


@router.get("/{location_id}", response_model=ApiResponse[LocationRead])
async def get_location(
    location_id: UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    location = await get_location_or_404(
        session, location_id, include_inactive=is_admin(actor_from_user(current_user))
    )
    return ApiResponse(message="Location retrieved successfully", data=LocationRead.model_validate(location))


# -------------------------------------------------------------------
# Create (superAdmin only)
# -------------------------------------------------------------------
@router.post("", response_model=ApiResponse[LocationRead], status_code=status.HTTP_201_CREATED)
async def create_new_location(
    data: LocationCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    enforce(authorize(actor_from_user(current_user), Action.Create, Resource.Location))

    location = await create_location(session, data, created_by=current_user.id)
    return ApiResponse(message="Location created successfully", data=LocationRead.model_validate(location))


# -------------------------------------------------------------------
# Update / delete (superAdmin, or departmentAdmin on assigned locations)
# -------------------------------------------------------------------
@router.put("/{location_id}", response_model=ApiResponse[LocationRead])
async def edit_location(
    location_id: UUID,
    data: LocationUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    location = await get_location_or_404(session, location_id)
    enforce(
        authorize(
            actor_from_user(current_user),
            Action.Update,
            Resource.Location,
            LocationTarget.of(location),
            data.model_dump(exclude_unset=True),
        )
    )

    location = await update_location(session, location, data)
    return ApiResponse(message="Location updated successfully", data=LocationRead.model_validate(location))


@router.delete("/{location_id}", response_model=ApiResponse[None])
async def remove_location(
    location_id: UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    location = await get_location_or_404(session, location_id)
    enforce(authorize(actor_from_user(current_user), Action.Delete, Resource.Location, LocationTarget.of(location)))

    await delete_location(session, location)
    return ApiResponse(message="Location deleted successfully")


# -------------------------------------------------------------------
# Media upload (multipart)
# -------------------------------------------------------------------
@router.post("/{location_id}/upload", response_model=ApiResponse[LocationRead])
async def upload_location_media(
    location_id: UUID,
    images: Optional[List[UploadFile]] = File(None),
    audio: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    view360: Optional[UploadFile] = File(None),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    location = await get_location_or_404(session, location_id)
    enforce(
        authorize(actor_from_user(current_user), Action.UploadMedia, Resource.Location, LocationTarget.of(location))
    )

    location = await attach_media(
        session,
        location,
        {
            "images": images or [],
            "audio": [audio] if audio else [],
            "video": [video] if video else [],
            "view360": [view360] if view360 else [],
        },
    )
    return ApiResponse(message="Files uploaded successfully", data=LocationRead.model_validate(location))
