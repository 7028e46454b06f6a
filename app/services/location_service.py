# app/services/location_service.py

from sqlmodel import select, or_
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from fastapi import UploadFile
from loguru import logger
from typing import Optional
import uuid

from app.models.location import Location, LocationCategory
from app.core.exceptions import AppError, Conflict, NotFound, ValidationFailed
from app.core.pagination import PageParams, contains, paginate
from app.core.storage import ensure_storage_available, media_extension, upload_media
from app.schemas.location import DepartmentCount, LocationCreate, LocationStats, LocationUpdate
from app.services.department_service import department_locations, same_department

MAX_IMAGES_PER_UPLOAD = 5

# request field -> model attribute
_MEDIA_FIELDS = {
    "image_urls": "images",
    "audio_url": "audio",
    "video_url": "video",
    "view360_url": "view360",
}


# ------------------------------------------------------------
# LOOKUPS
# ------------------------------------------------------------
async def _load(session: AsyncSession, location_id: uuid.UUID) -> Optional[Location]:
    result = await session.execute(
        select(Location)
        .where(Location.id == location_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_location_or_404(
    session: AsyncSession,
    location_id: uuid.UUID,
    include_inactive: bool = True,
) -> Location:
    location = await _load(session, location_id)
    if not location or (not location.is_active and not include_inactive):
        raise NotFound("Location not found")
    return location


async def _ensure_name_free(session: AsyncSession, name: str, exclude_id: Optional[uuid.UUID] = None) -> None:
    result = await session.execute(select(Location).where(func.lower(Location.name) == name.lower()))
    existing = result.scalars().first()
    if existing and existing.id != exclude_id:
        raise Conflict("Location with this name already exists", field="name")


async def _commit(session: AsyncSession, location: Location) -> Location:
    session.add(location)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Location with this name already exists", field="name")
    return await get_location_or_404(session, location.id)


# ------------------------------------------------------------
# LIST
# ------------------------------------------------------------
async def list_locations(
    session: AsyncSession,
    params: PageParams,
    search: Optional[str] = None,
    department: Optional[str] = None,
    category: Optional[LocationCategory] = None,
    is_active: Optional[bool] = True,
    scope_department: Optional[str] = None,
):
    query = select(Location).order_by(Location.created_at.desc())

    if is_active is not None:
        query = query.where(Location.is_active == is_active)
    if department:
        query = query.where(same_department(Location.department, department))
    if scope_department is not None:
        query = query.where(same_department(Location.department, scope_department))
    if category:
        query = query.where(Location.category == category)
    if search:
        query = query.where(
            or_(
                contains(Location.name, search),
                contains(Location.description, search),
                contains(Location.department, search),
            )
        )

    return await paginate(session, query, params)


async def locations_by_department(session: AsyncSession, department: str, params: PageParams):
    return await department_locations(session, department, params, is_active=True)


# ------------------------------------------------------------
# CREATE / UPDATE / DELETE
# ------------------------------------------------------------
async def create_location(session: AsyncSession, data: LocationCreate, created_by: uuid.UUID) -> Location:
    await _ensure_name_free(session, data.name)

    location = Location(
        id=uuid.uuid4(),
        name=data.name,
        description=data.description,
        department=data.department,
        category=data.category,
        latitude=data.coordinates.latitude,
        longitude=data.coordinates.longitude,
        images=list(data.image_urls or []),
        audio=data.audio_url,
        video=data.video_url,
        view360=data.view360_url,
        created_by=created_by,
    )
    location = await _commit(session, location)
    logger.info(f"Location '{location.name}' created by {created_by}")
    return location


async def update_location(session: AsyncSession, location: Location, data: LocationUpdate) -> Location:
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") and changes["name"] != location.name:
        await _ensure_name_free(session, changes["name"], exclude_id=location.id)
        location.name = changes["name"]

    for field in ("description", "department", "category", "is_active"):
        if changes.get(field) is not None:
            setattr(location, field, changes[field])

    if data.coordinates is not None:
        location.latitude = data.coordinates.latitude
        location.longitude = data.coordinates.longitude

    for request_field, attribute in _MEDIA_FIELDS.items():
        if request_field in changes:
            value = changes[request_field]
            setattr(location, attribute, list(value or []) if attribute == "images" else value)

    return await _commit(session, location)


async def delete_location(session: AsyncSession, location: Location) -> None:
    await session.delete(location)
    await session.commit()
    logger.info(f"Location '{location.name}' deleted")


# ------------------------------------------------------------
# MEDIA UPLOAD
# ------------------------------------------------------------
async def attach_media(
    session: AsyncSession,
    location: Location,
    uploads: dict[str, list[UploadFile]],
) -> Location:
    """
    Uploads every file, appends image URLs and replaces single media.
    Whatever uploaded is saved even when some files fail; the failures are
    then reported as ValidationFailed so the caller can retry just those.
    """
    uploads = {kind: files for kind, files in uploads.items() if files}
    if not uploads:
        raise ValidationFailed(
            "No files uploaded",
            errors=[{"field": "files", "message": "Provide at least one of images, audio, video or view360"}],
        )

    if len(uploads.get("images", [])) > MAX_IMAGES_PER_UPLOAD:
        raise ValidationFailed(
            f"At most {MAX_IMAGES_PER_UPLOAD} images per upload",
            errors=[{"field": "images", "message": f"At most {MAX_IMAGES_PER_UPLOAD} images per upload"}],
        )

    # reject bad file types before anything reaches storage
    for kind, files in uploads.items():
        for file in files:
            media_extension(kind, file.filename)

    # a missing bucket is a server fault, not a per-file one
    ensure_storage_available()

    failed = []
    images = list(location.images or [])

    for kind, files in uploads.items():
        for file in files:
            try:
                url = await upload_media(file, kind)
            except AppError as e:
                logger.warning(f"Upload of {file.filename!r} for location {location.id} failed: {e.message}")
                failed.append({"field": kind, "message": f"{file.filename}: {e.message}"})
                continue

            if kind == "images":
                images.append(url)
            else:
                setattr(location, kind, url)

    location.images = images
    location = await _commit(session, location)

    if failed:
        raise ValidationFailed("Some files failed to upload", errors=failed)

    return location


# ------------------------------------------------------------
# STATS (active locations per department)
# ------------------------------------------------------------
async def location_stats(session: AsyncSession) -> LocationStats:
    result = await session.execute(
        select(Location.department, func.count(Location.id))
        .where(Location.is_active == True)  # noqa: E712
        .group_by(Location.department)
        .order_by(func.count(Location.id).desc())
    )
    distribution = [DepartmentCount(department=row[0], count=row[1]) for row in result.all()]

    return LocationStats(
        total_locations=sum(d.count for d in distribution),
        department_distribution=distribution,
    )
