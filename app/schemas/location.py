# app/schemas/location.py

import re
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID
from pydantic import AliasChoices, Field, field_validator, model_validator

from app.models.location import Location, LocationCategory
from app.schemas.common import CamelModel, Pagination
from app.schemas.user import UserSummary

_URL = re.compile(r"^(http|https)://", re.IGNORECASE)
_IMAGE = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)
_AUDIO = re.compile(r"\.(mp3|wav|ogg)$", re.IGNORECASE)
_VIDEO = re.compile(r"\.(mp4|webm|mov)$", re.IGNORECASE)
_VIEW360 = re.compile(r"\.(jpg|jpeg|png|gif|mp4|webm)$", re.IGNORECASE)


def _media(pattern: re.Pattern, label: str):
    def check(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not (_URL.match(value) or pattern.search(value)):
            raise ValueError(f"Invalid {label} file format")
        return value
    return check


def _check_images(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    for url in value:
        if not (_URL.match(url) or _IMAGE.search(url)):
            raise ValueError("Invalid image file format")
    return value


def _check_location_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not 2 <= len(value) <= 200:
        raise ValueError("Location name must be between 2 and 200 characters")
    return value


def _check_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not 10 <= len(value) <= 1000:
        raise ValueError("Description must be between 10 and 1000 characters")
    return value


def _check_department(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Department is required")
    return value


# ------------------------------------------------------------
# COORDINATES
# ------------------------------------------------------------
class Coordinates(CamelModel):
    latitude: float
    longitude: float

    @field_validator("latitude")
    @classmethod
    def latitude_in_range(cls, v: float) -> float:
        if not -90 <= v <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    @classmethod
    def longitude_in_range(cls, v: float) -> float:
        if not -180 <= v <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        return v


# ------------------------------------------------------------
# CREATE (super admin)
# ------------------------------------------------------------
class LocationCreate(CamelModel):
    name: str
    description: str
    department: str
    category: LocationCategory = LocationCategory.Academic
    coordinates: Coordinates

    image_urls: Optional[List[str]] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    view360_url: Optional[str] = None

    validate_name = field_validator("name")(_check_location_name)
    validate_description = field_validator("description")(_check_description)
    validate_department = field_validator("department")(_check_department)
    validate_images = field_validator("image_urls")(_check_images)
    validate_audio = field_validator("audio_url")(_media(_AUDIO, "audio"))
    validate_video = field_validator("video_url")(_media(_VIDEO, "video"))
    validate_view360 = field_validator("view360_url")(_media(_VIEW360, "360 view"))


# ------------------------------------------------------------
# UPDATE (partial; only provided fields change)
# ------------------------------------------------------------
class LocationUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    department: Optional[str] = None
    category: Optional[LocationCategory] = None
    coordinates: Optional[Coordinates] = None
    is_active: Optional[bool] = None

    image_urls: Optional[List[str]] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    view360_url: Optional[str] = None

    validate_name = field_validator("name")(_check_location_name)
    validate_description = field_validator("description")(_check_description)
    validate_department = field_validator("department")(_check_department)
    validate_images = field_validator("image_urls")(_check_images)
    validate_audio = field_validator("audio_url")(_media(_AUDIO, "audio"))
    validate_video = field_validator("video_url")(_media(_VIDEO, "video"))
    validate_view360 = field_validator("view360_url")(_media(_VIEW360, "360 view"))


# ------------------------------------------------------------
# READ
# ------------------------------------------------------------
class LocationRead(CamelModel):
    id: UUID
    name: str
    description: str
    department: str
    category: LocationCategory
    coordinates: Coordinates
    images: List[str] = []
    audio: Optional[str] = None
    video: Optional[str] = None
    view360: Optional[str] = None
    is_active: bool
    created_by: Optional[UserSummary] = Field(
        default=None,
        validation_alias=AliasChoices("creator", "createdBy", "created_by"),
        serialization_alias="createdBy",
    )
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def from_record(cls, value: Any) -> Any:
        # stored rows keep latitude / longitude as two columns
        if isinstance(value, Location):
            return {
                "id": value.id,
                "name": value.name,
                "description": value.description,
                "department": value.department,
                "category": value.category,
                "coordinates": {"latitude": value.latitude, "longitude": value.longitude},
                "images": list(value.images or []),
                "audio": value.audio,
                "video": value.video,
                "view360": value.view360,
                "is_active": value.is_active,
                "creator": value.creator,
                "created_at": value.created_at,
                "updated_at": value.updated_at,
            }
        return value


class LocationPage(CamelModel):
    locations: List[LocationRead]
    pagination: Pagination


class DepartmentCount(CamelModel):
    department: str
    count: int


class LocationStats(CamelModel):
    total_locations: int
    department_distribution: List[DepartmentCount]


class SignUploadRequest(CamelModel):
    folder: str = "locations"

    @field_validator("folder")
    @classmethod
    def folder_is_relative(cls, v: str) -> str:
        v = v.strip().strip("/")
        if not v or ".." in v.split("/"):
            raise ValueError("Invalid upload folder")
        return v


class SignedUpload(CamelModel):
    bucket: str
    folder: str
    path: str
    signed_url: Optional[str] = None
    token: Optional[str] = None
