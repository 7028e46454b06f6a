from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import EmailStr, field_validator

from app.models.user import UserRole
from app.schemas.common import CamelModel, Pagination


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not 2 <= len(value) <= 100:
        raise ValueError("Name must be between 2 and 100 characters")
    return value


def _check_password(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) < 6:
        raise ValueError("Password must be at least 6 characters long")
    return value


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    return value or None


# ---------------------------------------------------------
# SUMMARY (embedded in locations / departments)
# ---------------------------------------------------------
class UserSummary(CamelModel):
    id: UUID
    name: str
    email: str


# ---------------------------------------------------------
# CREATE USER (Admin creates any user)
# ---------------------------------------------------------
class UserCreate(CamelModel):
    name: str
    email: EmailStr
    password: str
    role: UserRole = UserRole.User
    department: Optional[str] = None      # required for departmentAdmin only
    faculty: Optional[str] = None         # required for departmentAdmin only
    assigned_locations: Optional[List[UUID]] = None

    validate_name = field_validator("name")(_check_name)
    validate_password = field_validator("password")(_check_password)
    strip_text = field_validator("department", "faculty")(_strip_optional)


# ---------------------------------------------------------
# UPDATE USER (Admin edits, partial)
# ---------------------------------------------------------
class UserUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    department: Optional[str] = None
    faculty: Optional[str] = None
    is_active: Optional[bool] = None
    assigned_locations: Optional[List[UUID]] = None

    validate_name = field_validator("name")(_check_name)
    strip_text = field_validator("department", "faculty")(_strip_optional)


# ---------------------------------------------------------
# READ USER (response, never carries the password hash)
# ---------------------------------------------------------
class UserRead(CamelModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    department: Optional[str] = None
    faculty: Optional[str] = None
    assigned_locations: List[str] = []
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserPage(CamelModel):
    users: List[UserRead]
    pagination: Pagination


class RoleCount(CamelModel):
    role: UserRole
    count: int


class UserStats(CamelModel):
    total_users: int
    role_distribution: List[RoleCount]
