from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import field_validator

from app.schemas.common import CamelModel, Pagination
from app.schemas.user import UserSummary


def _check_department_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not 2 <= len(value) <= 100:
        raise ValueError("Department name must be between 2 and 100 characters")
    return value


def _check_description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if len(value) > 500:
        raise ValueError("Description cannot exceed 500 characters")
    return value


class DepartmentCreate(CamelModel):
    name: str
    description: Optional[str] = None
    head_id: Optional[UUID] = None

    validate_name = field_validator("name")(_check_department_name)
    validate_description = field_validator("description")(_check_description)


class DepartmentUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    head_id: Optional[UUID] = None
    is_active: Optional[bool] = None

    validate_name = field_validator("name")(_check_department_name)
    validate_description = field_validator("description")(_check_description)


class DepartmentRead(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    head: Optional[UserSummary] = None
    is_active: bool
    location_count: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class DepartmentPage(CamelModel):
    departments: List[DepartmentRead]
    pagination: Pagination


class DepartmentStat(CamelModel):
    department: str
    location_count: int
    user_count: int
    head: Optional[UserSummary] = None


class DepartmentStats(CamelModel):
    total_departments: int
    department_stats: List[DepartmentStat]
