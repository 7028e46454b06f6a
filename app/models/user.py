# app/models/user.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, String, Boolean, JSON
from sqlalchemy import Enum as PGEnum
from datetime import datetime, timezone
import uuid
from enum import Enum
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    User = "user"                         # public visitor account
    DepartmentAdmin = "departmentAdmin"   # manages assigned locations + own department's admins
    SuperAdmin = "superAdmin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str = Field(sa_column=Column(String(100), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True, index=True))
    password_hash: str = Field(nullable=False)

    # stored by value ("superAdmin"), not by member name
    role: UserRole = Field(
        default=UserRole.User,
        sa_column=Column(
            PGEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
            nullable=False,
        )
    )

    # Free-text department name; only departmentAdmin accounts carry one
    department: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True, index=True)
    )
    faculty: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True)
    )

    # Location ids (as strings) a departmentAdmin may edit
    assigned_locations: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list)
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True)
    )

    last_login: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, onupdate=utcnow)
    )
