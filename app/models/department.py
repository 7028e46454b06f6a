from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from datetime import datetime
from typing import Optional
import uuid

from app.models.user import User, utcnow


class Department(SQLModel, table=True):
    __tablename__ = "departments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Locations and users point here by this name (no foreign key)
    name: str = Field(
        sa_column=Column(String(100), nullable=False, unique=True, index=True)
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True)
    )

    head_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, onupdate=utcnow)
    )

    head: Optional[User] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
