# app/models/location.py

from sqlmodel import SQLModel, Field, Column, Relationship
from sqlalchemy import DateTime, String, Text, Float, Boolean, ForeignKey, JSON, Uuid
from sqlalchemy import Enum as PGEnum
from datetime import datetime
import uuid
from enum import Enum
from typing import Optional

from app.models.user import User, utcnow


class LocationCategory(str, Enum):
    Academic = "academic"
    Administration = "administration"
    Research = "research"
    Accommodation = "accommodation"
    Dining = "dining"
    Recreation = "recreation"
    Events = "events"


class Location(SQLModel, table=True):
    __tablename__ = "locations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # unique index is what settles concurrent creates with the same name
    name: str = Field(sa_column=Column(String(200), nullable=False, unique=True, index=True))
    description: str = Field(sa_column=Column(Text, nullable=False))

    # Owning department by name, not a foreign key
    department: str = Field(sa_column=Column(String(100), nullable=False, index=True))

    category: LocationCategory = Field(
        default=LocationCategory.Academic,
        sa_column=Column(
            PGEnum(LocationCategory, name="location_category", values_callable=lambda e: [m.value for m in e]),
            nullable=False,
        )
    )

    latitude: float = Field(sa_column=Column(Float, nullable=False))
    longitude: float = Field(sa_column=Column(Float, nullable=False))

    # --------------------------------------------------------
    # MEDIA (URLs in object storage)
    # --------------------------------------------------------
    images: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    audio: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    video: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    view360: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))

    created_by: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, onupdate=utcnow)
    )

    creator: Optional[User] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
