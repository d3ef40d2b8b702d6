"""Meridian model (a team workspace)."""

from datetime import date
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Meridian(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "meridians"

    name: str = Field(nullable=False)
    slug: str = Field(unique=True, nullable=False, index=True)
    color: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = Field(default=True, nullable=False)  # soft-delete flag
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
