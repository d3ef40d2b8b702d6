"""Sprint model."""

from datetime import date
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Sprint(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "sprints"

    meridian_id: uuid.UUID = Field(foreign_key="meridians.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    goal: Optional[str] = None
    state: str = Field(nullable=False, default="planning")  # planning | active | complete
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
