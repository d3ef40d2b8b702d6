"""Work item model: one node of the arc > episode > signal > relay tree."""

from datetime import date
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class WorkItem(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "work_items"

    meridian_id: uuid.UUID = Field(foreign_key="meridians.id", nullable=False, index=True)
    parent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="work_items.id", index=True)
    type: str = Field(nullable=False)  # arc | episode | signal | relay
    title: str = Field(nullable=False)
    description: Optional[str] = None
    status_id: Optional[uuid.UUID] = Field(default=None, foreign_key="statuses.id", index=True)
    assignee_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    sprint_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sprints.id", index=True)
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    position: int = Field(nullable=False, default=0)
    is_active: bool = Field(default=True, nullable=False)
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
