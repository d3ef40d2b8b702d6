"""Work item and activity schemas shared across server and frontend codegen."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .common import ActivityAction, CamelModel, ItemType


# ---------------------------------------------------------------------------
# Work items
# ---------------------------------------------------------------------------

class ItemField(str, Enum):
    """Fields a PATCH /items/{id} request may change, by wire name."""
    TITLE = "title"
    DESCRIPTION = "description"
    STATUS_ID = "statusId"
    ASSIGNEE_ID = "assigneeId"
    SPRINT_ID = "sprintId"
    PARENT_ID = "parentId"
    MERIDIAN_ID = "meridianId"
    START_DATE = "startDate"
    DUE_DATE = "dueDate"


class ItemCreate(CamelModel):
    type: ItemType
    title: str = Field(..., max_length=500)
    meridian_id: UUID
    parent_id: Optional[UUID] = None
    status_id: Optional[UUID] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title required")
        return v


class ItemFieldUpdate(CamelModel):
    """Request body for PATCH /items/{id}: a single field and its new value."""
    field: ItemField
    value: Any = None


class ItemRead(CamelModel):
    id: UUID
    meridian_id: UUID
    parent_id: Optional[UUID] = None
    type: ItemType
    title: str
    description: Optional[str] = None
    status_id: Optional[UUID] = None
    assignee_id: Optional[UUID] = None
    sprint_id: Optional[UUID] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    position: int
    created_at: datetime


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------

class CommentCreate(CamelModel):
    note: str = Field(..., max_length=4000)

    @field_validator("note")
    @classmethod
    def _note_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("note must not be empty")
        return v


class ActivityRead(CamelModel):
    id: UUID
    work_item_id: UUID
    meridian_id: UUID
    user_id: UUID
    user_display_name: Optional[str] = None
    action: ActivityAction
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime


class ActivityListResponse(CamelModel):
    data: List[ActivityRead]
