"""Activity log entry (append-only)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class ActivityLogEntry(UUIDMixin, SQLModel, table=True):
    __tablename__ = "activity_log"

    work_item_id: uuid.UUID = Field(foreign_key="work_items.id", nullable=False, index=True)
    meridian_id: uuid.UUID = Field(foreign_key="meridians.id", nullable=False)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    action: str = Field(nullable=False)  # status_changed | assigned | commented | created | edited
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
