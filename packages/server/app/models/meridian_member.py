"""Meridian membership (join table carrying the member's role)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class MeridianMember(SQLModel, table=True):
    __tablename__ = "meridian_members"

    meridian_id: uuid.UUID = Field(foreign_key="meridians.id", primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True)
    role: str = Field(nullable=False, default="member")  # owner | member | viewer
    joined_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
