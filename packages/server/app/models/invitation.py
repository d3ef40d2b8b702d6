"""Invitation model. The token is both the handle and the bearer credential."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class Invitation(UUIDMixin, SQLModel, table=True):
    __tablename__ = "invitations"

    meridian_id: uuid.UUID = Field(foreign_key="meridians.id", nullable=False, index=True)
    token: str = Field(unique=True, nullable=False, index=True)
    email: Optional[str] = None
    role: str = Field(nullable=False, default="member")  # member | viewer
    created_by: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
    used_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    used_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
