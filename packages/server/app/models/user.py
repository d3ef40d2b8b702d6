"""User model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class User(UUIDMixin, SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (
        sa.UniqueConstraint("external_id", "tenant_id", name="uq_users_identity"),
    )

    external_id: str = Field(nullable=False, index=True)  # provider-issued subject
    identity_provider: Optional[str] = None
    tenant_id: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    display_name: str = Field(nullable=False)
    display_name_set: bool = Field(default=False, nullable=False)  # user chose their own name
    is_active: bool = Field(default=True, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
    last_login_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
