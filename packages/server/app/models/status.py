"""Pipeline status model, scoped to one meridian."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin


class Status(UUIDMixin, SQLModel, table=True):
    __tablename__ = "statuses"
    __table_args__ = (
        sa.UniqueConstraint("meridian_id", "name", name="uq_statuses_meridian_name"),
    )

    meridian_id: uuid.UUID = Field(foreign_key="meridians.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    color: str = Field(nullable=False, default="#94A3B8")
    position: int = Field(nullable=False, default=0)
    is_default: bool = Field(default=False, nullable=False)
    is_complete: bool = Field(default=False, nullable=False)
    is_blocked: bool = Field(default=False, nullable=False)
