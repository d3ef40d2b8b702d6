"""
Meridian-related schemas: meridian CRUD, pipeline statuses and membership.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import CamelModel, Role

SLUG_PATTERN = r"^[a-z0-9-]+$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


# ---------------------------------------------------------------------------
# Meridians
# ---------------------------------------------------------------------------

class MeridianCreateRequest(CamelModel):
    name: str = Field(..., max_length=100)
    slug: str = Field(..., min_length=1, max_length=50, pattern=SLUG_PATTERN)
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("slug", mode="before")
    @classmethod
    def _slug_trim(cls, v):
        return v.strip() if isinstance(v, str) else v


class MeridianUpdateRequest(CamelModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=50, pattern=SLUG_PATTERN)
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _strip_required(v)


class MeridianResponse(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    color: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Statuses
# ---------------------------------------------------------------------------

DEFAULT_STATUS_COLOR = "#94A3B8"

# Pipeline every new meridian starts with: (name, color, is_default, is_complete, is_blocked)
DEFAULT_STATUSES: list[tuple[str, str, bool, bool, bool]] = [
    ("Adrift", "#94A3B8", True, False, False),
    ("In Progress", "#3B82F6", False, False, False),
    ("In Irons", "#F59E0B", False, False, True),
    ("Complete", "#10B981", False, True, False),
]


class StatusCreateRequest(CamelModel):
    name: str = Field(..., max_length=50)
    color: str = Field(DEFAULT_STATUS_COLOR, pattern=COLOR_PATTERN)
    is_default: bool = False
    is_complete: bool = False
    is_blocked: bool = False

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _strip_required(v)


class StatusUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, pattern=COLOR_PATTERN)
    position: Optional[int] = Field(None, ge=0)
    is_default: Optional[bool] = None
    is_complete: Optional[bool] = None
    is_blocked: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _strip_required(v)


class StatusResponse(CamelModel):
    id: uuid.UUID
    meridian_id: uuid.UUID
    name: str
    color: str
    position: int
    is_default: bool
    is_complete: bool
    is_blocked: bool


class StatusDeleteResponse(CamelModel):
    ok: bool = True
    reassigned_to: Optional[uuid.UUID] = None


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class MemberAddRequest(CamelModel):
    user_id: uuid.UUID
    role: Role = Role.MEMBER


class MemberRoleUpdateRequest(CamelModel):
    role: Role


class MemberResponse(CamelModel):
    user_id: uuid.UUID
    meridian_id: uuid.UUID
    role: Role
    joined_at: datetime
    display_name: str
    email: Optional[str] = None
