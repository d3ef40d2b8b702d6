"""User schemas."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from .common import CamelModel, Role
from .items import ItemRead
from .meridians import MeridianResponse, StatusResponse
from .sprints import SprintRead


class UserUpdateMeRequest(CamelModel):
    display_name: str = Field(..., max_length=200)

    @field_validator("display_name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("displayName is required")
        return v


class UserResponse(CamelModel):
    id: UUID
    display_name: str
    email: Optional[str] = None


class UserUpdateMeResponse(CamelModel):
    ok: bool = True
    display_name: str


# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------

class BoardResponse(CamelModel):
    """Everything the board renders, scoped to the caller's memberships."""
    my_user_id: UUID
    my_roles: Dict[str, Role] = Field(default_factory=dict)
    meridians: List[MeridianResponse] = Field(default_factory=list)
    statuses: List[StatusResponse] = Field(default_factory=list)
    sprints: List[SprintRead] = Field(default_factory=list)
    users: List[UserResponse] = Field(default_factory=list)
    items: List[ItemRead] = Field(default_factory=list)
