"""Invitation schemas: token-based invite links into a meridian."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from .common import INVITABLE_ROLES, CamelModel, Role


class InvitationCreateRequest(CamelModel):
    role: Role = Role.MEMBER
    email: Optional[EmailStr] = None
    ttl_hours: Optional[int] = Field(None, ge=1)  # server default when omitted

    @field_validator("role")
    @classmethod
    def _invitable(cls, v: Role) -> Role:
        if v not in INVITABLE_ROLES:
            raise ValueError("role must be member or viewer")
        return v


class InvitationResponse(CamelModel):
    """Returned to owners on create and list; carries the bearer token."""
    id: UUID
    token: str
    role: Role
    email: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    created_by_name: Optional[str] = None


class InvitationListResponse(CamelModel):
    data: List[InvitationResponse]


class InvitationPreview(CamelModel):
    role: Role
    email: Optional[str] = None
    expires_at: datetime
    meridian_id: UUID
    meridian_name: str
    meridian_color: Optional[str] = None
    inviter_name: Optional[str] = None


class InvitationAcceptResponse(CamelModel):
    meridian_id: UUID
    role: Role
