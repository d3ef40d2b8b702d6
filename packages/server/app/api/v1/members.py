"""
Membership API endpoints.

GET    /api/meridians/{meridianId}/members          — List members (any member)
POST   /api/meridians/{meridianId}/members          — Add or re-role a user (Owner only)
PATCH  /api/meridians/{meridianId}/members/{userId} — Change role (Owner only)
DELETE /api/meridians/{meridianId}/members/{userId} — Remove (Owner, or self-leave)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.core.roles import require_manage, require_member
from app.models.user import User
from app.services import members as member_service
from app.services.meridians import get_meridian_or_404
from meridian_shared.schemas.common import OkResponse
from meridian_shared.schemas.meridians import (
    MemberAddRequest,
    MemberResponse,
    MemberRoleUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=List[MemberResponse], tags=["Members"])
async def list_members(
    meridianId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await get_meridian_or_404(session, meridianId)
    await require_member(session, user.id, meridianId)
    return await member_service.list_members(session, meridianId)


@router.post("", response_model=MemberResponse, status_code=201, tags=["Members"])
async def add_member(
    meridianId: uuid.UUID,
    body: MemberAddRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Idempotent: an existing member just gets the new role."""
    await get_meridian_or_404(session, meridianId)
    await require_manage(session, user.id, meridianId)
    member = await member_service.add_member(session, meridianId, body.user_id, body.role)
    await session.commit()
    return member


@router.patch("/{userId}", response_model=MemberResponse, tags=["Members"])
async def change_role(
    meridianId: uuid.UUID,
    userId: uuid.UUID,
    body: MemberRoleUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await get_meridian_or_404(session, meridianId)
    await require_manage(session, user.id, meridianId)
    member = await member_service.change_role(session, meridianId, userId, body.role)
    await session.commit()
    return member


@router.delete("/{userId}", response_model=OkResponse, tags=["Members"])
async def remove_member(
    meridianId: uuid.UUID,
    userId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await get_meridian_or_404(session, meridianId)
    await member_service.remove_member(session, meridianId, userId, user.id)
    await session.commit()
    return OkResponse()
