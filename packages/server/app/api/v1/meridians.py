"""
Meridian API endpoints.

POST   /api/meridians             — Create a meridian (caller becomes owner)
PATCH  /api/meridians/{meridianId} — Update name/slug/color/dates (Owner only)
DELETE /api/meridians/{meridianId} — Soft-delete (Owner only)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.core.roles import require_manage
from app.models.user import User
from app.services import meridians as meridian_service
from meridian_shared.schemas.common import OkResponse
from meridian_shared.schemas.meridians import (
    MeridianCreateRequest,
    MeridianResponse,
    MeridianUpdateRequest,
)

router = APIRouter()


@router.post("", response_model=MeridianResponse, status_code=201, tags=["Meridians"])
async def create_meridian(
    body: MeridianCreateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a meridian with the default status pipeline."""
    meridian = await meridian_service.create_meridian(body, user.id, session)
    await session.commit()
    return MeridianResponse.model_validate(meridian)


@router.patch("/{meridianId}", response_model=MeridianResponse, tags=["Meridians"])
async def update_meridian(
    meridianId: uuid.UUID,
    body: MeridianUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    meridian = await meridian_service.get_meridian_or_404(session, meridianId)
    await require_manage(session, user.id, meridianId)
    meridian = await meridian_service.update_meridian(meridian, body, session)
    await session.commit()
    return MeridianResponse.model_validate(meridian)


@router.delete("/{meridianId}", response_model=OkResponse, tags=["Meridians"])
async def delete_meridian(
    meridianId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Soft-delete; the meridian and its contents drop out of every read."""
    meridian = await meridian_service.get_meridian_or_404(session, meridianId)
    await require_manage(session, user.id, meridianId)
    await meridian_service.deactivate_meridian(meridian, session)
    await session.commit()
    return OkResponse()
