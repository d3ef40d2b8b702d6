"""
Status API endpoints.

GET    /api/meridians/{meridianId}/statuses — List the pipeline (any member)
POST   /api/meridians/{meridianId}/statuses — Append a status (Owner only)
PATCH  /api/statuses/{statusId}             — Update a status (Owner only)
DELETE /api/statuses/{statusId}             — Delete, reassigning its items (Owner only)
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
from app.services import statuses as status_service
from app.services.meridians import get_meridian_or_404
from meridian_shared.schemas.meridians import (
    StatusCreateRequest,
    StatusDeleteResponse,
    StatusResponse,
    StatusUpdateRequest,
)

# ---------------------------------------------------------------------------
# Meridian-scoped routes (/meridians/{meridianId}/statuses)
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("", response_model=List[StatusResponse], tags=["Statuses"])
async def list_statuses(
    meridianId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await get_meridian_or_404(session, meridianId)
    await require_member(session, user.id, meridianId)
    statuses = await status_service.list_statuses(session, meridianId)
    return [StatusResponse.model_validate(s) for s in statuses]


@router_scoped.post("", response_model=StatusResponse, status_code=201, tags=["Statuses"])
async def create_status(
    meridianId: uuid.UUID,
    body: StatusCreateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await get_meridian_or_404(session, meridianId)
    await require_manage(session, user.id, meridianId)
    status = await status_service.create_status(session, meridianId, body)
    await session.commit()
    return StatusResponse.model_validate(status)


# ---------------------------------------------------------------------------
# Status routes (/statuses/{statusId})
# ---------------------------------------------------------------------------
router = APIRouter()


@router.patch("/{statusId}", response_model=StatusResponse, tags=["Statuses"])
async def update_status(
    statusId: uuid.UUID,
    body: StatusUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    status = await status_service.get_status_or_404(session, statusId)
    await require_manage(session, user.id, status.meridian_id)
    status = await status_service.update_status(session, status, body)
    await session.commit()
    return StatusResponse.model_validate(status)


@router.delete("/{statusId}", response_model=StatusDeleteResponse, tags=["Statuses"])
async def delete_status(
    statusId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Delete a status. Its items move to the remaining default status first."""
    status = await status_service.get_status_or_404(session, statusId)
    await require_manage(session, user.id, status.meridian_id)
    reassigned_to = await status_service.delete_status(session, status)
    await session.commit()
    return StatusDeleteResponse(reassigned_to=reassigned_to)
