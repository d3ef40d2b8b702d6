"""
Sprint API endpoints.

POST   /api/sprints             — Create a sprint (Owner or Member)
PATCH  /api/sprints/{sprintId}  — Change a single field (Owner or Member)
DELETE /api/sprints/{sprintId}  — Delete; its items return to the backlog (Owner only)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.core.roles import require_manage, require_write
from app.models.user import User
from app.services import sprints as sprint_service
from app.services.meridians import get_meridian_or_404
from meridian_shared.schemas.common import OkResponse
from meridian_shared.schemas.sprints import SprintCreate, SprintFieldUpdate, SprintRead

router = APIRouter()


@router.post("", response_model=SprintRead, status_code=201, tags=["Sprints"])
async def create_sprint(
    body: SprintCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await get_meridian_or_404(session, body.meridian_id)
    await require_write(session, user.id, body.meridian_id)
    sprint = await sprint_service.create_sprint(session, body, user.id)
    await session.commit()
    return SprintRead.model_validate(sprint)


@router.patch("/{sprintId}", response_model=SprintRead, tags=["Sprints"])
async def update_sprint(
    sprintId: uuid.UUID,
    body: SprintFieldUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    sprint = await sprint_service.get_sprint_or_404(session, sprintId)
    await require_write(session, user.id, sprint.meridian_id)
    sprint = await sprint_service.update_sprint_field(session, sprint, body.field, body.value)
    await session.commit()
    return SprintRead.model_validate(sprint)


@router.delete("/{sprintId}", response_model=OkResponse, tags=["Sprints"])
async def delete_sprint(
    sprintId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    sprint = await sprint_service.get_sprint_or_404(session, sprintId)
    await require_manage(session, user.id, sprint.meridian_id)
    await sprint_service.delete_sprint(session, sprint)
    await session.commit()
    return OkResponse()
