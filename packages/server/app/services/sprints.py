"""
Sprint service: time-boxed groupings of non-arc work items.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.meridian import Meridian
from app.models.sprint import Sprint
from app.models.work_item import WorkItem
from app.services.items import parse_date
from meridian_shared.schemas.common import SprintState
from meridian_shared.schemas.sprints import SprintCreate, SprintField

log = structlog.get_logger()


async def get_sprint_or_404(session: AsyncSession, sprint_id: uuid.UUID) -> Sprint:
    result = await session.execute(
        select(Sprint)
        .join(Meridian, Meridian.id == Sprint.meridian_id)
        .where(Sprint.id == sprint_id, Meridian.is_active)
    )
    sprint = result.scalar_one_or_none()
    if not sprint:
        raise NotFoundError("Sprint not found")
    return sprint


async def create_sprint(
    session: AsyncSession, sprint_in: SprintCreate, creator_id: uuid.UUID
) -> Sprint:
    sprint = Sprint(
        meridian_id=sprint_in.meridian_id,
        name=sprint_in.name,
        goal=sprint_in.goal,
        state=sprint_in.state.value,
        start_date=sprint_in.start_date,
        end_date=sprint_in.end_date,
        created_by=creator_id,
    )
    session.add(sprint)
    await session.flush()

    log.info("sprint.created", sprint_id=str(sprint.id), meridian_id=str(sprint.meridian_id))
    return sprint


async def update_sprint_field(
    session: AsyncSession, sprint: Sprint, field: SprintField, value: Any
) -> Sprint:
    if field == SprintField.NAME:
        name = value.strip() if isinstance(value, str) else ""
        if not name:
            raise ValidationError("Sprint name required")
        sprint.name = name
    elif field == SprintField.GOAL:
        if value is not None and not isinstance(value, str):
            raise ValidationError("goal must be a string")
        sprint.goal = value or None
    elif field == SprintField.STATE:
        try:
            sprint.state = SprintState(value).value
        except ValueError:
            raise ValidationError("state must be planning, active or complete")
    elif field == SprintField.START_DATE:
        sprint.start_date = parse_date(value, field.value)
    elif field == SprintField.END_DATE:
        sprint.end_date = parse_date(value, field.value)

    sprint.updated_at = utcnow()
    session.add(sprint)
    await session.flush()

    log.info("sprint.updated", sprint_id=str(sprint.id), field=field.value)
    return sprint


async def delete_sprint(session: AsyncSession, sprint: Sprint) -> None:
    """Send the sprint's items back to the backlog, then delete it."""
    result = await session.execute(
        update(WorkItem).where(WorkItem.sprint_id == sprint.id).values(sprint_id=None)
    )
    await session.delete(sprint)
    await session.flush()

    log.info("sprint.deleted", sprint_id=str(sprint.id), unassigned=result.rowcount)
