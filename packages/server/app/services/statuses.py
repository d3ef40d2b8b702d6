"""
Status service: the per-meridian pipeline.

A meridian always keeps at least one status and at least one default
status. Deleting a status moves its work items to the remaining default
with the lowest position before the row goes away.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import flush_unique
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.meridian import Meridian
from app.models.status import Status
from app.models.work_item import WorkItem
from app.services.meridians import get_meridian_or_404
from meridian_shared.schemas.meridians import StatusCreateRequest, StatusUpdateRequest

log = structlog.get_logger()

NAME_TAKEN_DETAIL = "A status with that name already exists in this meridian"


async def list_statuses(session: AsyncSession, meridian_id: uuid.UUID) -> list[Status]:
    result = await session.execute(
        select(Status).where(Status.meridian_id == meridian_id).order_by(Status.position)
    )
    return list(result.scalars().all())


async def get_status_or_404(session: AsyncSession, status_id: uuid.UUID) -> Status:
    result = await session.execute(
        select(Status)
        .join(Meridian, Meridian.id == Status.meridian_id)
        .where(Status.id == status_id, Meridian.is_active)
    )
    status = result.scalar_one_or_none()
    if not status:
        raise NotFoundError("Status not found")
    return status


async def default_status(
    session: AsyncSession, meridian_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None
) -> Optional[Status]:
    """The meridian's first default status by position."""
    stmt = select(Status).where(Status.meridian_id == meridian_id, Status.is_default)
    if exclude_id is not None:
        stmt = stmt.where(Status.id != exclude_id)
    result = await session.execute(stmt.order_by(Status.position).limit(1))
    return result.scalar_one_or_none()


async def _ensure_name_free(
    session: AsyncSession, meridian_id: uuid.UUID, name: str, exclude_id: Optional[uuid.UUID] = None
) -> None:
    stmt = select(Status.id).where(Status.meridian_id == meridian_id, Status.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Status.id != exclude_id)
    if (await session.execute(stmt)).first():
        raise ConflictError(NAME_TAKEN_DETAIL)


async def _count(session: AsyncSession, meridian_id: uuid.UUID, *, defaults_only: bool = False) -> int:
    stmt = select(func.count()).select_from(Status).where(Status.meridian_id == meridian_id)
    if defaults_only:
        stmt = stmt.where(Status.is_default)
    return (await session.execute(stmt)).scalar_one()


async def create_status(
    session: AsyncSession, meridian_id: uuid.UUID, req: StatusCreateRequest
) -> Status:
    await _ensure_name_free(session, meridian_id, req.name)

    max_pos = (
        await session.execute(
            select(func.max(Status.position)).where(Status.meridian_id == meridian_id)
        )
    ).scalar_one()

    status = Status(
        meridian_id=meridian_id,
        name=req.name,
        color=req.color,
        position=0 if max_pos is None else max_pos + 1,
        is_default=req.is_default,
        is_complete=req.is_complete,
        is_blocked=req.is_blocked,
    )
    session.add(status)
    await flush_unique(session, NAME_TAKEN_DETAIL)

    log.info("status.created", status_id=str(status.id), meridian_id=str(meridian_id), name=status.name)
    return status


async def update_status(
    session: AsyncSession, status: Status, req: StatusUpdateRequest
) -> Status:
    data = {k: v for k, v in req.model_dump(exclude_unset=True).items() if v is not None}
    if not data:
        raise ValidationError("No valid fields provided")

    if "name" in data and data["name"] != status.name:
        await _ensure_name_free(session, status.meridian_id, data["name"], exclude_id=status.id)

    if data.get("is_default") is False and status.is_default:
        await get_meridian_or_404(session, status.meridian_id, for_update=True)
        if await _count(session, status.meridian_id, defaults_only=True) <= 1:
            raise ConflictError("A meridian must keep at least one default status")

    for key, value in data.items():
        setattr(status, key, value)

    session.add(status)
    await flush_unique(session, NAME_TAKEN_DETAIL)

    log.info("status.updated", status_id=str(status.id), fields=sorted(data))
    return status


async def delete_status(session: AsyncSession, status: Status) -> Optional[uuid.UUID]:
    """Delete a status, moving its items to a remaining default first.

    Returns the id of the status the items were reassigned to.
    """
    # Serialize pipeline changes for this meridian before checking counts.
    await get_meridian_or_404(session, status.meridian_id, for_update=True)

    if await _count(session, status.meridian_id) <= 1:
        raise ConflictError("Cannot delete the last status")

    if status.is_default and await _count(session, status.meridian_id, defaults_only=True) <= 1:
        raise ConflictError(
            "Cannot delete the only default status; set another status as default first"
        )

    fallback = await default_status(session, status.meridian_id, exclude_id=status.id)
    fallback_id = fallback.id if fallback else None

    if fallback_id is not None:
        await session.execute(
            update(WorkItem)
            .where(WorkItem.status_id == status.id)
            .values(status_id=fallback_id)
        )

    await session.delete(status)
    await session.flush()

    log.info(
        "status.deleted",
        status_id=str(status.id),
        meridian_id=str(status.meridian_id),
        reassigned_to=str(fallback_id) if fallback_id else None,
    )
    return fallback_id
