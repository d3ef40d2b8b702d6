"""
Meridian service: business logic for meridian CRUD.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import flush_unique
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.meridian import Meridian
from app.models.meridian_member import MeridianMember
from app.models.status import Status
from meridian_shared.schemas.common import Role
from meridian_shared.schemas.meridians import (
    DEFAULT_STATUSES,
    MeridianCreateRequest,
    MeridianUpdateRequest,
)

log = structlog.get_logger()

SLUG_TAKEN_DETAIL = "A meridian with that slug already exists"


async def get_meridian_or_404(
    session: AsyncSession, meridian_id: uuid.UUID, *, for_update: bool = False
) -> Meridian:
    """Get an active meridian; soft-deleted ones are treated as missing.

    ``for_update`` row-locks the meridian so invariant checks on its members
    and statuses run serialized against concurrent requests.
    """
    stmt = select(Meridian).where(Meridian.id == meridian_id, Meridian.is_active)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    meridian = result.scalar_one_or_none()
    if not meridian:
        raise NotFoundError("Meridian not found")
    return meridian


async def _ensure_slug_free(
    session: AsyncSession, slug: str, exclude_id: uuid.UUID | None = None
) -> None:
    stmt = select(Meridian.id).where(Meridian.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Meridian.id != exclude_id)
    existing = await session.execute(stmt)
    if existing.first():
        raise ConflictError(SLUG_TAKEN_DETAIL)


async def create_meridian(
    req: MeridianCreateRequest, creator_id: uuid.UUID, session: AsyncSession
) -> Meridian:
    """Create a meridian, seed its default pipeline and make the creator owner."""
    await _ensure_slug_free(session, req.slug)

    meridian = Meridian(
        name=req.name,
        slug=req.slug,
        color=req.color,
        description=req.description,
        start_date=req.start_date,
        end_date=req.end_date,
        created_by=creator_id,
    )
    session.add(meridian)
    await flush_unique(session, SLUG_TAKEN_DETAIL)

    for position, (name, color, is_default, is_complete, is_blocked) in enumerate(DEFAULT_STATUSES):
        session.add(
            Status(
                meridian_id=meridian.id,
                name=name,
                color=color,
                position=position,
                is_default=is_default,
                is_complete=is_complete,
                is_blocked=is_blocked,
            )
        )

    session.add(
        MeridianMember(meridian_id=meridian.id, user_id=creator_id, role=Role.OWNER.value)
    )
    await session.flush()

    log.info("meridian.created", meridian_id=str(meridian.id), slug=meridian.slug, creator=str(creator_id))
    return meridian


async def update_meridian(
    meridian: Meridian, req: MeridianUpdateRequest, session: AsyncSession
) -> Meridian:
    """Apply the fields present in the request."""
    data = req.model_dump(exclude_unset=True)

    for key in ("name", "slug", "is_active"):
        if key in data and data[key] is None:
            raise ValidationError(f"{key} cannot be null")

    if "slug" in data and data["slug"] != meridian.slug:
        await _ensure_slug_free(session, data["slug"], exclude_id=meridian.id)

    for key, value in data.items():
        setattr(meridian, key, value)

    meridian.updated_at = utcnow()
    session.add(meridian)
    await flush_unique(session, SLUG_TAKEN_DETAIL)

    log.info("meridian.updated", meridian_id=str(meridian.id), fields=sorted(data))
    return meridian


async def deactivate_meridian(meridian: Meridian, session: AsyncSession) -> None:
    """Soft-delete: the meridian and everything in it disappear from reads."""
    meridian.is_active = False
    meridian.updated_at = utcnow()
    session.add(meridian)
    await session.flush()
    log.info("meridian.deactivated", meridian_id=str(meridian.id))
