"""
Activity log: append-only audit trail per work item.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.activity import ActivityLogEntry
from app.models.user import User
from app.models.work_item import WorkItem
from meridian_shared.schemas.common import ActivityAction
from meridian_shared.schemas.items import ActivityRead


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


async def record(
    session: AsyncSession,
    item: WorkItem,
    user_id: uuid.UUID,
    action: ActivityAction,
    *,
    field_name: Optional[str] = None,
    old_value: Any = None,
    new_value: Any = None,
    note: Optional[str] = None,
) -> ActivityLogEntry:
    entry = ActivityLogEntry(
        work_item_id=item.id,
        meridian_id=item.meridian_id,
        user_id=user_id,
        action=action.value,
        field_name=field_name,
        old_value=_text(old_value),
        new_value=_text(new_value),
        note=note,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_for_item(session: AsyncSession, item_id: uuid.UUID) -> list[ActivityRead]:
    """Entries for an item, oldest first, with the actor's display name."""
    result = await session.execute(
        select(ActivityLogEntry, User.display_name)
        .join(User, User.id == ActivityLogEntry.user_id)
        .where(ActivityLogEntry.work_item_id == item_id)
        .order_by(ActivityLogEntry.created_at, ActivityLogEntry.id)
    )
    return [
        ActivityRead(
            id=entry.id,
            work_item_id=entry.work_item_id,
            meridian_id=entry.meridian_id,
            user_id=entry.user_id,
            user_display_name=display_name,
            action=entry.action,
            field_name=entry.field_name,
            old_value=entry.old_value,
            new_value=entry.new_value,
            note=entry.note,
            created_at=entry.created_at,
        )
        for entry, display_name in result.all()
    ]
