"""
Work item service layer: the arc > episode > signal > relay hierarchy.

Handles:
- Item creation with sibling positioning and hierarchy shape checks
- Single-field updates with activity logging and auto start date
- Reparenting, with the owning meridian resolved from the nearest arc and
  cascaded to the whole active subtree
- Direct meridian moves, cascaded the same way
- Soft-delete cascades
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Optional

import structlog
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.core.roles import can_write, require_member, require_write, role_of
from app.models.base import utcnow
from app.models.meridian import Meridian
from app.models.meridian_member import MeridianMember
from app.models.sprint import Sprint
from app.models.status import Status
from app.models.work_item import WorkItem
from app.services import activity
from app.services.hierarchy import TreeWalker, nearest_arc
from app.services.meridians import get_meridian_or_404
from app.services.statuses import default_status
from meridian_shared.schemas.common import PARENT_TYPE, ActivityAction, ItemType
from meridian_shared.schemas.items import ActivityRead, ItemCreate, ItemField

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_item_or_404(
    session: AsyncSession, item_id: uuid.UUID, detail: str = "Item not found"
) -> WorkItem:
    """Active item in an active meridian."""
    result = await session.execute(
        select(WorkItem)
        .join(Meridian, Meridian.id == WorkItem.meridian_id)
        .where(WorkItem.id == item_id, WorkItem.is_active, Meridian.is_active)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError(detail)
    return item


def parse_uuid(value: Any, field: str) -> Optional[uuid.UUID]:
    if value is None:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a valid id")


def parse_date(value: Any, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        # Accept full ISO timestamps from clients; keep the date part.
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date")


def _check_shape(item_type: str, parent: Optional[WorkItem]) -> None:
    """Arcs are top level; every other type sits under its own parent type."""
    expected = PARENT_TYPE[ItemType(item_type)]
    if parent is None:
        return
    if expected is None:
        raise ValidationError("An arc cannot have a parent")
    if parent.type != expected.value:
        raise ValidationError(f"A {item_type} must be placed under a {expected.value}")


async def _next_position(
    session: AsyncSession,
    meridian_id: uuid.UUID,
    parent_id: Optional[uuid.UUID],
    item_type: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> int:
    """Count of active siblings with the same parent and type."""
    stmt = (
        select(func.count())
        .select_from(WorkItem)
        .where(WorkItem.type == item_type, WorkItem.is_active)
    )
    if parent_id is None:
        stmt = stmt.where(WorkItem.parent_id.is_(None), WorkItem.meridian_id == meridian_id)
    else:
        stmt = stmt.where(WorkItem.parent_id == parent_id)
    if exclude_id is not None:
        stmt = stmt.where(WorkItem.id != exclude_id)
    return (await session.execute(stmt)).scalar_one()


async def _status_in_meridian(
    session: AsyncSession, status_id: uuid.UUID, meridian_id: uuid.UUID
) -> Status:
    status = await session.get(Status, status_id)
    if not status or status.meridian_id != meridian_id:
        raise ValidationError("Status does not belong to this meridian")
    return status


async def _require_target_write(
    session: AsyncSession, caller_id: uuid.UUID, meridian_id: uuid.UUID
) -> None:
    await get_meridian_or_404(session, meridian_id)
    if not can_write(await role_of(session, caller_id, meridian_id)):
        raise AuthorizationError("No write access to the target meridian")


async def _realign_to_meridian(
    session: AsyncSession, ids: list[uuid.UUID], meridian_id: uuid.UUID
) -> None:
    """After a cross-meridian move, point statuses and sprints at the new meridian.

    Items whose status belongs elsewhere fall back to the target's default
    status; sprint assignments from another meridian are cleared.
    """
    fallback = await default_status(session, meridian_id)
    target_statuses = select(Status.id).where(Status.meridian_id == meridian_id)
    target_sprints = select(Sprint.id).where(Sprint.meridian_id == meridian_id)

    await session.execute(
        update(WorkItem)
        .where(
            WorkItem.id.in_(ids),
            WorkItem.status_id.is_not(None),
            WorkItem.status_id.not_in(target_statuses),
        )
        .values(status_id=fallback.id if fallback else None)
        .execution_options(synchronize_session="fetch")
    )
    await session.execute(
        update(WorkItem)
        .where(
            WorkItem.id.in_(ids),
            WorkItem.sprint_id.is_not(None),
            WorkItem.sprint_id.not_in(target_sprints),
        )
        .values(sprint_id=None)
        .execution_options(synchronize_session="fetch")
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def create_item(
    session: AsyncSession, item_in: ItemCreate, caller_id: uuid.UUID
) -> WorkItem:
    await get_meridian_or_404(session, item_in.meridian_id)
    await require_write(session, caller_id, item_in.meridian_id)

    parent: Optional[WorkItem] = None
    if item_in.parent_id is not None:
        parent = await get_item_or_404(session, item_in.parent_id, "Parent item not found")
    _check_shape(item_in.type.value, parent)

    if parent is not None:
        resolved = await TreeWalker(session).resolve_meridian(parent.id, parent.meridian_id)
        if parent.meridian_id != item_in.meridian_id or resolved != item_in.meridian_id:
            raise ValidationError("Parent item belongs to a different meridian")

    if item_in.status_id is not None:
        status = await _status_in_meridian(session, item_in.status_id, item_in.meridian_id)
    else:
        status = await default_status(session, item_in.meridian_id)

    item = WorkItem(
        meridian_id=item_in.meridian_id,
        parent_id=item_in.parent_id,
        type=item_in.type.value,
        title=item_in.title,
        status_id=status.id if status else None,
        position=await _next_position(
            session, item_in.meridian_id, item_in.parent_id, item_in.type.value
        ),
        created_by=caller_id,
    )
    session.add(item)
    await session.flush()

    await activity.record(session, item, caller_id, ActivityAction.CREATED)

    log.info(
        "item.created",
        item_id=str(item.id),
        meridian_id=str(item.meridian_id),
        type=item.type,
        parent_id=str(item.parent_id) if item.parent_id else None,
    )
    return item


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


async def update_item_field(
    session: AsyncSession,
    item: WorkItem,
    field: ItemField,
    value: Any,
    caller_id: uuid.UUID,
) -> WorkItem:
    """Apply a single-field change to a work item."""
    await require_write(session, caller_id, item.meridian_id)

    if field == ItemField.PARENT_ID:
        return await reparent_item(session, item, parse_uuid(value, field.value), caller_id)
    if field == ItemField.MERIDIAN_ID:
        target = parse_uuid(value, field.value)
        if target is None:
            raise ValidationError("meridianId is required")
        return await move_item(session, item, target, caller_id)

    action = ActivityAction.EDITED
    old_value: Any
    new_value: Any

    if field == ItemField.TITLE:
        new_value = value.strip() if isinstance(value, str) else ""
        if not new_value:
            raise ValidationError("Title required")
        old_value, item.title = item.title, new_value

    elif field == ItemField.DESCRIPTION:
        if value is not None and not isinstance(value, str):
            raise ValidationError("description must be a string")
        new_value = value or None
        old_value, item.description = item.description, new_value

    elif field == ItemField.STATUS_ID:
        action = ActivityAction.STATUS_CHANGED
        new_value = parse_uuid(value, field.value)
        if new_value is not None:
            status = await _status_in_meridian(session, new_value, item.meridian_id)
            # Moving into a working status marks when work began.
            if not status.is_default and not status.is_complete and item.start_date is None:
                item.start_date = utcnow().date()
        old_value, item.status_id = item.status_id, new_value

    elif field == ItemField.ASSIGNEE_ID:
        action = ActivityAction.ASSIGNED
        new_value = parse_uuid(value, field.value)
        if new_value is not None:
            member = await session.get(MeridianMember, (item.meridian_id, new_value))
            if member is None:
                raise ValidationError("Assignee must be a member of this meridian")
        old_value, item.assignee_id = item.assignee_id, new_value

    elif field == ItemField.SPRINT_ID:
        new_value = parse_uuid(value, field.value)
        if new_value is not None:
            if item.type == ItemType.ARC.value:
                raise ValidationError("Arcs cannot be assigned to a sprint")
            sprint = await session.get(Sprint, new_value)
            if not sprint or sprint.meridian_id != item.meridian_id:
                raise ValidationError("Sprint does not belong to this meridian")
        old_value, item.sprint_id = item.sprint_id, new_value

    elif field == ItemField.START_DATE:
        new_value = parse_date(value, field.value)
        old_value, item.start_date = item.start_date, new_value

    elif field == ItemField.DUE_DATE:
        new_value = parse_date(value, field.value)
        old_value, item.due_date = item.due_date, new_value

    else:  # pragma: no cover - ItemField is exhaustive
        raise ValidationError(f"Field '{field.value}' is not updatable")

    item.updated_at = utcnow()
    session.add(item)
    await session.flush()

    await activity.record(
        session,
        item,
        caller_id,
        action,
        field_name=field.value,
        old_value=old_value,
        new_value=new_value,
    )
    log.info("item.updated", item_id=str(item.id), field=field.value)
    return item


async def reparent_item(
    session: AsyncSession,
    item: WorkItem,
    new_parent_id: Optional[uuid.UUID],
    caller_id: uuid.UUID,
) -> WorkItem:
    """Move an item under a new parent (or to top level).

    The item adopts the meridian of the nearest arc at or above the new
    parent (or the parent's own meridian when there is none); that meridian
    is written to the item and its active subtree before parent_id changes.
    """
    walker = TreeWalker(session)
    old_parent_id = item.parent_id
    new_meridian_id = item.meridian_id

    parent: Optional[WorkItem] = None
    if new_parent_id is not None:
        if new_parent_id == item.id:
            raise ConflictError("An item cannot be its own parent")
        parent = await get_item_or_404(session, new_parent_id, "Parent item not found")
    _check_shape(item.type, parent)

    if parent is not None:
        chain = await walker.ancestry(parent.id)
        if any(node.id == item.id for node in chain):
            raise ConflictError("Cannot move an item beneath one of its own descendants")
        arc = nearest_arc(chain)
        new_meridian_id = arc.meridian_id if arc is not None else parent.meridian_id

    if new_meridian_id != item.meridian_id:
        await _require_target_write(session, caller_id, new_meridian_id)

    old_meridian_id = item.meridian_id
    moved = await walker.cascade_meridian(item.id, new_meridian_id)
    if new_meridian_id != old_meridian_id:
        await _realign_to_meridian(session, moved, new_meridian_id)
    await session.refresh(item)

    item.parent_id = new_parent_id
    item.position = await _next_position(
        session, new_meridian_id, new_parent_id, item.type, exclude_id=item.id
    )
    item.updated_at = utcnow()
    session.add(item)
    await session.flush()

    await activity.record(
        session,
        item,
        caller_id,
        ActivityAction.EDITED,
        field_name=ItemField.PARENT_ID.value,
        old_value=old_parent_id,
        new_value=new_parent_id,
    )
    log.info(
        "item.reparented",
        item_id=str(item.id),
        parent_id=str(new_parent_id) if new_parent_id else None,
        meridian_id=str(new_meridian_id),
        cascaded=len(moved),
    )
    return item


async def move_item(
    session: AsyncSession,
    item: WorkItem,
    target_meridian_id: uuid.UUID,
    caller_id: uuid.UUID,
) -> WorkItem:
    """Move an item and its active subtree to another meridian.

    If the item's parent stays behind in a different meridian, the item is
    detached and becomes top level in the target.
    """
    await _require_target_write(session, caller_id, target_meridian_id)

    old_meridian_id = item.meridian_id
    moved = await TreeWalker(session).cascade_meridian(item.id, target_meridian_id)
    if target_meridian_id != old_meridian_id:
        await _realign_to_meridian(session, moved, target_meridian_id)
    await session.refresh(item)

    if item.parent_id is not None:
        parent = await session.get(WorkItem, item.parent_id)
        if parent is None or parent.meridian_id != target_meridian_id:
            item.parent_id = None
            item.position = await _next_position(
                session, target_meridian_id, None, item.type, exclude_id=item.id
            )

    item.updated_at = utcnow()
    session.add(item)
    await session.flush()

    await activity.record(
        session,
        item,
        caller_id,
        ActivityAction.EDITED,
        field_name=ItemField.MERIDIAN_ID.value,
        old_value=old_meridian_id,
        new_value=target_meridian_id,
    )
    log.info(
        "item.moved",
        item_id=str(item.id),
        from_meridian=str(old_meridian_id),
        to_meridian=str(target_meridian_id),
        cascaded=len(moved),
    )
    return item


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


async def delete_item(session: AsyncSession, item: WorkItem, caller_id: uuid.UUID) -> int:
    """Soft-delete the item and its active subtree. Returns rows affected."""
    await require_write(session, caller_id, item.meridian_id)
    ids = await TreeWalker(session).deactivate(item.id)
    log.info("item.deleted", item_id=str(item.id), cascaded=len(ids))
    return len(ids)


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------


async def list_item_activity(
    session: AsyncSession, item: WorkItem, caller_id: uuid.UUID
) -> list[ActivityRead]:
    await require_member(session, caller_id, item.meridian_id)
    return await activity.list_for_item(session, item.id)


async def add_comment(
    session: AsyncSession, item: WorkItem, note: str, caller_id: uuid.UUID
) -> None:
    await require_write(session, caller_id, item.meridian_id, "Viewers cannot comment")
    await activity.record(session, item, caller_id, ActivityAction.COMMENTED, note=note)
    log.info("item.commented", item_id=str(item.id))
