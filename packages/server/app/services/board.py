"""
Board service: the single aggregate read behind the main view.

Every collection is scoped through the caller's memberships in active
meridians.
"""

from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.meridian import Meridian
from app.models.meridian_member import MeridianMember
from app.models.sprint import Sprint
from app.models.status import Status
from app.models.user import User
from app.models.work_item import WorkItem
from meridian_shared.schemas.common import SPRINT_STATE_ORDER, ItemType
from meridian_shared.schemas.items import ItemRead
from meridian_shared.schemas.meridians import MeridianResponse, StatusResponse
from meridian_shared.schemas.sprints import SprintRead
from meridian_shared.schemas.users import BoardResponse, UserResponse

_TYPE_ORDER = {t.value: i for i, t in enumerate(ItemType)}


async def load_board(session: AsyncSession, user_id: uuid.UUID) -> BoardResponse:
    result = await session.execute(
        select(Meridian, MeridianMember.role)
        .join(MeridianMember, MeridianMember.meridian_id == Meridian.id)
        .where(MeridianMember.user_id == user_id, Meridian.is_active)
        .order_by(Meridian.name)
    )
    rows = result.all()
    meridians = [meridian for meridian, _ in rows]
    my_roles = {str(meridian.id): role for meridian, role in rows}
    meridian_ids = [meridian.id for meridian in meridians]

    if not meridian_ids:
        return BoardResponse(my_user_id=user_id)

    statuses = await session.execute(
        select(Status)
        .where(Status.meridian_id.in_(meridian_ids))
        .order_by(Status.meridian_id, Status.position)
    )

    sprints = await session.execute(
        select(Sprint)
        .where(Sprint.meridian_id.in_(meridian_ids))
        .order_by(
            sa.case(SPRINT_STATE_ORDER, value=Sprint.state, else_=len(SPRINT_STATE_ORDER)),
            Sprint.start_date,
        )
    )

    users = await session.execute(
        select(User)
        .join(MeridianMember, MeridianMember.user_id == User.id)
        .where(MeridianMember.meridian_id.in_(meridian_ids), User.is_active)
        .distinct()
        .order_by(User.display_name)
    )

    items = await session.execute(
        select(WorkItem)
        .where(WorkItem.meridian_id.in_(meridian_ids), WorkItem.is_active)
        .order_by(
            WorkItem.meridian_id,
            sa.case(_TYPE_ORDER, value=WorkItem.type, else_=len(_TYPE_ORDER)),
            WorkItem.parent_id,
            WorkItem.position,
            WorkItem.created_at,
        )
    )

    return BoardResponse(
        my_user_id=user_id,
        my_roles=my_roles,
        meridians=[MeridianResponse.model_validate(m) for m in meridians],
        statuses=[StatusResponse.model_validate(s) for s in statuses.scalars().all()],
        sprints=[SprintRead.model_validate(s) for s in sprints.scalars().all()],
        users=[UserResponse.model_validate(u) for u in users.scalars().all()],
        items=[ItemRead.model_validate(i) for i in items.scalars().all()],
    )
