"""
Membership service: who belongs to a meridian and with which role.

Every path that can lower the owner count locks the meridian row first, so
two concurrent demotions cannot both see "more than one owner" and leave
the meridian without one.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AuthorizationError, ConflictError, NotFoundError
from app.core.roles import can_manage, role_of
from app.models.meridian_member import MeridianMember
from app.models.user import User
from app.services.meridians import get_meridian_or_404
from meridian_shared.schemas.common import ROLE_ORDER, Role
from meridian_shared.schemas.meridians import MemberResponse

log = structlog.get_logger()

LAST_OWNER_DETAIL = "A meridian must keep at least one owner"


def _to_response(member: MeridianMember, user: User) -> MemberResponse:
    return MemberResponse(
        user_id=member.user_id,
        meridian_id=member.meridian_id,
        role=member.role,
        joined_at=member.joined_at,
        display_name=user.display_name,
        email=user.email,
    )


async def _owner_count(session: AsyncSession, meridian_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(MeridianMember)
        .where(
            MeridianMember.meridian_id == meridian_id,
            MeridianMember.role == Role.OWNER.value,
        )
    )
    return result.scalar_one()


async def _guard_last_owner(
    session: AsyncSession, member: MeridianMember, new_role: Role | None
) -> None:
    """Reject a change that would take away the meridian's only owner.

    ``new_role`` None means the member is being removed.
    """
    if member.role != Role.OWNER.value or new_role == Role.OWNER:
        return
    if await _owner_count(session, member.meridian_id) <= 1:
        raise ConflictError(LAST_OWNER_DETAIL)


async def _get_member_or_404(
    session: AsyncSession, meridian_id: uuid.UUID, user_id: uuid.UUID
) -> MeridianMember:
    member = await session.get(MeridianMember, (meridian_id, user_id))
    if member is None:
        raise NotFoundError("Member not found")
    return member


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def list_members(session: AsyncSession, meridian_id: uuid.UUID) -> list[MemberResponse]:
    """Members ordered owner, member, viewer, then by display name."""
    result = await session.execute(
        select(MeridianMember, User)
        .join(User, User.id == MeridianMember.user_id)
        .where(MeridianMember.meridian_id == meridian_id)
    )
    rows = sorted(
        result.all(),
        key=lambda row: (ROLE_ORDER.get(row[0].role, len(ROLE_ORDER)), row[1].display_name.lower()),
    )
    return [_to_response(member, user) for member, user in rows]


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def add_member(
    session: AsyncSession, meridian_id: uuid.UUID, user_id: uuid.UUID, role: Role
) -> MemberResponse:
    """Add a user or overwrite their role if they already belong."""
    user = await session.get(User, user_id)
    if not user or not user.is_active:
        raise NotFoundError("User not found")

    await get_meridian_or_404(session, meridian_id, for_update=True)

    member = await session.get(MeridianMember, (meridian_id, user_id))
    if member is None:
        member = MeridianMember(meridian_id=meridian_id, user_id=user_id, role=role.value)
        log.info("member.added", meridian_id=str(meridian_id), user_id=str(user_id), role=role.value)
    else:
        await _guard_last_owner(session, member, role)
        log.info(
            "member.role_changed",
            meridian_id=str(meridian_id),
            user_id=str(user_id),
            old_role=member.role,
            new_role=role.value,
        )
        member.role = role.value

    session.add(member)
    await session.flush()
    return _to_response(member, user)


async def change_role(
    session: AsyncSession, meridian_id: uuid.UUID, user_id: uuid.UUID, role: Role
) -> MemberResponse:
    await get_meridian_or_404(session, meridian_id, for_update=True)
    member = await _get_member_or_404(session, meridian_id, user_id)
    await _guard_last_owner(session, member, role)

    old_role = member.role
    member.role = role.value
    session.add(member)
    await session.flush()

    log.info(
        "member.role_changed",
        meridian_id=str(meridian_id),
        user_id=str(user_id),
        old_role=old_role,
        new_role=role.value,
    )
    user = await session.get(User, user_id)
    return _to_response(member, user)


async def remove_member(
    session: AsyncSession, meridian_id: uuid.UUID, user_id: uuid.UUID, caller_id: uuid.UUID
) -> None:
    """Owners may remove anyone; any member may remove themselves."""
    if caller_id != user_id:
        caller_role = await role_of(session, caller_id, meridian_id)
        if caller_role is None:
            raise AuthorizationError("Not a member of this meridian")
        if not can_manage(caller_role):
            raise AuthorizationError("Only owners can remove other members")

    await get_meridian_or_404(session, meridian_id, for_update=True)
    member = await _get_member_or_404(session, meridian_id, user_id)
    await _guard_last_owner(session, member, None)

    await session.delete(member)
    await session.flush()

    log.info(
        "member.removed",
        meridian_id=str(meridian_id),
        user_id=str(user_id),
        by=str(caller_id),
        self_leave=caller_id == user_id,
    )
