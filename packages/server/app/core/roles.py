"""
Role-based access control for meridians.

A caller's role comes solely from their meridian_members row; no row means
no access. Owners and members may write (items, sprints, comments); only
owners may manage (settings, statuses, members, invitations, sprint delete).
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import AuthorizationError
from app.models.meridian_member import MeridianMember
from meridian_shared.schemas.common import Role


async def role_of(
    session: AsyncSession, user_id: uuid.UUID, meridian_id: uuid.UUID
) -> Optional[Role]:
    """Return the user's role in the meridian, or None if not a member."""
    result = await session.execute(
        select(MeridianMember.role).where(
            MeridianMember.user_id == user_id,
            MeridianMember.meridian_id == meridian_id,
        )
    )
    role = result.scalar_one_or_none()
    return Role(role) if role is not None else None


def can_write(role: Optional[Role]) -> bool:
    return role in (Role.OWNER, Role.MEMBER)


def can_manage(role: Optional[Role]) -> bool:
    return role == Role.OWNER


async def require_member(
    session: AsyncSession, user_id: uuid.UUID, meridian_id: uuid.UUID
) -> Role:
    """Any role may read."""
    role = await role_of(session, user_id, meridian_id)
    if role is None:
        raise AuthorizationError("Not a member of this meridian")
    return role


async def require_write(
    session: AsyncSession,
    user_id: uuid.UUID,
    meridian_id: uuid.UUID,
    detail: str = "Viewers cannot make changes",
) -> Role:
    role = await require_member(session, user_id, meridian_id)
    if not can_write(role):
        raise AuthorizationError(detail)
    return role


async def require_manage(
    session: AsyncSession,
    user_id: uuid.UUID,
    meridian_id: uuid.UUID,
    detail: str = "Only owners can do this",
) -> Role:
    role = await require_member(session, user_id, meridian_id)
    if not can_manage(role):
        raise AuthorizationError(detail)
    return role
