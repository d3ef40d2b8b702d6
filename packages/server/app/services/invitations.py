"""
Invitation service: bearer-token invite links into a meridian.

An invitation is Pending until it is accepted (used_at set) or its
expires_at passes. The state is derived on every read; there is no stored
status column. Revoking deletes the row.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.core.roles import require_manage
from app.models.base import as_utc, utcnow
from app.models.invitation import Invitation
from app.models.meridian import Meridian
from app.models.meridian_member import MeridianMember
from app.models.user import User
from meridian_shared.schemas.common import InvitationState, Role
from meridian_shared.schemas.invitations import (
    InvitationAcceptResponse,
    InvitationCreateRequest,
    InvitationPreview,
    InvitationResponse,
)

log = structlog.get_logger()

NOT_PENDING_DETAIL = "Invitation not found or expired"


def invitation_state(invitation: Invitation, now: Optional[datetime] = None) -> InvitationState:
    if invitation.used_at is not None:
        return InvitationState.USED
    if as_utc(invitation.expires_at) <= (now or utcnow()):
        return InvitationState.EXPIRED
    return InvitationState.PENDING


def _to_response(invitation: Invitation, created_by_name: Optional[str]) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        token=invitation.token,
        role=invitation.role,
        email=invitation.email,
        created_at=as_utc(invitation.created_at),
        expires_at=as_utc(invitation.expires_at),
        created_by_name=created_by_name,
    )


async def _get_pending_or_404(session: AsyncSession, token: str) -> tuple[Invitation, Meridian]:
    result = await session.execute(
        select(Invitation, Meridian)
        .join(Meridian, Meridian.id == Invitation.meridian_id)
        .where(Invitation.token == token, Meridian.is_active)
    )
    row = result.one_or_none()
    if row is None or invitation_state(row[0]) != InvitationState.PENDING:
        raise NotFoundError(NOT_PENDING_DETAIL)
    return row[0], row[1]


# ---------------------------------------------------------------------------
# Owner operations
# ---------------------------------------------------------------------------


async def create_invitation(
    session: AsyncSession,
    meridian_id: uuid.UUID,
    req: InvitationCreateRequest,
    creator: User,
) -> InvitationResponse:
    settings = get_settings()
    ttl_hours = req.ttl_hours or settings.invitation_default_ttl_hours
    max_ttl = settings.invitation_max_ttl_hours
    if ttl_hours > max_ttl:
        raise ValidationError(f"ttlHours must be between 1 and {max_ttl}")

    invitation = Invitation(
        meridian_id=meridian_id,
        token=secrets.token_hex(32),
        email=str(req.email) if req.email else None,
        role=req.role.value,
        created_by=creator.id,
        expires_at=utcnow() + timedelta(hours=ttl_hours),
    )
    session.add(invitation)
    await session.flush()

    log.info(
        "invitation.created",
        invitation_id=str(invitation.id),
        meridian_id=str(meridian_id),
        role=invitation.role,
        ttl_hours=ttl_hours,
    )
    return _to_response(invitation, creator.display_name)


async def list_pending(session: AsyncSession, meridian_id: uuid.UUID) -> list[InvitationResponse]:
    """Pending invitations, newest first."""
    result = await session.execute(
        select(Invitation, User.display_name)
        .join(User, User.id == Invitation.created_by, isouter=True)
        .where(Invitation.meridian_id == meridian_id, Invitation.used_at.is_(None))
        .order_by(Invitation.created_at.desc())
    )
    now = utcnow()
    return [
        _to_response(invitation, name)
        for invitation, name in result.all()
        if invitation_state(invitation, now) == InvitationState.PENDING
    ]


async def revoke_invitation(session: AsyncSession, token: str, caller_id: uuid.UUID) -> None:
    invitation, _ = await _get_pending_or_404(session, token)
    await require_manage(session, caller_id, invitation.meridian_id)

    await session.delete(invitation)
    await session.flush()
    log.info(
        "invitation.revoked",
        invitation_id=str(invitation.id),
        meridian_id=str(invitation.meridian_id),
        by=str(caller_id),
    )


# ---------------------------------------------------------------------------
# Invitee operations
# ---------------------------------------------------------------------------


async def preview_invitation(session: AsyncSession, token: str) -> InvitationPreview:
    invitation, meridian = await _get_pending_or_404(session, token)
    inviter = await session.get(User, invitation.created_by)
    return InvitationPreview(
        role=invitation.role,
        email=invitation.email,
        expires_at=as_utc(invitation.expires_at),
        meridian_id=meridian.id,
        meridian_name=meridian.name,
        meridian_color=meridian.color,
        inviter_name=inviter.display_name if inviter else None,
    )


async def accept_invitation(
    session: AsyncSession, token: str, user: User
) -> InvitationAcceptResponse:
    """Consume the invitation and grant membership in one transaction.

    An existing membership keeps its role. The invitation is claimed with a
    conditional update so only one of two concurrent accepts gets a row.
    """
    invitation, _ = await _get_pending_or_404(session, token)

    if invitation.email and (user.email or "").lower() != invitation.email.lower():
        raise AuthorizationError("This invitation was sent to a different email address")

    claimed = await session.execute(
        update(Invitation)
        .where(Invitation.id == invitation.id, Invitation.used_at.is_(None))
        .values(used_at=utcnow(), used_by=user.id)
    )
    if claimed.rowcount != 1:
        raise NotFoundError(NOT_PENDING_DETAIL)

    member = await session.get(MeridianMember, (invitation.meridian_id, user.id))
    if member is None:
        member = MeridianMember(
            meridian_id=invitation.meridian_id, user_id=user.id, role=invitation.role
        )
        session.add(member)
        await session.flush()
        joined = True
    else:
        joined = False

    log.info(
        "invitation.accepted",
        invitation_id=str(invitation.id),
        meridian_id=str(invitation.meridian_id),
        user_id=str(user.id),
        role=member.role,
        joined=joined,
    )
    return InvitationAcceptResponse(meridian_id=invitation.meridian_id, role=Role(member.role))
