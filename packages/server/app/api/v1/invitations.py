"""
Invitation API endpoints.

GET    /api/meridians/{meridianId}/invitations — List pending invitations (Owner only)
POST   /api/meridians/{meridianId}/invitations — Create an invite link (Owner only)
GET    /api/invitations/{token}               — Preview a pending invitation
POST   /api/invitations/{token}/accept        — Accept and join the meridian
DELETE /api/invitations/{token}               — Revoke (Owner only)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.core.roles import require_manage
from app.models.user import User
from app.services import invitations as invitation_service
from app.services.meridians import get_meridian_or_404
from meridian_shared.schemas.common import OkResponse
from meridian_shared.schemas.invitations import (
    InvitationAcceptResponse,
    InvitationCreateRequest,
    InvitationListResponse,
    InvitationPreview,
    InvitationResponse,
)

# ---------------------------------------------------------------------------
# Meridian-scoped routes (/meridians/{meridianId}/invitations)
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("", response_model=InvitationListResponse, tags=["Invitations"])
async def list_invitations(
    meridianId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await get_meridian_or_404(session, meridianId)
    await require_manage(session, user.id, meridianId)
    return InvitationListResponse(
        data=await invitation_service.list_pending(session, meridianId)
    )


@router_scoped.post("", response_model=InvitationResponse, status_code=201, tags=["Invitations"])
async def create_invitation(
    meridianId: uuid.UUID,
    body: InvitationCreateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Create an invite link. The token in the response is the only handle."""
    await get_meridian_or_404(session, meridianId)
    await require_manage(session, user.id, meridianId)
    invitation = await invitation_service.create_invitation(session, meridianId, body, user)
    await session.commit()
    return invitation


# ---------------------------------------------------------------------------
# Token routes (/invitations/{token})
# ---------------------------------------------------------------------------
router = APIRouter()


@router.get("/{token}", response_model=InvitationPreview, tags=["Invitations"])
async def preview_invitation(
    token: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    preview = await invitation_service.preview_invitation(session, token)
    await session.commit()
    return preview


@router.post("/{token}/accept", response_model=InvitationAcceptResponse, tags=["Invitations"])
async def accept_invitation(
    token: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Join the meridian. An existing membership keeps its current role."""
    accepted = await invitation_service.accept_invitation(session, token, user)
    await session.commit()
    return accepted


@router.delete("/{token}", response_model=OkResponse, tags=["Invitations"])
async def revoke_invitation(
    token: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    await invitation_service.revoke_invitation(session, token, user.id)
    await session.commit()
    return OkResponse()
