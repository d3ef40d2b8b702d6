"""
User service: identity upsert on login and profile edits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import utcnow
from app.models.user import User

if TYPE_CHECKING:
    from app.core.auth import Identity

log = structlog.get_logger()


async def ensure_user(identity: "Identity", session: AsyncSession) -> User:
    """Create-or-touch the user for a provider identity; returns the stable row.

    Email follows the provider on every login. The display name follows the
    provider only until the user sets one themselves.
    """
    if identity.tenant_id is None:
        same_tenant = User.tenant_id.is_(None)
    else:
        same_tenant = User.tenant_id == identity.tenant_id

    result = await session.execute(
        select(User).where(User.external_id == identity.external_id, same_tenant)
    )
    user = result.scalar_one_or_none()
    now = utcnow()

    if user is None:
        user = User(
            external_id=identity.external_id,
            identity_provider=identity.identity_provider,
            tenant_id=identity.tenant_id,
            email=identity.email,
            display_name=identity.name or identity.email or "New user",
            last_login_at=now,
        )
        session.add(user)
        await session.flush()
        log.info("user.created", user_id=str(user.id), provider=identity.identity_provider)
        return user

    user.last_login_at = now
    if identity.email:
        user.email = identity.email
    if not user.display_name_set and identity.name:
        user.display_name = identity.name
    session.add(user)
    await session.flush()
    return user


async def update_display_name(user: User, display_name: str, session: AsyncSession) -> User:
    """Set a user-chosen display name; later logins no longer overwrite it."""
    user.display_name = display_name
    user.display_name_set = True
    session.add(user)
    await session.flush()
    log.info("user.renamed", user_id=str(user.id))
    return user
