"""
Authentication for the Meridian API.

The hosting edge validates the OAuth login and forwards the caller's claims
in a base64-encoded JSON principal header. The API trusts that header as
already verified; it only decodes it and maps the identity onto an
internal user row (EnsureUser).

Supported providers: 'aad' (Microsoft) and 'google'. Set
MERIDIAN_DEV_AUTH_BYPASS=true locally to act as a fixed dev caller when no
header is present.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import AuthenticationError
from app.models.user import User
from app.services.users import ensure_user

log = structlog.get_logger()

CLAIM_OBJECT_ID = "http://schemas.microsoft.com/identity/claims/objectidentifier"
CLAIM_TENANT_ID = "http://schemas.microsoft.com/identity/claims/tenantid"
CLAIM_EMAIL = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/emailaddress"


@dataclass(frozen=True)
class Identity:
    """Provider-issued identity of the caller."""

    external_id: str
    identity_provider: Optional[str]
    tenant_id: Optional[str]
    email: Optional[str]
    name: Optional[str]


DEV_IDENTITY = Identity(
    external_id="dev-local-00000000-0000-0000-0000-000000000000",
    identity_provider="dev",
    tenant_id=None,
    email="dev@meridian.local",
    name="Dev User",
)


# ---------------------------------------------------------------------------
# Principal decoding
# ---------------------------------------------------------------------------

def encode_principal(principal: dict) -> str:
    """Inverse of decode_principal; used by local tooling and tests."""
    return base64.b64encode(json.dumps(principal).encode()).decode()


def decode_principal(header: str) -> Optional[Identity]:
    """Decode a client-principal header into an Identity.

    Returns None when the header is not valid base64 JSON or carries no
    usable external id.
    """
    try:
        principal = json.loads(base64.b64decode(header, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(principal, dict):
        return None

    claims = {}
    for claim in principal.get("claims") or []:
        if isinstance(claim, dict) and "typ" in claim:
            claims.setdefault(claim["typ"], claim.get("val"))

    external_id = claims.get(CLAIM_OBJECT_ID) or claims.get("oid") or principal.get("userId")
    if not external_id:
        return None

    return Identity(
        external_id=str(external_id),
        identity_provider=principal.get("identityProvider"),
        tenant_id=claims.get(CLAIM_TENANT_ID) or claims.get("tid"),
        email=claims.get(CLAIM_EMAIL)
        or claims.get("preferred_username")
        or principal.get("userDetails"),
        name=claims.get("name") or principal.get("userDetails"),
    )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_identity(request: Request) -> Identity:
    """Resolve the caller's identity or reject with 401."""
    settings = get_settings()
    header = request.headers.get(settings.principal_header)
    if not header:
        if settings.dev_auth_bypass:
            return DEV_IDENTITY
        raise AuthenticationError()

    identity = decode_principal(header)
    if identity is None:
        log.warning("auth.principal_rejected", path=request.url.path)
        raise AuthenticationError()
    return identity


async def get_current_user(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Main authentication dependency: the caller's internal user row."""
    user = await ensure_user(identity, session)
    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user
