"""
Tests for principal decoding and the EnsureUser upsert.

Tests cover:
- Claim extraction precedence for external id, tenant, email and name
- Rejection of undecodable or anonymous principals
- First-login creation and later-login sync rules
- PATCH /users/me
"""

from __future__ import annotations

import base64

import pytest
from httpx import AsyncClient
from sqlmodel import select

from app.core.auth import (
    CLAIM_EMAIL,
    CLAIM_OBJECT_ID,
    CLAIM_TENANT_ID,
    Identity,
    decode_principal,
    encode_principal,
)
from app.core.config import get_settings
from app.models.user import User
from app.services.users import ensure_user, update_display_name

from conftest import principal_headers


# ---------------------------------------------------------------------------
# Principal decoding
# ---------------------------------------------------------------------------

class TestDecodePrincipal:

    def test_aad_claims(self):
        header = encode_principal({
            "identityProvider": "aad",
            "userId": "fallback-id",
            "userDetails": "someone@example.com",
            "claims": [
                {"typ": CLAIM_OBJECT_ID, "val": "oid-1"},
                {"typ": CLAIM_TENANT_ID, "val": "tenant-a"},
                {"typ": CLAIM_EMAIL, "val": "mail@example.com"},
                {"typ": "name", "val": "Mail Person"},
            ],
        })
        identity = decode_principal(header)
        assert identity == Identity(
            external_id="oid-1",
            identity_provider="aad",
            tenant_id="tenant-a",
            email="mail@example.com",
            name="Mail Person",
        )

    def test_short_claim_names(self):
        header = encode_principal({
            "identityProvider": "aad",
            "claims": [
                {"typ": "oid", "val": "oid-2"},
                {"typ": "tid", "val": "tenant-b"},
                {"typ": "preferred_username", "val": "pref@example.com"},
            ],
        })
        identity = decode_principal(header)
        assert identity.external_id == "oid-2"
        assert identity.tenant_id == "tenant-b"
        assert identity.email == "pref@example.com"
        assert identity.name is None

    def test_falls_back_to_user_id_and_details(self):
        header = encode_principal({
            "identityProvider": "google",
            "userId": "g-123",
            "userDetails": "g@example.com",
            "claims": [],
        })
        identity = decode_principal(header)
        assert identity.external_id == "g-123"
        assert identity.tenant_id is None
        assert identity.email == "g@example.com"
        assert identity.name == "g@example.com"

    def test_first_claim_of_a_type_wins(self):
        header = encode_principal({
            "claims": [
                {"typ": "oid", "val": "first"},
                {"typ": "oid", "val": "second"},
            ],
        })
        assert decode_principal(header).external_id == "first"

    def test_not_base64(self):
        assert decode_principal("%%% not base64 %%%") is None

    def test_not_json(self):
        assert decode_principal(base64.b64encode(b"plain text").decode()) is None

    def test_not_an_object(self):
        assert decode_principal(base64.b64encode(b"[1, 2]").decode()) is None

    def test_no_external_id(self):
        assert decode_principal(encode_principal({"userDetails": "x@example.com"})) is None


# ---------------------------------------------------------------------------
# EnsureUser
# ---------------------------------------------------------------------------

def _identity(**overrides) -> Identity:
    values = dict(
        external_id="ext-1",
        identity_provider="aad",
        tenant_id="tenant-1",
        email="first@example.com",
        name="First Name",
    )
    values.update(overrides)
    return Identity(**values)


class TestEnsureUser:

    @pytest.mark.asyncio
    async def test_first_login_creates_user(self, session):
        user = await ensure_user(_identity(), session)
        assert user.display_name == "First Name"
        assert user.email == "first@example.com"
        assert user.last_login_at is not None
        assert user.display_name_set is False

    @pytest.mark.asyncio
    async def test_second_login_returns_same_row(self, session):
        first = await ensure_user(_identity(), session)
        second = await ensure_user(_identity(), session)
        assert first.id == second.id

        rows = (await session.execute(select(User))).scalars().all()
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_tenant_distinguishes_users(self, session):
        a = await ensure_user(_identity(tenant_id="tenant-1"), session)
        b = await ensure_user(_identity(tenant_id="tenant-2"), session)
        c = await ensure_user(_identity(tenant_id=None), session)
        assert len({a.id, b.id, c.id}) == 3
        assert (await ensure_user(_identity(tenant_id=None), session)).id == c.id

    @pytest.mark.asyncio
    async def test_login_syncs_email_and_provider_name(self, session):
        await ensure_user(_identity(), session)
        user = await ensure_user(_identity(email="new@example.com", name="Renamed"), session)
        assert user.email == "new@example.com"
        assert user.display_name == "Renamed"

    @pytest.mark.asyncio
    async def test_user_chosen_name_survives_login(self, session):
        user = await ensure_user(_identity(), session)
        await update_display_name(user, "Captain", session)

        again = await ensure_user(_identity(name="Provider Name"), session)
        assert again.display_name == "Captain"

    @pytest.mark.asyncio
    async def test_name_falls_back_to_email(self, session):
        user = await ensure_user(_identity(name=None), session)
        assert user.display_name == "first@example.com"


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class TestAuthHttp:

    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, client: AsyncClient):
        response = await client.get("/api/board")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_header_is_401(self, client: AsyncClient):
        response = await client.get(
            "/api/board", headers={get_settings().principal_header: "not-a-principal"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_me(self, client: AsyncClient, alice):
        response = await client.patch(
            "/api/users/me", json={"displayName": "  Captain Alice  "}, headers=alice
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True, "displayName": "Captain Alice"}

    @pytest.mark.asyncio
    async def test_update_me_rejects_blank(self, client: AsyncClient, alice):
        response = await client.patch("/api/users/me", json={"displayName": "   "}, headers=alice)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_dev_bypass(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(get_settings(), "dev_auth_bypass", True)
        response = await client.get("/api/board")
        assert response.status_code == 200
        assert response.json()["meridians"] == []

    @pytest.mark.asyncio
    async def test_principal_helper_round_trips(self):
        headers = principal_headers("oid-x", "X", "x@example.com")
        identity = decode_principal(headers[get_settings().principal_header])
        assert identity.external_id == "oid-x"
        assert identity.tenant_id == "tenant-1"
