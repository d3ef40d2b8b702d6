"""
Integration tests for meridians and their status pipeline.

Tests cover:
- Meridian create/update/soft-delete and slug rules
- Default status seeding
- Status CRUD, ordering and the last-status / only-default guards
- Reassignment of items when a status is deleted
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import add_member, create_item, create_meridian, user_id_of


async def _statuses(client: AsyncClient, headers: dict, meridian_id: str) -> list[dict]:
    response = await client.get(f"/api/meridians/{meridian_id}/statuses", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def _no_check(*args, **kwargs) -> None:
    return None


# ---------------------------------------------------------------------------
# Meridians
# ---------------------------------------------------------------------------

class TestMeridians:

    @pytest.mark.asyncio
    async def test_create_seeds_pipeline_and_owner(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops", color="#112233")
        assert meridian["slug"] == "ops"
        assert meridian["isActive"] is True

        statuses = await _statuses(client, alice, meridian["id"])
        assert [s["name"] for s in statuses] == ["Adrift", "In Progress", "In Irons", "Complete"]
        assert [s["position"] for s in statuses] == [0, 1, 2, 3]
        assert statuses[0]["isDefault"] is True
        assert statuses[2]["isBlocked"] is True
        assert statuses[3]["isComplete"] is True

        board = (await client.get("/api/board", headers=alice)).json()
        assert board["myRoles"] == {meridian["id"]: "owner"}

    @pytest.mark.asyncio
    async def test_bad_slug_rejected(self, client: AsyncClient, alice):
        response = await client.post(
            "/api/meridians", json={"name": "Ops", "slug": "Not Valid"}, headers=alice
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, client: AsyncClient, alice):
        response = await client.post(
            "/api/meridians", json={"name": "   ", "slug": "ops"}, headers=alice
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_duplicate_slug_conflicts(self, client: AsyncClient, alice, bob):
        await create_meridian(client, alice, "ops")
        response = await client.post(
            "/api/meridians", json={"name": "Other", "slug": "ops"}, headers=bob
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_slug_race_at_insert_conflicts(self, client: AsyncClient, monkeypatch, alice, bob):
        await create_meridian(client, alice, "ops")
        # A concurrent request that passed the slug check before this insert.
        monkeypatch.setattr("app.services.meridians._ensure_slug_free", _no_check)
        response = await client.post(
            "/api/meridians", json={"name": "Other", "slug": "ops"}, headers=bob
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "A meridian with that slug already exists"

    @pytest.mark.asyncio
    async def test_update_by_owner(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        response = await client.patch(
            f"/api/meridians/{meridian['id']}",
            json={"name": "Operations", "description": "Night shift"},
            headers=alice,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Operations"
        assert body["description"] == "Night shift"
        assert body["slug"] == "ops"

    @pytest.mark.asyncio
    async def test_update_slug_conflict(self, client: AsyncClient, alice):
        await create_meridian(client, alice, "ops")
        second = await create_meridian(client, alice, "dev")
        response = await client.patch(
            f"/api/meridians/{second['id']}", json={"slug": "ops"}, headers=alice
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_member_cannot_update(self, client: AsyncClient, alice, bob):
        meridian = await create_meridian(client, alice, "ops")
        await add_member(client, alice, meridian["id"], await user_id_of(client, bob), "member")

        response = await client.patch(
            f"/api/meridians/{meridian['id']}", json={"name": "Mine"}, headers=bob
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_non_member_forbidden(self, client: AsyncClient, alice, bob):
        meridian = await create_meridian(client, alice, "ops")
        response = await client.get(f"/api/meridians/{meridian['id']}/statuses", headers=bob)
        assert response.status_code == 403
        assert response.json()["detail"] == "Not a member of this meridian"

    @pytest.mark.asyncio
    async def test_soft_delete_hides_meridian(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        await create_item(client, alice, meridian["id"], "arc", "Voyage")

        response = await client.delete(f"/api/meridians/{meridian['id']}", headers=alice)
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        board = (await client.get("/api/board", headers=alice)).json()
        assert board["meridians"] == []
        assert board["items"] == []

        again = await client.get(f"/api/meridians/{meridian['id']}/statuses", headers=alice)
        assert again.status_code == 404


# ---------------------------------------------------------------------------
# Statuses
# ---------------------------------------------------------------------------

class TestStatuses:

    @pytest.mark.asyncio
    async def test_create_appends(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        response = await client.post(
            f"/api/meridians/{meridian['id']}/statuses",
            json={"name": "Review", "color": "#ABCDEF"},
            headers=alice,
        )
        assert response.status_code == 201
        assert response.json()["position"] == 4

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        response = await client.post(
            f"/api/meridians/{meridian['id']}/statuses", json={"name": "Adrift"}, headers=alice
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_name_race_at_insert_conflicts(self, client: AsyncClient, monkeypatch, alice):
        meridian = await create_meridian(client, alice, "ops")
        monkeypatch.setattr("app.services.statuses._ensure_name_free", _no_check)
        response = await client.post(
            f"/api/meridians/{meridian['id']}/statuses", json={"name": "Adrift"}, headers=alice
        )
        assert response.status_code == 409

        statuses = await _statuses(client, alice, meridian["id"])
        assert [s["name"] for s in statuses].count("Adrift") == 1

    @pytest.mark.asyncio
    async def test_member_cannot_manage_statuses(self, client: AsyncClient, alice, bob):
        meridian = await create_meridian(client, alice, "ops")
        await add_member(client, alice, meridian["id"], await user_id_of(client, bob), "member")
        response = await client.post(
            f"/api/meridians/{meridian['id']}/statuses", json={"name": "Mine"}, headers=bob
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Only owners can do this"

    @pytest.mark.asyncio
    async def test_patch_requires_a_field(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        status_id = (await _statuses(client, alice, meridian["id"]))[1]["id"]
        response = await client.patch(f"/api/statuses/{status_id}", json={}, headers=alice)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_patch_rename(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        status_id = (await _statuses(client, alice, meridian["id"]))[1]["id"]
        response = await client.patch(
            f"/api/statuses/{status_id}", json={"name": "Underway"}, headers=alice
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Underway"

    @pytest.mark.asyncio
    async def test_cannot_unset_only_default(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        default_id = (await _statuses(client, alice, meridian["id"]))[0]["id"]
        response = await client.patch(
            f"/api/statuses/{default_id}", json={"isDefault": False}, headers=alice
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_cannot_delete_only_default(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        default_id = (await _statuses(client, alice, meridian["id"]))[0]["id"]

        response = await client.delete(f"/api/statuses/{default_id}", headers=alice)
        assert response.status_code == 409
        assert "only default" in response.json()["detail"]
        assert len(await _statuses(client, alice, meridian["id"])) == 4

    @pytest.mark.asyncio
    async def test_cannot_delete_last_status(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        statuses = await _statuses(client, alice, meridian["id"])
        for status in statuses[1:]:
            response = await client.delete(f"/api/statuses/{status['id']}", headers=alice)
            assert response.status_code == 200

        response = await client.delete(f"/api/statuses/{statuses[0]['id']}", headers=alice)
        assert response.status_code == 409
        assert response.json()["detail"] == "Cannot delete the last status"

    @pytest.mark.asyncio
    async def test_delete_reassigns_items_to_default(self, client: AsyncClient, alice):
        meridian = await create_meridian(client, alice, "ops")
        statuses = await _statuses(client, alice, meridian["id"])
        default_id, working_id = statuses[0]["id"], statuses[1]["id"]

        item = await create_item(client, alice, meridian["id"], "arc", "Voyage")
        response = await client.patch(
            f"/api/items/{item['id']}", json={"field": "statusId", "value": working_id}, headers=alice
        )
        assert response.status_code == 200

        response = await client.delete(f"/api/statuses/{working_id}", headers=alice)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "reassignedTo": default_id}

        board = (await client.get("/api/board", headers=alice)).json()
        assert board["items"][0]["statusId"] == default_id
