"""
Schema validation tests (no DB needed).
"""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from meridian_shared.schemas.common import PARENT_TYPE, ItemType, Role
from meridian_shared.schemas.invitations import InvitationCreateRequest
from meridian_shared.schemas.items import ItemCreate, ItemField, ItemFieldUpdate
from meridian_shared.schemas.meridians import (
    DEFAULT_STATUSES,
    MeridianCreateRequest,
    StatusUpdateRequest,
)


class TestMeridianSchemas:

    def test_camel_case_aliases(self):
        req = MeridianCreateRequest.model_validate(
            {"name": " Ops ", "slug": "ops-1", "startDate": "2026-01-01"}
        )
        assert req.name == "Ops"
        assert req.start_date.isoformat() == "2026-01-01"

    @pytest.mark.parametrize("slug", ["Ops", "ops team", "ops_1", ""])
    def test_slug_pattern(self, slug):
        with pytest.raises(ValidationError):
            MeridianCreateRequest(name="Ops", slug=slug)

    def test_color_pattern(self):
        with pytest.raises(ValidationError):
            MeridianCreateRequest(name="Ops", slug="ops", color="red")

    def test_default_pipeline(self):
        names = [name for name, *_ in DEFAULT_STATUSES]
        assert names == ["Adrift", "In Progress", "In Irons", "Complete"]
        assert sum(1 for _, _, is_default, _, _ in DEFAULT_STATUSES if is_default) == 1

    def test_status_position_non_negative(self):
        with pytest.raises(ValidationError):
            StatusUpdateRequest(position=-1)


class TestItemSchemas:

    def test_parent_types(self):
        assert PARENT_TYPE[ItemType.ARC] is None
        assert PARENT_TYPE[ItemType.EPISODE] == ItemType.ARC
        assert PARENT_TYPE[ItemType.SIGNAL] == ItemType.EPISODE
        assert PARENT_TYPE[ItemType.RELAY] == ItemType.SIGNAL

    def test_create_serializes_camel_case(self):
        meridian_id = uuid.uuid4()
        item = ItemCreate(type="arc", title="A", meridian_id=meridian_id)
        dumped = item.model_dump(by_alias=True)
        assert dumped["meridianId"] == meridian_id
        assert "meridian_id" not in dumped

    def test_field_names_are_wire_names(self):
        update = ItemFieldUpdate.model_validate({"field": "statusId", "value": None})
        assert update.field == ItemField.STATUS_ID
        with pytest.raises(ValidationError):
            ItemFieldUpdate.model_validate({"field": "status_id", "value": None})


class TestInvitationSchemas:

    def test_defaults(self):
        req = InvitationCreateRequest()
        assert req.role == Role.MEMBER
        assert req.ttl_hours is None
        assert req.email is None

    def test_owner_not_invitable(self):
        with pytest.raises(ValidationError):
            InvitationCreateRequest(role="owner")

    def test_email_validated(self):
        with pytest.raises(ValidationError):
            InvitationCreateRequest(email="not-an-email")
