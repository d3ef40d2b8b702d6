from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Role(str, Enum):
    OWNER = "owner"
    MEMBER = "member"
    VIEWER = "viewer"


# Roles an invitation may grant; ownership is only handed out directly.
INVITABLE_ROLES = (Role.MEMBER, Role.VIEWER)

# Ordering used when listing members.
ROLE_ORDER = {Role.OWNER.value: 0, Role.MEMBER.value: 1, Role.VIEWER.value: 2}


class ItemType(str, Enum):
    ARC = "arc"
    EPISODE = "episode"
    SIGNAL = "signal"
    RELAY = "relay"


# Expected parent type for each item type. Arcs are always top level.
PARENT_TYPE: dict["ItemType", Optional["ItemType"]] = {
    ItemType.ARC: None,
    ItemType.EPISODE: ItemType.ARC,
    ItemType.SIGNAL: ItemType.EPISODE,
    ItemType.RELAY: ItemType.SIGNAL,
}


class SprintState(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETE = "complete"


SPRINT_STATE_ORDER = {
    SprintState.ACTIVE.value: 0,
    SprintState.PLANNING.value: 1,
    SprintState.COMPLETE.value: 2,
}


class ActivityAction(str, Enum):
    STATUS_CHANGED = "status_changed"
    ASSIGNED = "assigned"
    COMMENTED = "commented"
    CREATED = "created"
    EDITED = "edited"


class InvitationState(str, Enum):
    PENDING = "pending"
    USED = "used"
    EXPIRED = "expired"


class OkResponse(CamelModel):
    ok: bool = True
