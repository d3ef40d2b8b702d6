# SQLModel definitions — imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .meridian import Meridian  # noqa: F401
from .meridian_member import MeridianMember  # noqa: F401
from .status import Status  # noqa: F401
from .sprint import Sprint  # noqa: F401
from .work_item import WorkItem  # noqa: F401
from .activity import ActivityLogEntry  # noqa: F401
from .invitation import Invitation  # noqa: F401
