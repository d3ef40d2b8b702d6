"""
API Router

Meridian-scoped collections live under /meridians/{meridianId}; single
resources are addressed by their own id.
"""

from fastapi import APIRouter
from . import items, meridians, members, sprints, users
from .invitations import router as invitations_router
from .invitations import router_scoped as invitations_scoped_router
from .statuses import router as statuses_router
from .statuses import router_scoped as statuses_scoped_router

router = APIRouter()

# Board and profile
router.include_router(users.router)

# Meridians and their scoped collections
router.include_router(meridians.router, prefix="/meridians")
router.include_router(statuses_scoped_router, prefix="/meridians/{meridianId}/statuses")
router.include_router(members.router, prefix="/meridians/{meridianId}/members")
router.include_router(invitations_scoped_router, prefix="/meridians/{meridianId}/invitations")

# Resources addressed by id
router.include_router(statuses_router, prefix="/statuses")
router.include_router(items.router, prefix="/items")
router.include_router(sprints.router, prefix="/sprints")
router.include_router(invitations_router, prefix="/invitations")
