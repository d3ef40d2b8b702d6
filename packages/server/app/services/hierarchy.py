"""
Work item tree traversal.

Both directions follow parent_id pointers over rows fetched inside the
caller's transaction:

- ancestry: from a node up to the root, nearest first
- subtree: a node plus every active descendant, level by level (BFS)

Walks keep a visited set so a cycle introduced by racing reparents ends
the walk instead of looping, and they refuse to go deeper than the
configured depth.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import ConflictError
from app.models.base import utcnow
from app.models.work_item import WorkItem
from meridian_shared.schemas.common import ItemType


@dataclass(frozen=True)
class Node:
    id: uuid.UUID
    parent_id: Optional[uuid.UUID]
    type: str
    meridian_id: uuid.UUID


def nearest_arc(chain: Iterable[Node]) -> Optional[Node]:
    """First arc in an ancestry chain (nearest first)."""
    for node in chain:
        if node.type == ItemType.ARC.value:
            return node
    return None


class TreeWalker:
    """Ancestor/descendant walks bound to one session."""

    def __init__(self, session: AsyncSession, max_depth: Optional[int] = None):
        self.session = session
        self.max_depth = max_depth if max_depth is not None else get_settings().hierarchy_max_depth

    async def _node(self, item_id: uuid.UUID) -> Optional[Node]:
        result = await self.session.execute(
            select(WorkItem.id, WorkItem.parent_id, WorkItem.type, WorkItem.meridian_id).where(
                WorkItem.id == item_id
            )
        )
        row = result.one_or_none()
        return Node(*row) if row else None

    async def ancestry(self, start_id: uuid.UUID) -> list[Node]:
        """The start node and its ancestors, nearest first.

        Stops quietly at a missing parent; raises ConflictError on a cycle or
        when the chain is deeper than max_depth.
        """
        chain: list[Node] = []
        seen: set[uuid.UUID] = set()
        current: Optional[uuid.UUID] = start_id
        while current is not None:
            if current in seen:
                raise ConflictError("Work item hierarchy contains a cycle")
            if len(chain) > self.max_depth:
                raise ConflictError("Work item hierarchy is too deep")
            seen.add(current)
            node = await self._node(current)
            if node is None:
                break
            chain.append(node)
            current = node.parent_id
        return chain

    async def subtree(self, root_id: uuid.UUID) -> list[uuid.UUID]:
        """The root plus all active descendants, breadth first."""
        ids = [root_id]
        seen = {root_id}
        frontier = [root_id]
        depth = 0
        while frontier:
            result = await self.session.execute(
                select(WorkItem.id).where(
                    WorkItem.parent_id.in_(frontier),
                    WorkItem.is_active,
                )
            )
            children = [cid for cid in result.scalars().all() if cid not in seen]
            if not children:
                break
            depth += 1
            if depth > self.max_depth:
                raise ConflictError("Work item hierarchy is too deep")
            seen.update(children)
            ids.extend(children)
            frontier = children
        return ids

    async def resolve_meridian(
        self, parent_id: Optional[uuid.UUID], fallback: uuid.UUID
    ) -> uuid.UUID:
        """Meridian of the nearest arc at or above parent_id, else fallback."""
        if parent_id is None:
            return fallback
        arc = nearest_arc(await self.ancestry(parent_id))
        return arc.meridian_id if arc else fallback

    async def cascade_meridian(self, root_id: uuid.UUID, meridian_id: uuid.UUID) -> list[uuid.UUID]:
        """Set meridian_id on the root and its active subtree in one statement."""
        ids = await self.subtree(root_id)
        await self.session.execute(
            update(WorkItem)
            .where(WorkItem.id.in_(ids))
            .values(meridian_id=meridian_id, updated_at=utcnow())
        )
        return ids

    async def deactivate(self, root_id: uuid.UUID) -> list[uuid.UUID]:
        """Soft-delete the root and its active subtree in one statement."""
        ids = await self.subtree(root_id)
        await self.session.execute(
            update(WorkItem)
            .where(WorkItem.id.in_(ids))
            .values(is_active=False, updated_at=utcnow())
        )
        return ids
