"""
Work item API endpoints.

POST   /api/items                — Create an arc, episode, signal or relay
PATCH  /api/items/{itemId}       — Change a single field ({field, value})
DELETE /api/items/{itemId}       — Soft-delete the item and its subtree
GET    /api/items/{itemId}/activity — Activity log, oldest first
POST   /api/items/{itemId}/activity — Add a comment
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import items as item_service
from meridian_shared.schemas.common import OkResponse
from meridian_shared.schemas.items import (
    ActivityListResponse,
    CommentCreate,
    ItemCreate,
    ItemFieldUpdate,
    ItemRead,
)

router = APIRouter()


@router.post("", response_model=ItemRead, status_code=201, tags=["Items"])
async def create_item(
    body: ItemCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    item = await item_service.create_item(session, body, user.id)
    await session.commit()
    return ItemRead.model_validate(item)


@router.patch("/{itemId}", response_model=ItemRead, tags=["Items"])
async def update_item(
    itemId: uuid.UUID,
    body: ItemFieldUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Update one field. parentId and meridianId changes cascade to the subtree."""
    item = await item_service.get_item_or_404(session, itemId)
    item = await item_service.update_item_field(session, item, body.field, body.value, user.id)
    await session.commit()
    await session.refresh(item)
    return ItemRead.model_validate(item)


@router.delete("/{itemId}", response_model=OkResponse, tags=["Items"])
async def delete_item(
    itemId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    item = await item_service.get_item_or_404(session, itemId)
    await item_service.delete_item(session, item, user.id)
    await session.commit()
    return OkResponse()


@router.get("/{itemId}/activity", response_model=ActivityListResponse, tags=["Items"])
async def list_activity(
    itemId: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    item = await item_service.get_item_or_404(session, itemId)
    entries = await item_service.list_item_activity(session, item, user.id)
    await session.commit()
    return ActivityListResponse(data=entries)


@router.post("/{itemId}/activity", response_model=OkResponse, status_code=201, tags=["Items"])
async def add_comment(
    itemId: uuid.UUID,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    item = await item_service.get_item_or_404(session, itemId)
    await item_service.add_comment(session, item, body.note, user.id)
    await session.commit()
    return OkResponse()
