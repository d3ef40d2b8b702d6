"""
User and board endpoints.

GET    /api/board     — Everything the board renders for the caller
PATCH  /api/users/me  — Set the caller's display name
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.database import get_session
from app.models.user import User
from app.services import board as board_service
from app.services import users as user_service
from meridian_shared.schemas.users import (
    BoardResponse,
    UserUpdateMeRequest,
    UserUpdateMeResponse,
)

router = APIRouter()


@router.get("/board", response_model=BoardResponse, tags=["Board"])
async def get_board(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Meridians, statuses, sprints, people and active items the caller can see."""
    board = await board_service.load_board(session, user.id)
    # Persist the login touch from get_current_user.
    await session.commit()
    return board


@router.patch("/users/me", response_model=UserUpdateMeResponse, tags=["Users"])
async def update_me(
    body: UserUpdateMeRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.update_display_name(user, body.display_name, session)
    await session.commit()
    return UserUpdateMeResponse(display_name=user.display_name)
