"""
Database connection and session management.

Each request gets one AsyncSession; everything a request does commits
together or not at all.
"""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import get_settings
from app.core.errors import ConflictError

settings = get_settings()
log = structlog.get_logger()

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    future=True,
    pool_pre_ping=True,
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def ping(session: AsyncSession) -> None:
    """Round-trip to the store; raises if it is unreachable."""
    await session.execute(text("SELECT 1"))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise



async def flush_unique(session: AsyncSession, detail: str) -> None:
    """Flush, turning a unique-constraint race into a 409."""
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        log.warning("db.integrity_conflict", error=str(exc.orig))
        raise ConflictError(detail) from exc
