"""Request-scoped database sessions."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal

logger = get_logger(__name__)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Whatever the handler left uncommitted is rolled back if it raises, and
    discarded when the session closes otherwise.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as exc:
            if session.in_transaction():
                logger.debug("Rolling back open transaction after %s", type(exc).__name__)
            await session.rollback()
            raise
