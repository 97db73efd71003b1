"""FastAPI dependency injection for database sessions and repositories.

One session is opened per request. It commits when the route returns and
rolls back when it raises.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.repositories import (
    MessageRepository,
    UserRepository,
)
from src.infrastructure.database.session import get_async_session


async def get_db() -> AsyncGenerator[AsyncSession]:
    """Provide a database session for FastAPI dependency injection.

    Yields:
        AsyncGenerator[AsyncSession]: A session committed on success or rolled
                                     back on error.
    """
    async with get_async_session() as session:
        logger.debug("Providing database session for request")
        try:
            yield session
        finally:
            logger.debug("Database session dependency completed")


# Type alias for cleaner dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]


def get_message_repository(session: DatabaseSession) -> MessageRepository:
    """Build a message repository bound to the request session."""
    return MessageRepository(session)


def get_user_repository(session: DatabaseSession) -> UserRepository:
    """Build a user repository bound to the request session."""
    return UserRepository(session)
