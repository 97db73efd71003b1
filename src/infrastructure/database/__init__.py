"""Database access layer built on SQLAlchemy 2.0 async sessions.

Core components:
- **base**: Declarative base and common model fields
- **models**: ``User`` and ``Message`` tables
- **session**: Async engine and session management
- **repository**: Generic repository with lookup, filtering and writes
- **repositories**: Concrete repositories per model
- **dependencies**: FastAPI dependency injection helpers

PostgreSQL (asyncpg) is the production backend; SQLite (aiosqlite) is
supported for local runs and tests.
"""

from src.infrastructure.database.base import Base, BaseModel
from src.infrastructure.database.dependencies import (
    DatabaseSession,
    get_db,
    get_message_repository,
    get_user_repository,
)
from src.infrastructure.database.models import Message, User
from src.infrastructure.database.repositories import (
    MessageRepository,
    UserRepository,
)
from src.infrastructure.database.repository import BaseRepository
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
    create_database_engine,
    get_async_session,
    get_engine,
    get_session_factory,
)

__all__ = [
    "Base",
    "BaseModel",
    "BaseRepository",
    "DatabaseSession",
    "Message",
    "MessageRepository",
    "User",
    "UserRepository",
    "check_database_connection",
    "close_database",
    "create_database_engine",
    "get_async_session",
    "get_db",
    "get_engine",
    "get_message_repository",
    "get_session_factory",
    "get_user_repository",
]
