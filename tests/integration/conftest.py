"""Shared fixtures for integration tests.

Every test gets its own in-memory SQLite database with the schema created
from the ORM metadata. The application's ``get_db`` dependency is overridden
to open sessions on that database, committing on success exactly like the
production dependency.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable, Iterable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.api.main import app
from src.core.config import get_settings
from src.core.context import RequestContext
from src.core.security import create_access_token
from src.infrastructure.database.base import Base
from src.infrastructure.database.dependencies import get_db
from src.infrastructure.database.models import User

TokenFactory = Callable[..., str]
UserFactory = Callable[..., Awaitable[User]]


@pytest.fixture(autouse=True)
def clean_request_context() -> None:
    RequestContext.clear()


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine shared by all sessions of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """A session for arranging and inspecting data outside of requests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient]:
    """HTTP client for the application, bound to the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> UserFactory:
    """Insert and commit a user."""
    counter = 0

    async def _create(name: str | None = None) -> User:
        nonlocal counter
        counter += 1
        async with session_factory() as session:
            user = User(
                name=name or f"User {counter}", email=f"user{counter}@example.com"
            )
            session.add(user)
            await session.commit()
            return user

    return _create


@pytest.fixture
def make_token() -> TokenFactory:
    """Sign a bearer token for a user id."""

    def _make(user_id: int, scopes: Iterable[str] = ()) -> str:
        return create_access_token(
            user_id, scopes, auth_config=get_settings().auth_config
        )

    return _make


@pytest.fixture
def auth_headers(make_token: TokenFactory) -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a user id."""

    def _headers(user_id: int, *, admin: bool = False) -> dict[str, str]:
        scopes = ["admin"] if admin else []
        return {"Authorization": f"Bearer {make_token(user_id, scopes)}"}

    return _headers
