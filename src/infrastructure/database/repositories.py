"""Concrete repositories for the persisted entities."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Message, User
from src.infrastructure.database.repository import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for messages, addressed by their external ``uid``."""

    lookup_field = "uid"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Message)


class UserRepository(BaseRepository[User]):
    """Read access to users; only existence is ever checked by the API."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)
