"""FastAPI dependencies for authentication and handler wiring."""

from functools import partial
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from src.core.config import Settings, get_settings
from src.core.exceptions import UnauthorizedError
from src.core.security import decode_access_token
from src.domain.messages import MessageHandler
from src.domain.policies import Actor, authorize
from src.infrastructure.database.dependencies import (
    get_message_repository,
    get_user_repository,
)
from src.infrastructure.database.repositories import MessageRepository, UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    users: Annotated[UserRepository, Depends(get_user_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Actor:
    """Resolve the caller from the bearer token.

    Raises:
        UnauthorizedError: If the token is missing or invalid, or names a
            user that does not exist.
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")

    claims = decode_access_token(credentials.credentials, settings.auth_config)
    if not await users.exists(claims.user_id):
        logger.warning("Token subject {} does not exist", claims.user_id)
        raise UnauthorizedError("Could not validate credentials")

    return Actor(id=claims.user_id, scopes=claims.scopes)


def get_message_handler(
    messages: Annotated[MessageRepository, Depends(get_message_repository)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageHandler:
    """Build the message handler for one request."""
    policy = partial(authorize, admin_scope=settings.auth_config.admin_scope)
    return MessageHandler(messages, users, policy)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
Handler = Annotated[MessageHandler, Depends(get_message_handler)]
