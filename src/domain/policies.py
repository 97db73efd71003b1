"""Ownership-based authorization for messages.

A caller may read, change or remove a message when it owns the message or
holds the admin scope. The admin check always runs first.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from src.core.constants import ADMIN_SCOPE
from src.core.exceptions import ForbiddenError
from src.infrastructure.database.models import Message


class MessageAction(Enum):
    """Actions on a single message that are subject to the policy."""

    SHOW = "show"
    UPDATE = "update"
    DESTROY = "destroy"


@dataclass(frozen=True, slots=True)
class Actor:
    """The authenticated caller acting on a request."""

    id: int
    scopes: frozenset[str] = field(default_factory=frozenset)

    def has_scope(self, scope: str) -> bool:
        """Check whether the caller's token grants ``scope``."""
        return scope in self.scopes


type Policy = Callable[[MessageAction, Actor, Message], bool]


def authorize(
    action: MessageAction,
    actor: Actor,
    message: Message,
    *,
    admin_scope: str = ADMIN_SCOPE,
) -> bool:
    """Decide whether ``actor`` may perform ``action`` on ``message``.

    Args:
        action: The attempted action.
        actor: The authenticated caller.
        message: The loaded target message.
        admin_scope: Scope that grants every action.

    Returns:
        bool: True when allowed.
    """
    if actor.has_scope(admin_scope):
        return True

    if not isinstance(action, MessageAction):
        return False

    return actor.id == message.user_id


def ensure_authorized(
    action: MessageAction,
    actor: Actor,
    message: Message,
    *,
    policy: Policy = authorize,
) -> None:
    """Raise ``ForbiddenError`` unless ``policy`` allows the action.

    Raises:
        ForbiddenError: If the policy refuses.
    """
    if policy(action, actor, message):
        return

    action_name = getattr(action, "value", str(action))
    logger.warning(
        "User {} refused {} on message {}",
        actor.id,
        action_name,
        message.uid,
        user_id=actor.id,
        message_id=message.uid,
    )
    raise ForbiddenError(context={"action": action_name, "message_id": message.uid})
