"""Request handling for the message resource.

Each operation follows the same order: validate, look the message up,
authorize, persist, transform. A missing message is always reported before
a policy refusal, so callers cannot probe for messages they do not own.
"""

from collections.abc import Mapping

from loguru import logger

from src.core.exceptions import NotFoundError, PersistenceError, ValidationError
from src.core.observability import trace_operation
from src.core.types import FieldMap, JsonObject
from src.domain.policies import (
    Actor,
    MessageAction,
    Policy,
    authorize,
    ensure_authorized,
)
from src.domain.transformers import MessageTransformer, Pagination, to_model_filters
from src.infrastructure.database.models import Message
from src.infrastructure.database.repositories import MessageRepository, UserRepository

CREATE_FAILED_MESSAGE = "Error occurred on creating Message"
INVALID_USER_MESSAGE = "The selected user id is invalid."
MUTABLE_FIELDS = frozenset({"subject", "message"})


def not_found_message(uid: str) -> str:
    """Client-facing text for a message id that matches nothing."""
    return f"The message with id {uid} doesn't exist"


class MessageHandler:
    """Implements index, show, store, update and destroy for messages.

    Args:
        messages: Repository for the message table.
        users: Repository used to check that owners exist.
        policy: Ownership predicate applied before show, update and destroy.
        transformer: Builds the response payloads.
    """

    def __init__(
        self,
        messages: MessageRepository,
        users: UserRepository,
        policy: Policy = authorize,
        transformer: MessageTransformer | None = None,
    ) -> None:
        self._messages = messages
        self._users = users
        self._policy = policy
        self._transformer = transformer or MessageTransformer()

    async def _find_or_fail(self, uid: str) -> Message:
        message = await self._messages.find_one(uid)
        if message is None:
            raise NotFoundError(not_found_message(uid), context={"message_id": uid})
        return message

    async def _owner_exists(self, user_id: object) -> bool:
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return False
        return await self._users.exists(user_id)

    async def index(
        self,
        actor: Actor,
        filters: Mapping[str, str],
        *,
        page: int | None = None,
        per_page: int | None = None,
    ) -> JsonObject:
        """List messages matching ``filters`` (public field names).

        Paging applies only when ``page`` or ``per_page`` is given; the
        caller resolves defaults for the other one.
        """
        model_filters = to_model_filters(filters)
        with trace_operation("messages.index", user_id=actor.id):
            if page is None or per_page is None:
                messages = await self._messages.find_by(model_filters)
                logger.debug("Listed {} messages", len(messages), user_id=actor.id)
                return self._transformer.collection(messages)

            total = await self._messages.count_by(model_filters)
            messages = await self._messages.find_by(
                model_filters, skip=(page - 1) * per_page, limit=per_page
            )
            pagination = Pagination(
                total=total,
                count=len(messages),
                per_page=per_page,
                current_page=page,
            )
            return self._transformer.collection(messages, pagination)

    async def show(self, actor: Actor, uid: str) -> JsonObject:
        with trace_operation("messages.show", message_id=uid, user_id=actor.id):
            message = await self._find_or_fail(uid)
            ensure_authorized(MessageAction.SHOW, actor, message, policy=self._policy)
            return self._transformer.item(message)

    async def store(
        self,
        actor: Actor,
        fields: FieldMap,
        field_errors: Mapping[str, list[str]] | None = None,
    ) -> JsonObject:
        """Create a message owned by ``fields["user_id"]``.

        Args:
            actor: The authenticated caller.
            fields: Validated body values.
            field_errors: Problems already found in the body, keyed by
                external field name. They are reported together with an
                unknown owner.

        Raises:
            ValidationError: If the body is invalid or the owner does not exist.
            PersistenceError: If the store does not return the new row.
        """
        errors = {
            field: list(messages) for field, messages in (field_errors or {}).items()
        }
        user_id = fields.get("user_id")
        with trace_operation("messages.store", user_id=actor.id):
            if "userId" not in errors and not await self._owner_exists(user_id):
                errors["userId"] = [INVALID_USER_MESSAGE]
            if errors:
                raise ValidationError(
                    "Request validation failed",
                    context={"validation_errors": errors},
                )

            message = await self._messages.save(
                {
                    "user_id": user_id,
                    "subject": fields["subject"],
                    "message": fields["message"],
                }
            )
            if message is None:
                raise PersistenceError(CREATE_FAILED_MESSAGE)

            logger.info(
                "Message {} created for user {}",
                message.uid,
                user_id,
                user_id=actor.id,
                message_id=message.uid,
            )
            return self._transformer.item(message)

    async def update(self, actor: Actor, uid: str, fields: FieldMap) -> JsonObject:
        """Apply the given content fields; ownership and id never change."""
        with trace_operation("messages.update", message_id=uid, user_id=actor.id):
            message = await self._find_or_fail(uid)
            ensure_authorized(
                MessageAction.UPDATE, actor, message, policy=self._policy
            )

            changes = {k: v for k, v in fields.items() if k in MUTABLE_FIELDS}
            message = await self._messages.update(message, changes)
            return self._transformer.item(message)

    async def destroy(self, actor: Actor, uid: str) -> None:
        with trace_operation("messages.destroy", message_id=uid, user_id=actor.id):
            message = await self._find_or_fail(uid)
            ensure_authorized(
                MessageAction.DESTROY, actor, message, policy=self._policy
            )
            await self._messages.delete(message)
