"""Conversion of stored messages into their public JSON shape.

Clients never see the surrogate primary key or snake_case column names:
``uid`` is published as ``id`` and the owner and timestamps use camelCase.
``FILTER_FIELDS`` maps those public names back to model attributes so the
same names work as query filters.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from src.core.constants import TIMESTAMP_FORMAT
from src.core.types import JsonObject
from src.infrastructure.database.models import Message

FILTER_FIELDS: Mapping[str, str] = {
    "id": "uid",
    "userId": "user_id",
    "subject": "subject",
    "message": "message",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ``YYYY-MM-DD HH:MM:SS`` in UTC.

    Naive values are taken to be UTC already (SQLite returns them that way).
    """
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(TIMESTAMP_FORMAT)


def to_model_filters(query: Mapping[str, str]) -> dict[str, str]:
    """Translate public filter names to model attributes.

    Names without a public mapping are passed through unchanged; the
    repository ignores anything that is not a column.
    """
    return {FILTER_FIELDS.get(name, name): value for name, value in query.items()}


@dataclass(frozen=True, slots=True)
class Pagination:
    """Position of one page within a filtered collection."""

    total: int
    count: int
    per_page: int
    current_page: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    def to_dict(self) -> JsonObject:
        return {
            "total": self.total,
            "count": self.count,
            "per_page": self.per_page,
            "current_page": self.current_page,
            "total_pages": self.total_pages,
        }


class MessageTransformer:
    """Builds ``{"data": ...}`` envelopes for single messages and lists."""

    def transform(self, message: Message) -> JsonObject:
        return {
            "id": message.uid,
            "userId": message.user_id,
            "subject": message.subject,
            "message": message.message,
            "createdAt": format_timestamp(message.created_at),
            "updatedAt": format_timestamp(message.updated_at),
        }

    def item(self, message: Message) -> JsonObject:
        return {"data": self.transform(message)}

    def collection(
        self,
        messages: Iterable[Message],
        pagination: Pagination | None = None,
    ) -> JsonObject:
        """Wrap a list of messages, adding ``meta.pagination`` when paged."""
        payload: JsonObject = {"data": [self.transform(m) for m in messages]}
        if pagination is not None:
            payload["meta"] = {"pagination": pagination.to_dict()}
        return payload
