"""Request and response models for the ``/messages`` resource.

Field names on the wire are camelCase (``userId``, ``createdAt``); the
models use snake_case attributes with camelCase aliases.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from src.infrastructure.constants import MAX_INTEGER_VALUE

SUBJECT_MAX_LENGTH = 255

# Whitespace-only text counts as missing.
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageOwner(_CamelModel):
    """The ``userId`` part of a create body, validated on its own."""

    user_id: int = Field(
        ...,
        ge=1,
        le=MAX_INTEGER_VALUE,
        description="Primary key of the user that will own the message",
        examples=[1],
    )


class MessageCreate(MessageOwner):
    """Body of ``POST /messages``."""

    subject: RequiredText = Field(
        ...,
        max_length=SUBJECT_MAX_LENGTH,
        description="Message subject",
        examples=["Quarterly report"],
    )
    message: RequiredText = Field(
        ...,
        description="Message body",
        examples=["The report is attached."],
    )


class MessageUpdate(_CamelModel):
    """Body of ``PUT``/``PATCH /messages/{id}``. Omitted fields are kept."""

    subject: str | None = Field(
        default=None, min_length=1, max_length=SUBJECT_MAX_LENGTH
    )
    message: str | None = Field(default=None, min_length=1)


class MessageData(_CamelModel):
    """Public representation of a message."""

    id: str = Field(..., description="External message identifier (UUID)")
    user_id: int = Field(..., description="Owner of the message")
    subject: str
    message: str
    created_at: str = Field(..., examples=["2024-06-14 12:00:00"])
    updated_at: str = Field(..., examples=["2024-06-14 12:00:00"])


class MessageResponse(BaseModel):
    """Envelope for a single message."""

    data: MessageData


class PaginationMeta(BaseModel):
    total: int
    count: int
    per_page: int
    current_page: int
    total_pages: int


class CollectionMeta(BaseModel):
    pagination: PaginationMeta


class MessageCollectionResponse(BaseModel):
    """Envelope for a list of messages; ``meta`` is present only when paged."""

    data: list[MessageData]
    meta: CollectionMeta | None = None
