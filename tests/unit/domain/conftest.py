"""Fixtures for domain unit tests."""

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from src.infrastructure.database.models import Message

MessageFactory = Callable[..., Message]


@pytest.fixture
def make_message() -> MessageFactory:
    """Build detached Message instances with sensible defaults."""

    def _make(**overrides: object) -> Message:
        values: dict[str, object] = {
            "id": 1,
            "uid": "6f1c1a3e-8a4b-4c55-9d0e-1a2b3c4d5e6f",
            "user_id": 10,
            "subject": "Hello",
            "message": "World",
            "created_at": datetime(2024, 6, 14, 12, 0, 0, tzinfo=UTC),
            "updated_at": datetime(2024, 6, 14, 12, 30, 0, tzinfo=UTC),
        }
        values.update(overrides)
        return Message(**values)

    return _make
