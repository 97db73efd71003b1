"""Unit tests for BaseRepository with a mocked session."""

from datetime import datetime

import pytest
import pytest_check
from pytest_mock import MockerFixture, MockType
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Message
from src.infrastructure.database.repositories import MessageRepository
from src.infrastructure.database.repository import _coerce, _UncoercibleValueError


@pytest.fixture
def mock_session(mocker: MockerFixture) -> MockType:
    session = mocker.create_autospec(AsyncSession, instance=True)
    session.add = mocker.Mock()
    return session


@pytest.fixture
def repository(mock_session: MockType) -> MessageRepository:
    return MessageRepository(mock_session)


@pytest.mark.unit
class TestCoerce:
    """Test conversion of raw filter values."""

    @pytest.mark.parametrize(
        ("value", "python_type", "expected"),
        [
            ("5", int, 5),
            (5, int, 5),
            ("abc", str, "abc"),
            ("2024-06-14 12:00:00", datetime, datetime(2024, 6, 14, 12, 0, 0)),
            ("true", bool, True),
            ("0", bool, False),
            (None, int, None),
            (str(2**63 - 1), int, 2**63 - 1),
        ],
    )
    def test_converts(self, value: object, python_type: type, expected: object) -> None:
        assert _coerce(value, python_type) == expected

    @pytest.mark.parametrize(
        ("value", "python_type"),
        [
            ("abc", int),
            ("yesterday", datetime),
            ("maybe", bool),
            (str(2**63), int),
            (2**70, int),
            (-(2**63) - 1, int),
        ],
    )
    def test_rejects(self, value: object, python_type: type) -> None:
        with pytest.raises(_UncoercibleValueError):
            _coerce(value, python_type)


@pytest.mark.unit
class TestRepositoryWrites:
    """Test save, update and delete against a mocked session."""

    def test_lookup_field(self, repository: MessageRepository) -> None:
        assert repository.lookup_field == "uid"
        assert repository.model_class is Message

    async def test_save_drops_unknown_fields(
        self, repository: MessageRepository, mock_session: MockType
    ) -> None:
        result = await repository.save(
            {"user_id": 1, "subject": "s", "message": "m", "userId": 1}
        )

        added = mock_session.add.call_args.args[0]
        with pytest_check.check:
            assert result is added
        with pytest_check.check:
            assert added.subject == "s"
        mock_session.flush.assert_awaited_once()
        mock_session.refresh.assert_awaited_once_with(added)

    async def test_save_failure_rolls_back(
        self, repository: MessageRepository, mock_session: MockType
    ) -> None:
        mock_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("fk"))

        result = await repository.save({"user_id": 1, "subject": "s", "message": "m"})

        assert result is None
        mock_session.rollback.assert_awaited_once()

    async def test_update_ignores_non_columns(
        self, repository: MessageRepository, mock_session: MockType
    ) -> None:
        message = Message(id=1, uid="u", user_id=1, subject="old", message="body")

        result = await repository.update(message, {"subject": "new", "bogus": 1})

        assert result is message
        assert message.subject == "new"
        assert not hasattr(message, "bogus")
        mock_session.flush.assert_awaited_once()
        mock_session.refresh.assert_awaited_once_with(message)

    @pytest.mark.parametrize(("rowcount", "expected"), [(1, True), (0, False)])
    async def test_delete_reports_rowcount(
        self,
        repository: MessageRepository,
        mock_session: MockType,
        mocker: MockerFixture,
        rowcount: int,
        expected: bool,
    ) -> None:
        mock_session.execute.return_value = mocker.Mock(rowcount=rowcount)
        message = Message(id=1, uid="u", user_id=1, subject="s", message="m")

        assert await repository.delete(message) is expected
        mock_session.execute.assert_awaited_once()

    async def test_find_one_returns_scalar(
        self,
        repository: MessageRepository,
        mock_session: MockType,
        mocker: MockerFixture,
    ) -> None:
        message = Message(id=1, uid="u", user_id=1, subject="s", message="m")
        result = mocker.Mock()
        result.scalar_one_or_none.return_value = message
        mock_session.execute.return_value = result

        assert await repository.find_one("u") is message

    async def test_get_by_id_uses_primary_key(
        self,
        repository: MessageRepository,
        mock_session: MockType,
        mocker: MockerFixture,
    ) -> None:
        result = mocker.Mock()
        result.scalar_one_or_none.return_value = None
        mock_session.execute.return_value = result

        assert await repository.get_by_id(7) is None

        statement = mock_session.execute.call_args.args[0]
        assert "messages.id" in str(statement)

    async def test_exists_looks_up_primary_key(
        self,
        repository: MessageRepository,
        mock_session: MockType,
        mocker: MockerFixture,
    ) -> None:
        message = Message(id=3, uid="u", user_id=1, subject="s", message="m")
        result = mocker.Mock()
        result.scalar_one_or_none.return_value = message
        mock_session.execute.return_value = result

        assert await repository.exists(3) is True

    async def test_exists_out_of_range_skips_query(
        self, repository: MessageRepository, mock_session: MockType
    ) -> None:
        assert await repository.exists(2**70) is False
        mock_session.execute.assert_not_awaited()
