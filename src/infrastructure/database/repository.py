"""Base repository pattern implementation for database operations.

This module provides a generic repository base class implementing the
single-entity operations the API needs (lookup, filtered listing, create,
partial update, delete) for SQLAlchemy models using async sessions.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, ClassVar, TypeVar

from loguru import logger
from sqlalchemy import ColumnElement, Select, false, func, select
from sqlalchemy import delete as sql_delete
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from src.infrastructure.constants import (
    FILTER_VALUE_SEPARATOR,
    MAX_INTEGER_VALUE,
    MIN_INTEGER_VALUE,
)
from src.infrastructure.database.base import BaseModel

# Type variable for generic model type
T = TypeVar("T", bound=BaseModel)


class _UncoercibleValueError(ValueError):
    """A filter value cannot be converted to the column type."""


def _coerce(value: object, python_type: type[Any]) -> object:
    """Convert a raw filter value (usually a query string) to ``python_type``.

    Raises:
        _UncoercibleValueError: If the value does not fit the column type.
    """
    if value is None:
        return value
    try:
        if isinstance(value, python_type):
            converted = value
        elif python_type is datetime:
            converted = datetime.fromisoformat(str(value))
        elif python_type is bool:
            lowered = str(value).lower()
            if lowered in {"1", "true", "yes"}:
                return True
            if lowered in {"0", "false", "no"}:
                return False
            raise _UncoercibleValueError(value)
        else:
            converted = python_type(value)
    except (TypeError, ValueError) as e:
        raise _UncoercibleValueError(value) from e

    # Integer columns are BIGINT at most; larger values cannot be bound.
    if isinstance(converted, int) and not (
        MIN_INTEGER_VALUE <= converted <= MAX_INTEGER_VALUE
    ):
        raise _UncoercibleValueError(value)
    return converted


class BaseRepository[T: BaseModel]:
    """Base repository class providing common CRUD operations.

    ``find_one`` resolves the identifier exposed to clients. Subclasses whose
    models expose something other than the primary key set ``lookup_field``.

    Args:
        session: The async SQLAlchemy session to use for operations.
        model_class: The SQLAlchemy model class this repository manages.

    Example:
        class MessageRepository(BaseRepository[Message]):
            lookup_field = "uid"

            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, Message)
    """

    lookup_field: ClassVar[str] = "id"

    def __init__(self, session: AsyncSession, model_class: type[T]) -> None:
        self.session = session
        self.model_class = model_class
        self._columns: dict[str, InstrumentedAttribute[Any]] = {
            attr.key: getattr(model_class, attr.key)
            for attr in sa_inspect(model_class).column_attrs
        }
        logger.debug("Initialized repository for {}", model_class.__name__)

    @property
    def _name(self) -> str:
        return self.model_class.__name__

    async def get_by_id(self, entity_id: int) -> T | None:
        """Retrieve a model instance by its primary key.

        Args:
            entity_id: The primary key ID of the model to retrieve.

        Returns:
            T | None: The model instance if found, None otherwise.
        """
        logger.debug("Fetching {} by ID: {}", self._name, entity_id)

        stmt = select(self.model_class).where(self.model_class.id == entity_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_one(self, identifier: object) -> T | None:
        """Retrieve a model instance by its external identifier.

        Args:
            identifier: Value of ``lookup_field`` to match.

        Returns:
            T | None: The model instance if found, None otherwise.
        """
        column = self._columns[self.lookup_field]
        try:
            value = _coerce(identifier, column.type.python_type)
        except _UncoercibleValueError:
            logger.debug("{} lookup value {!r} is malformed", self._name, identifier)
            return None

        stmt = select(self.model_class).where(column == value)
        result = await self.session.execute(stmt)
        instance = result.scalar_one_or_none()

        if instance:
            logger.debug("Found {} with {}={}", self._name, self.lookup_field, value)
        else:
            logger.debug(
                "{} not found with {}={}", self._name, self.lookup_field, value
            )

        return instance

    def _apply_filters(
        self, stmt: Select[Any], filters: Mapping[str, object]
    ) -> Select[Any]:
        """Add one WHERE clause per recognized filter.

        Unknown field names are ignored. Comma-separated strings become IN
        filters. A value that cannot be converted to the column type makes
        the whole query match nothing.
        """
        for field, raw_value in filters.items():
            column = self._columns.get(field)
            if column is None:
                logger.warning(
                    "Ignoring filter on non-existent field '{}' of {}",
                    field,
                    self._name,
                )
                continue

            python_type = column.type.python_type
            try:
                if isinstance(raw_value, str) and FILTER_VALUE_SEPARATOR in raw_value:
                    values = [
                        _coerce(part.strip(), python_type)
                        for part in raw_value.split(FILTER_VALUE_SEPARATOR)
                    ]
                    clause: ColumnElement[bool] = column.in_(values)
                else:
                    clause = column == _coerce(raw_value, python_type)
            except _UncoercibleValueError:
                logger.debug(
                    "Filter {}={!r} does not fit column type, matching nothing",
                    field,
                    raw_value,
                )
                clause = false()

            stmt = stmt.where(clause)
        return stmt

    async def find_by(
        self,
        filters: Mapping[str, object] | None = None,
        *,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[T]:
        """Return instances matching all filters, ordered by primary key.

        Args:
            filters: Field-value pairs to filter by. Empty means all rows.
            skip: Number of records to skip.
            limit: Maximum number of records to return; None for no limit.

        Returns:
            list[T]: Matching model instances.
        """
        filters = filters or {}
        logger.debug(
            "Filtering {} with filters: {} (skip={}, limit={})",
            self._name,
            dict(filters),
            skip,
            limit,
        )

        stmt = self._apply_filters(select(self.model_class), filters)
        stmt = stmt.order_by(self.model_class.id).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        instances = list(result.scalars().all())

        logger.debug("Filtered {} - found {} instances", self._name, len(instances))

        return instances

    async def count_by(self, filters: Mapping[str, object] | None = None) -> int:
        """Count instances matching all filters.

        Args:
            filters: Field-value pairs to filter by.

        Returns:
            int: Number of matching rows.
        """
        stmt = self._apply_filters(
            select(func.count()).select_from(self.model_class), filters or {}
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, entity_id: int) -> bool:
        """Check if a model instance exists by its primary key.

        Args:
            entity_id: The primary key ID to check. Values outside the
                column range never exist.

        Returns:
            bool: True if the instance exists, False otherwise.
        """
        try:
            _coerce(entity_id, int)
        except _UncoercibleValueError:
            logger.debug("{} ID {!r} is out of range", self._name, entity_id)
            return False

        exists_value = await self.get_by_id(entity_id) is not None

        logger.debug(
            "Existence check for {} with ID {}: {}",
            self._name,
            entity_id,
            exists_value,
        )

        return exists_value

    async def save(self, data: Mapping[str, object]) -> T | None:
        """Create a new row from ``data``.

        Keys that are not columns are dropped. The database assigns the
        primary key and timestamps.

        Args:
            data: Column values for the new row.

        Returns:
            T | None: The persisted instance, or None if the store rejected
                the write (the session is rolled back in that case).
        """
        fields = self._column_values(data)
        logger.debug("Creating new {} with fields: {}", self._name, list(fields))

        instance = self.model_class(**fields)
        self.session.add(instance)
        try:
            await self.session.flush()
            await self.session.refresh(instance)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to create {}: {}: {}", self._name, type(e).__name__, str(e)
            )
            await self.session.rollback()
            return None

        logger.info("Created {} instance with ID: {}", self._name, instance.id)

        return instance

    async def update(self, instance: T, data: Mapping[str, object]) -> T:
        """Apply ``data`` to ``instance`` and persist it.

        Only keys naming mapped columns are applied. ``updated_at`` is
        refreshed even when ``data`` is empty.

        Args:
            instance: A persistent instance previously loaded by this repository.
            data: Dictionary of fields to update.

        Returns:
            T: The instance reloaded from the database.
        """
        fields = self._column_values(data)
        logger.debug(
            "Updating {} instance ID {} - fields: {}",
            self._name,
            instance.id,
            list(fields),
        )

        for key, value in fields.items():
            setattr(instance, key, value)
        instance.updated_at = func.now()  # type: ignore[assignment]

        await self.session.flush()
        await self.session.refresh(instance)

        logger.info(
            "Updated {} instance ID {} - fields: {}",
            self._name,
            instance.id,
            list(fields),
        )

        return instance

    async def delete(self, instance: T) -> bool:
        """Permanently delete ``instance``.

        Deleting a row that is already gone is a no-op.

        Args:
            instance: The instance to delete.

        Returns:
            bool: True if a row was deleted, False if none matched.
        """
        stmt = sql_delete(self.model_class).where(self.model_class.id == instance.id)
        result = await self.session.execute(stmt)
        deleted = bool(result.rowcount)

        if deleted:
            logger.info("Deleted {} instance with ID: {}", self._name, instance.id)
        else:
            logger.warning(
                "{} instance ID {} was already deleted", self._name, instance.id
            )

        return deleted

    def _column_values(self, data: Mapping[str, object]) -> dict[str, object]:
        """Keep only keys that are mapped columns, warning about the rest."""
        unknown: Sequence[str] = [key for key in data if key not in self._columns]
        if unknown:
            logger.warning(
                "Ignoring non-existent fields {} on {}", list(unknown), self._name
            )
        return {key: value for key, value in data.items() if key in self._columns}
