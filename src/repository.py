"""Typed data access over SQLAlchemy models.

Callers describe rows with ``{column_name: value}`` mappings. Column names are
checked against the mapped table, and values always travel as bound
parameters, so nothing a client sends is spliced into SQL text.

Filter keys may carry a lookup suffix: ``expires_at__lt``, ``used_at__ne``.
A ``None`` value means ``IS NULL`` (``IS NOT NULL`` with ``__ne``) and a
list or tuple value means ``IN``.
"""

import logging
import operator
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from src.exceptions import ConstraintViolation, DataUnavailable

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

_COMPARISONS = {
    "lt": operator.lt,
    "lte": operator.le,
    "gt": operator.gt,
    "gte": operator.ge,
}


class Repository:
    """Query interface bound to one session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._depth = 0

    @staticmethod
    def _column(model: type, name: str):
        columns = model.__table__.columns
        if name not in columns:
            raise ValueError(f"{model.__name__} has no column '{name}'")
        return getattr(model, columns[name].key)

    def _where(self, model: type, filters: Mapping[str, Any] | None) -> list:
        clauses = []
        for key, value in (filters or {}).items():
            name, _, lookup = key.partition("__")
            column = self._column(model, name)
            if lookup == "":
                if value is None:
                    clauses.append(column.is_(None))
                elif isinstance(value, (list, tuple, set, frozenset)):
                    clauses.append(column.in_(list(value)))
                else:
                    clauses.append(column == value)
            elif lookup == "ne":
                clauses.append(column.is_not(None) if value is None else column != value)
            elif lookup in _COMPARISONS:
                clauses.append(_COMPARISONS[lookup](column, value))
            else:
                raise ValueError(f"Unsupported filter lookup '{lookup}' in '{key}'")
        return clauses

    def _check_values(self, model: type, values: Mapping[str, Any]) -> None:
        for name in values:
            self._column(model, name)

    @contextmanager
    def _translate_errors(self, model: type) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.session.rollback()
            logger.info(f"Constraint violation on {model.__tablename__}: {e.orig}")
            raise ConstraintViolation(
                details={"entity": model.__tablename__},
            ) from e
        except (OperationalError, InterfaceError) as e:
            self.session.rollback()
            logger.error(f"Database unavailable during {model.__tablename__} operation: {e}")
            raise DataUnavailable() from e
        except DBAPIError as e:
            if e.connection_invalidated:
                self.session.rollback()
                raise DataUnavailable() from e
            raise

    def select(
        self,
        model: type[ModelT],
        filters: Mapping[str, Any] | None = None,
        order_by: Sequence[str] | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModelT]:
        """Return matching rows in a stable order; an empty list when nothing matches.

        ``order_by`` takes column names, prefixed with ``-`` for descending order.
        Without it rows come back in primary-key order.
        """
        stmt = select(model).where(*self._where(model, filters))
        if order_by is None:
            stmt = stmt.order_by(*model.__table__.primary_key.columns)
        else:
            names = [order_by] if isinstance(order_by, str) else order_by
            for name in names:
                descending = name.startswith("-")
                column = self._column(model, name.lstrip("-"))
                stmt = stmt.order_by(column.desc() if descending else column.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._translate_errors(model):
            return list(self.session.scalars(stmt).all())

    def get(self, model: type[ModelT], filters: Mapping[str, Any]) -> ModelT | None:
        """Return the first matching row or None."""
        rows = self.select(model, filters, limit=1)
        return rows[0] if rows else None

    def count(self, model: type, filters: Mapping[str, Any] | None = None) -> int:
        stmt = select(func.count()).select_from(model).where(*self._where(model, filters))
        with self._translate_errors(model):
            return self.session.scalar(stmt) or 0

    def insert(self, model: type[ModelT], values: Mapping[str, Any]) -> ModelT:
        """Insert a row and return it with generated fields populated."""
        self._check_values(model, values)
        record = model(**{self._column(model, name).key: value for name, value in values.items()})
        with self._translate_errors(model):
            self.session.add(record)
            self.session.flush()
            self.session.refresh(record)
            if self._depth == 0:
                self.session.commit()
        return record

    def update(
        self, model: type, filters: Mapping[str, Any], values: Mapping[str, Any]
    ) -> int:
        """Update matching rows and return how many changed."""
        self._check_values(model, values)
        stmt = (
            update(model)
            .where(*self._where(model, filters))
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        with self._translate_errors(model):
            result = self.session.execute(stmt)
            if self._depth == 0:
                self.session.commit()
        return result.rowcount

    def delete(self, model: type, filters: Mapping[str, Any]) -> int:
        """Delete matching rows and return how many were removed."""
        stmt = (
            delete(model)
            .where(*self._where(model, filters))
            .execution_options(synchronize_session="fetch")
        )
        with self._translate_errors(model):
            result = self.session.execute(stmt)
            if self._depth == 0:
                self.session.commit()
        return result.rowcount

    @contextmanager
    def transaction(self) -> Iterator["Repository"]:
        """Group writes so they commit together or not at all.

        Nested blocks join the outermost one. Any exception, including
        cancellation, rolls back every write made inside the block.
        """
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConstraintViolation() from e
        except BaseException:
            self.session.rollback()
            raise
        finally:
            self._depth -= 1
