"""
Counter Store - atomic increment-and-fetch storage for document counters

The allocator talks to storage only through AtomicCounterStore. Any backend
that can increment a keyed integer and return the new value in one atomic,
durable operation can implement it.

SqlCounterStore is the SQLAlchemy implementation:
- PostgreSQL and SQLite: one INSERT ... ON CONFLICT DO UPDATE ... RETURNING
- Other dialects: SELECT ... FOR UPDATE row lock, then increment
Every increment is committed in its own transaction before the value is
returned.
"""

import abc
import logging
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockbook.models.sequence_counter import SequenceCounter

logger = logging.getLogger(__name__)


class SequenceError(Exception):
    pass


class InvalidArgumentError(SequenceError):
    """Malformed or missing tenant, period or format argument."""

    pass


class StorageUnavailableError(SequenceError):
    """The atomic increment could not be performed. Safe to retry."""

    pass


@dataclass(frozen=True)
class CounterKey:
    tenant_id: str
    series: str
    period: str

    def __str__(self) -> str:
        return f"{self.tenant_id}/{self.series}/{self.period}"


class AtomicCounterStore(abc.ABC):
    @abc.abstractmethod
    def find_one_and_increment(self, key: CounterKey) -> int:
        """
        Find-or-create the counter for key, add 1 and return the new value.

        Must be a single atomic, durable read-modify-write. Raises
        StorageUnavailableError when it cannot complete; in that case no
        value has been consumed.
        """

    @abc.abstractmethod
    def current_value(self, key: CounterKey) -> int:
        """Last value issued for key, 0 if nothing was issued yet."""


_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlCounterStore(AtomicCounterStore):
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from stockbook.database import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def find_one_and_increment(self, key: CounterKey) -> int:
        with self._session_factory() as session:
            try:
                dialect = session.get_bind().dialect.name
                if dialect in _UPSERT_DIALECTS:
                    value = self._upsert_increment(session, key, dialect)
                else:
                    value = self._locked_increment(session, key)
                session.commit()
            except SQLAlchemyError as e:
                # A dead connection can fail the rollback too
                with suppress(SQLAlchemyError):
                    session.rollback()
                logger.error(f"Counter increment failed for {key}: {e}")
                raise StorageUnavailableError(
                    f"Could not increment counter {key}"
                ) from e

        return value

    def current_value(self, key: CounterKey) -> int:
        with self._session_factory() as session:
            try:
                value = session.execute(
                    select(SequenceCounter.sequence).where(
                        SequenceCounter.tenant_id == key.tenant_id,
                        SequenceCounter.series == key.series,
                        SequenceCounter.period == key.period,
                    )
                ).scalar_one_or_none()
            except SQLAlchemyError as e:
                logger.error(f"Counter read failed for {key}: {e}")
                raise StorageUnavailableError(f"Could not read counter {key}") from e

        return value or 0

    def _upsert_increment(self, session: Session, key: CounterKey, dialect: str) -> int:
        now = datetime.now()
        insert = _UPSERT_DIALECTS[dialect]

        stmt = insert(SequenceCounter).values(
            tenant_id=key.tenant_id,
            series=key.series,
            period=key.period,
            sequence=1,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "series", "period"],
            set_={
                "sequence": SequenceCounter.sequence + 1,
                "updated_at": now,
            },
        ).returning(SequenceCounter.sequence)

        return session.execute(stmt).scalar_one()

    def _locked_increment(self, session: Session, key: CounterKey) -> int:
        counter = self._get_for_update(session, key)

        if not counter:
            try:
                with session.begin_nested():
                    counter = SequenceCounter(
                        tenant_id=key.tenant_id,
                        series=key.series,
                        period=key.period,
                        sequence=0,
                    )
                    session.add(counter)
            except IntegrityError:
                # Another caller created the row first
                counter = self._get_for_update(session, key)
                if not counter:
                    raise

        counter.sequence += 1
        session.flush()
        return counter.sequence

    @staticmethod
    def _get_for_update(session: Session, key: CounterKey) -> Optional[SequenceCounter]:
        return (
            session.query(SequenceCounter)
            .filter_by(tenant_id=key.tenant_id, series=key.series, period=key.period)
            .with_for_update()
            .first()
        )
