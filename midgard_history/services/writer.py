from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from midgard_history.db.session import SessionLocal
from midgard_history.models import PoolEarnings
from midgard_history.services.series import Record, SeriesDefinition

logger = logging.getLogger(__name__)


def _insert_with_retry(
    session: Session,
    build_rows: Callable[[], list],
    exists: Callable[[], bool] | None = None,
    retries: int = 3,
    delay: float = 0.5,
) -> bool:
    """Add freshly built rows and commit, retrying the whole unit on OperationalError.

    Each attempt re-checks existence and re-adds the rows. Returns False when the rows were already stored.
    """
    for attempt in range(retries):
        try:
            if exists is not None and exists():
                return False
            session.add_all(build_rows())
            session.commit()
            return True
        except OperationalError:
            session.rollback()
            if attempt == retries - 1:
                raise
            logger.warning("commit failed (attempt %s/%s); retrying", attempt + 1, retries)
            time.sleep(delay)
    return False


class IdempotentWriter:
    """Write-once persistence keyed on each series' natural key.

    Records already present are skipped, never updated. Each record commits on
    its own so a failure only costs that record.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal, retry_delay: float = 0.5) -> None:
        self.session_factory = session_factory
        self.retry_delay = retry_delay

    def persist(self, definition: SeriesDefinition, records: Iterable[Record]) -> int:
        written = 0
        key_column = getattr(definition.model, definition.natural_key)
        with self.session_factory() as session:
            for record in records:
                key = record[definition.natural_key]
                try:
                    inserted = _insert_with_retry(
                        session,
                        lambda: [definition.to_row(record)],
                        exists=lambda: session.scalar(select(key_column).where(key_column == key)) is not None,
                        delay=self.retry_delay,
                    )
                except SQLAlchemyError:
                    session.rollback()
                    logger.exception("failed to persist %s interval start_time=%s", definition.name.value, key)
                    continue
                if not inserted:
                    continue
                written += 1
                if definition.has_pools:
                    self._persist_pools(session, definition, record)
        if written:
            logger.info("persisted %s new %s intervals", written, definition.name.value)
        return written

    def _persist_pools(self, session: Session, definition: SeriesDefinition, record: Record) -> None:
        if not definition.to_pool_rows(record):
            return
        try:
            _insert_with_retry(session, lambda: definition.to_pool_rows(record), delay=self.retry_delay)
            return
        except SQLAlchemyError:
            session.rollback()
            logger.warning(
                "bulk pool insert failed for %s start_time=%s; retrying row by row",
                definition.name.value,
                record[definition.natural_key],
            )
        for row in definition.to_pool_rows(record):
            start_time, pool_name = row.earnings_start_time, row.pool_name
            try:
                _insert_with_retry(
                    session,
                    lambda: [row],
                    exists=lambda: session.scalar(
                        select(PoolEarnings.id).where(
                            PoolEarnings.earnings_start_time == start_time,
                            PoolEarnings.pool_name == pool_name,
                        )
                    )
                    is not None,
                    delay=self.retry_delay,
                )
            except SQLAlchemyError:
                session.rollback()
                logger.exception("failed to persist pool %s for start_time=%s", pool_name, start_time)
