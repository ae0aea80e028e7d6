from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from midgard_history.core.config import Settings, settings as default_settings
from midgard_history.db.session import SessionLocal
from midgard_history.services.series import SeriesDefinition

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Derives each series' resume point from what is already persisted.

    The boundary is ``max(end_time)`` of the series table; there is no separate
    checkpoint row to keep in sync, so it can never run ahead of the data.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        settings: Settings | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.settings = settings or default_settings

    def fallback_for(self, definition: SeriesDefinition) -> int:
        return self.settings.start_timestamp_for(definition.name.value)

    def last_boundary(self, definition: SeriesDefinition) -> int:
        fallback = self.fallback_for(definition)
        try:
            with self.session_factory() as session:
                latest = session.scalar(select(func.max(definition.model.end_time)))
        except SQLAlchemyError as exc:
            logger.warning(
                "checkpoint read failed for %s (%s); falling back to %s",
                definition.name.value,
                exc,
                fallback,
            )
            return fallback
        if latest is None:
            return fallback
        return int(latest)
