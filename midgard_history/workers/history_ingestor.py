from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable

from midgard_history.core.config import settings
from midgard_history.services.checkpoint_store import CheckpointStore
from midgard_history.services.series import SERIES, SeriesDefinition
from midgard_history.workers.series_fetcher import FetchResult, SeriesFetcher

logger = logging.getLogger(__name__)


class IngestorState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class HistoryIngestor:
    """Fetch-if-stale loop body for one series.

    ``tick`` is what the scheduler calls on its cadence. A tick that finds the
    previous one still fetching returns immediately instead of starting a
    second concurrent fetch of the same series.
    """

    def __init__(
        self,
        definition: SeriesDefinition,
        checkpoints: CheckpointStore | None = None,
        fetcher: SeriesFetcher | None = None,
        staleness_threshold: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.definition = definition
        self.checkpoints = checkpoints or CheckpointStore()
        self.fetcher = fetcher or SeriesFetcher()
        self.staleness_threshold = (
            staleness_threshold if staleness_threshold is not None else settings.staleness_threshold_seconds
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._state = IngestorState.IDLE
        self.last_result: FetchResult | None = None

    @property
    def name(self) -> str:
        return self.definition.name.value

    @property
    def state(self) -> IngestorState:
        return self._state

    def tick(self, now: int | None = None) -> FetchResult | None:
        if not self._lock.acquire(blocking=False):
            logger.info("%s ingest still running from a previous tick; skipping", self.name)
            return None
        started = time.perf_counter()
        try:
            current = int(now if now is not None else self._clock())
            boundary = self.checkpoints.last_boundary(self.definition)
            age = current - boundary
            if age < self.staleness_threshold:
                logger.debug("%s is fresh (last boundary %ss old); nothing to fetch", self.name, age)
                return None
            logger.info("%s ingest start from=%s (last boundary %ss old)", self.name, boundary, age)
            self._state = IngestorState.FETCHING
            result = self.fetcher.fetch(self.definition, boundary, now=current)
            self.last_result = result
            logger.info(
                "%s ingest end state=%s written=%s in %.2fs",
                self.name,
                result.state.value,
                result.written,
                time.perf_counter() - started,
            )
            return result
        except Exception:
            logger.exception("%s ingest tick failed", self.name)
            return None
        finally:
            self._state = IngestorState.IDLE
            self._lock.release()


def build_ingestors(
    checkpoints: CheckpointStore | None = None,
    fetcher: SeriesFetcher | None = None,
) -> list[HistoryIngestor]:
    checkpoints = checkpoints or CheckpointStore()
    fetcher = fetcher or SeriesFetcher()
    return [HistoryIngestor(definition, checkpoints=checkpoints, fetcher=fetcher) for definition in SERIES.values()]
