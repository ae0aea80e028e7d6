from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from httpx import HTTPStatusError, RequestError

from midgard_history.core.config import settings
from midgard_history.services.midgard_client import MidgardClient, midgard_client
from midgard_history.services.series import Record, SeriesDefinition
from midgard_history.services.writer import IdempotentWriter

logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    EXHAUSTED = "exhausted"  # upstream returned an empty page
    CAUGHT_UP = "caught_up"  # cursor reached the wall clock captured at start
    FAILED = "failed"  # aborted; the next scheduler tick resumes from the checkpoint


@dataclass
class FetchResult:
    series: str
    state: FetchState
    start_from: int
    next_from: int
    records: list[Record] = field(default_factory=list)
    pages: int = 0
    written: int = 0
    rate_limited: int = 0
    transient_errors: int = 0
    error: str | None = None


class SeriesFetcher:
    def __init__(
        self,
        client: MidgardClient | None = None,
        writer: IdempotentWriter | None = None,
        page_size: int | None = None,
        backoff_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client or midgard_client
        self.writer = writer or IdempotentWriter()
        self.page_size = page_size or settings.page_size
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.rate_limit_backoff_seconds
        self._sleep = sleep
        self._clock = clock

    def fetch(self, definition: SeriesDefinition, from_timestamp: int, now: int | None = None) -> FetchResult:
        """Page through one series from ``from_timestamp`` up to ``now``.

        Each page is persisted before the next is requested, so an interrupted
        run loses at most the page in flight.
        """
        series = definition.name.value
        stop_at = int(now if now is not None else self._clock())
        cursor = int(from_timestamp)
        result = FetchResult(series=series, state=FetchState.FAILED, start_from=cursor, next_from=cursor)

        while True:
            logger.debug("fetching %s from=%s count=%s", series, cursor, self.page_size)
            try:
                payload = self.client.get_history(definition, cursor, self.page_size)
            except HTTPStatusError as exc:
                status = exc.response.status_code
                if status == 429:
                    result.rate_limited += 1
                    logger.info("%s rate limited at from=%s; waiting %ss", series, cursor, self.backoff_seconds)
                    self._sleep(self.backoff_seconds)
                    continue
                result.error = f"HTTP {status}"
                logger.error("%s fetch aborted at from=%s: upstream returned %s", series, cursor, status)
                break
            except RequestError as exc:
                result.transient_errors += 1
                logger.warning("%s request error at from=%s (%s); retrying in %ss", series, cursor, exc, self.backoff_seconds)
                self._sleep(self.backoff_seconds)
                continue
            except ValueError as exc:
                result.error = f"bad payload: {exc}"
                logger.error("%s fetch aborted at from=%s: undecodable response (%s)", series, cursor, exc)
                break

            raw_intervals = payload.get("intervals") or []
            if not raw_intervals:
                logger.info("%s: no new intervals from=%s; stopping", series, cursor)
                result.state = FetchState.EXHAUSTED
                break

            records = [definition.parse(raw) for raw in raw_intervals if isinstance(raw, dict)]
            if not records:
                result.error = "page held no usable intervals"
                logger.error("%s fetch aborted at from=%s: page held no usable intervals", series, cursor)
                break
            result.written += self.writer.persist(definition, records)
            result.records.extend(records)
            result.pages += 1

            next_cursor = records[-1]["end_time"] + 1
            if next_cursor <= cursor:
                # Upstream stopped advancing; bail out rather than loop on the same page.
                result.error = f"cursor did not advance past {cursor}"
                logger.error("%s fetch aborted: last end_time %s does not advance cursor", series, records[-1]["end_time"])
                break
            cursor = next_cursor
            result.next_from = cursor

            if cursor >= stop_at:
                logger.info("%s: reached current time at from=%s; stopping", series, cursor)
                result.state = FetchState.CAUGHT_UP
                break

        logger.info(
            "%s fetch %s: pages=%s fetched=%s written=%s rate_limited=%s next_from=%s",
            series,
            result.state.value,
            result.pages,
            len(result.records),
            result.written,
            result.rate_limited,
            result.next_from,
        )
        return result
