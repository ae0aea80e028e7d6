from __future__ import annotations

import logging
import math
import threading
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


class DataQualityTracker:
    """Counts upstream values that failed numeric parsing and were replaced by zero."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[tuple[str, str], int] = {}
        self._last_seen: dict[tuple[str, str], datetime] = {}

    def record(self, series: str, field: str, raw: Any) -> None:
        key = (series, field)
        with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
            self._last_seen[key] = datetime.now(timezone.utc)
        if count == 1:
            logger.warning("Malformed %s.%s value %r from upstream; substituting zero", series, field, raw)
        else:
            logger.debug("Malformed %s.%s value %r (%s so far)", series, field, raw, count)

    def count(self, series: str, field: str | None = None) -> int:
        with self._lock:
            if field is not None:
                return self._counts.get((series, field), 0)
            return sum(n for (s, _), n in self._counts.items() if s == series)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            out: dict[str, dict[str, Any]] = {}
            for (series, field), n in sorted(self._counts.items()):
                out.setdefault(series, {})[field] = {
                    "count": n,
                    "last_seen": self._last_seen[(series, field)].isoformat(),
                }
            return out

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._last_seen.clear()


data_quality = DataQualityTracker()


def parse_int(raw: Any, series: str, field: str) -> int:
    if isinstance(raw, bool):
        data_quality.record(series, field, raw)
        return 0
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        data_quality.record(series, field, raw)
        return 0


def parse_float(raw: Any, series: str, field: str) -> float:
    """Parse a decimal value; NaN and infinities count as malformed."""
    try:
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            value = float(raw)
        else:
            value = float(str(raw).strip())
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value):
        data_quality.record(series, field, raw)
        return 0.0
    return value
