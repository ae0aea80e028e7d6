from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from midgard_history.services.series import Record, SeriesDefinition

BUCKET_WIDTHS: dict[str, timedelta] = {
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
    "month": timedelta(days=30),
    "6months": timedelta(days=180),
    "year": timedelta(days=365),
}
DEFAULT_BUCKET_WIDTH = BUCKET_WIDTHS["day"]


def bucket_width(interval: str | None) -> timedelta:
    """Width for a named interval; unknown names fall back to one day."""
    if not interval:
        return DEFAULT_BUCKET_WIDTH
    return BUCKET_WIDTHS.get(interval.strip().lower(), DEFAULT_BUCKET_WIDTH)


def aggregate(
    definition: SeriesDefinition,
    records: Iterable[Record],
    width: timedelta | int,
    max_buckets: int | None = None,
) -> list[Record]:
    """Fold records sorted by ``start_time`` ascending into fixed-width buckets.

    A bucket is anchored at the ``start_time`` of its first record and absorbs
    every following record that starts less than ``width`` after the anchor.
    Once ``max_buckets`` buckets have been closed the pass stops, but the bucket
    opened by the record that caused the last close is still flushed, so the
    result may hold ``max_buckets + 1`` entries.
    """
    width_seconds = int(width.total_seconds()) if isinstance(width, timedelta) else int(width)
    if width_seconds <= 0:
        raise ValueError("bucket width must be positive")

    out: list[Record] = []
    current: Record | None = None
    anchor = 0
    closed = 0

    for record in records:
        start = record["start_time"]
        if current is not None and start - anchor < width_seconds:
            definition.fold_into(current, record)
            continue
        if current is not None:
            out.append(current)
            closed += 1
        anchor = start
        current = definition.copy(record)
        if max_buckets is not None and closed >= max_buckets:
            break

    if current is not None:
        out.append(current)
    return out
