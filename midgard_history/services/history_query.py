from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from midgard_history.core.config import settings
from midgard_history.services.aggregation import aggregate, bucket_width
from midgard_history.services.series import Record, SeriesDefinition


INT64_MAX = 2**63 - 1


def _parse_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return None
    # Store columns and OFFSET/LIMIT are signed 64-bit.
    if not -INT64_MAX - 1 <= parsed <= INT64_MAX:
        return None
    return parsed


@dataclass(frozen=True)
class HistoryQuery:
    from_time: int | None = None
    to_time: int | None = None
    order: str = "asc"
    page: int = 1
    limit: int = 400
    interval: str | None = None

    @classmethod
    def from_params(
        cls,
        from_: str | None = None,
        to: str | None = None,
        order: str | None = None,
        page: str | None = None,
        limit: str | None = None,
        interval: str | None = None,
        default_limit: int | None = None,
    ) -> "HistoryQuery":
        """Build a query from raw query-string values, dropping anything unparsable."""
        fallback_limit = default_limit or settings.query_default_limit
        parsed_page = _parse_int(page)
        parsed_limit = _parse_int(limit)
        limit_value = parsed_limit if parsed_limit and parsed_limit > 0 else fallback_limit
        page_value = parsed_page if parsed_page and parsed_page > 0 else 1
        normalized_order = (order or "").strip().lower()
        return cls(
            from_time=_parse_int(from_),
            to_time=_parse_int(to),
            order="desc" if normalized_order == "desc" else "asc",
            page=min(page_value, INT64_MAX // limit_value),
            limit=limit_value,
            interval=interval.strip() if interval and interval.strip() else None,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _filtered(definition: SeriesDefinition, query: HistoryQuery):
    model = definition.model
    stmt = select(model)
    if query.from_time is not None:
        stmt = stmt.where(model.start_time >= query.from_time)
    if query.to_time is not None:
        stmt = stmt.where(model.start_time <= query.to_time)
    return stmt


def query_history(session: Session, definition: SeriesDefinition, query: HistoryQuery) -> list[Record]:
    model = definition.model
    stmt = _filtered(definition, query)

    if query.interval is None:
        ordering = model.start_time.desc() if query.order == "desc" else model.start_time.asc()
        rows = session.scalars(stmt.order_by(ordering).offset(query.offset).limit(query.limit)).all()
        return [definition.to_record(row) for row in rows]

    rows = session.scalars(stmt.order_by(model.start_time.asc())).all()
    records = [definition.to_record(row) for row in rows]
    width = bucket_width(query.interval)
    if query.order == "desc":
        buckets = aggregate(definition, records, width)
        buckets.reverse()
    else:
        buckets = aggregate(definition, records, width, max_buckets=query.page * query.limit)
    return buckets[query.offset : query.offset + query.limit]
