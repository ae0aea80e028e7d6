import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from midgard_history.db.session import get_db
from midgard_history.schemas.api import (
    DepthHistoryResponse,
    EarningsHistoryResponse,
    RunePoolHistoryResponse,
    SwapHistoryResponse,
)
from midgard_history.services.history_query import HistoryQuery, query_history
from midgard_history.services.series import DEPTH, EARNINGS, RUNE_POOL, SWAP, Record, SeriesDefinition

logger = logging.getLogger(__name__)

router = APIRouter()


def history_query(
    from_: str | None = Query(default=None, alias="from"),
    to: str | None = Query(default=None),
    order: str | None = Query(default=None),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    interval: str | None = Query(default=None),
) -> HistoryQuery:
    # Raw strings; unparsable values fall back to defaults in HistoryQuery.
    return HistoryQuery.from_params(from_=from_, to=to, order=order, page=page, limit=limit, interval=interval)


def _load(session: Session, definition: SeriesDefinition, query: HistoryQuery) -> tuple[list[Record] | None, str | None]:
    try:
        return query_history(session, definition, query), None
    except SQLAlchemyError:
        logger.exception("%s history query failed", definition.name.value)
        return None, "Failed to read from database"


@router.get("/depth-history", response_model=DepthHistoryResponse, response_model_exclude_none=True)
def get_depth_history(
    query: HistoryQuery = Depends(history_query),
    session: Session = Depends(get_db),
) -> DepthHistoryResponse:
    records, error = _load(session, DEPTH, query)
    return DepthHistoryResponse(data=records, error=error)


@router.get("/rune-pool-history", response_model=RunePoolHistoryResponse, response_model_exclude_none=True)
def get_rune_pool_history(
    query: HistoryQuery = Depends(history_query),
    session: Session = Depends(get_db),
) -> RunePoolHistoryResponse:
    records, error = _load(session, RUNE_POOL, query)
    return RunePoolHistoryResponse(data=records, error=error)


@router.get("/swap-history", response_model=SwapHistoryResponse, response_model_exclude_none=True)
def get_swap_history(
    query: HistoryQuery = Depends(history_query),
    session: Session = Depends(get_db),
) -> SwapHistoryResponse:
    records, error = _load(session, SWAP, query)
    return SwapHistoryResponse(data=records, error=error)


@router.get("/earnings-history", response_model=EarningsHistoryResponse, response_model_exclude_none=True)
def get_earnings_history(
    query: HistoryQuery = Depends(history_query),
    session: Session = Depends(get_db),
) -> EarningsHistoryResponse:
    records, error = _load(session, EARNINGS, query)
    return EarningsHistoryResponse(intervals=records, error=error)
