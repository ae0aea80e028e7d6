from midgard_history.db.session import Base
from midgard_history.models.tables import (
    DepthHistory,
    EarningsHistory,
    PoolEarnings,
    RunePoolHistory,
    SeriesName,
    SwapHistory,
)

__all__ = [
    "Base",
    "SeriesName",
    "DepthHistory",
    "RunePoolHistory",
    "SwapHistory",
    "EarningsHistory",
    "PoolEarnings",
]
