from typing import Literal

from pydantic import BaseModel, Field

SeriesId = Literal["depth", "rune-pool", "swap", "earnings"]


class IntervalBase(BaseModel):
    start_time: int
    end_time: int


class DepthInterval(IntervalBase):
    asset_depth: int
    asset_price: float
    asset_price_usd: float
    liquidity_units: int
    luvi: float
    members_count: int
    rune_depth: int
    synth_supply: int
    synth_units: int
    units: int


class RunePoolInterval(IntervalBase):
    units: int
    count: int


class SwapInterval(IntervalBase):
    to_asset_count: int
    to_rune_count: int
    to_trade_count: int
    from_trade_count: int
    synth_mint_count: int
    synth_redeem_count: int
    total_count: int
    to_asset_volume: int
    to_rune_volume: int
    to_trade_volume: int
    from_trade_volume: int
    synth_mint_volume: int
    synth_redeem_volume: int
    total_volume: int
    to_asset_volume_usd: float
    to_rune_volume_usd: float
    to_trade_volume_usd: float
    from_trade_volume_usd: float
    synth_mint_volume_usd: float
    synth_redeem_volume_usd: float
    total_volume_usd: float
    to_asset_fees: int
    to_rune_fees: int
    to_trade_fees: int
    from_trade_fees: int
    synth_mint_fees: int
    synth_redeem_fees: int
    total_fees: int
    to_asset_average_slip: float
    to_rune_average_slip: float
    to_trade_average_slip: float
    from_trade_average_slip: float
    synth_mint_average_slip: float
    synth_redeem_average_slip: float
    average_slip: float
    rune_price_usd: float


class PoolEarnings(BaseModel):
    pool_name: str
    asset_liquidity_fees: int
    rune_liquidity_fees: int
    total_liquidity_fees_rune: int
    saver_earning: int
    rewards: int
    earnings: int


class EarningsInterval(IntervalBase):
    liquidity_fees: int
    block_rewards: int
    earnings: int
    bonding_earnings: int
    liquidity_earnings: int
    avg_node_count: float
    rune_price_usd: float
    pools: list[PoolEarnings] = Field(default_factory=list)


class DepthHistoryResponse(BaseModel):
    data: list[DepthInterval] | None = None
    error: str | None = None


class RunePoolHistoryResponse(BaseModel):
    data: list[RunePoolInterval] | None = None
    error: str | None = None


class SwapHistoryResponse(BaseModel):
    data: list[SwapInterval] | None = None
    error: str | None = None


class EarningsHistoryResponse(BaseModel):
    intervals: list[EarningsInterval] | None = None
    error: str | None = None


class SeriesStatus(BaseModel):
    series: SeriesId
    last_boundary: int | None
    state: Literal["idle", "fetching"] | None = None
    last_fetch_state: str | None = None
    last_fetch_written: int | None = None
    malformed_values: int = 0


class IngestionStatus(BaseModel):
    scheduler_enabled: bool
    series: list[SeriesStatus]
    data_quality: dict[str, dict[str, dict]] = Field(default_factory=dict)
