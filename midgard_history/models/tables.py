from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_mixin, declared_attr, relationship

from midgard_history.db.session import Base


class SeriesName(str, Enum):
    DEPTH = "depth"
    RUNE_POOL = "rune-pool"
    SWAP = "swap"
    EARNINGS = "earnings"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@declarative_mixin
class IntervalMixin:
    """Columns shared by every interval table: natural key, window end, ingestion stamp."""

    @declared_attr
    def id(cls):
        return Column(Integer, primary_key=True, autoincrement=True)

    @declared_attr
    def start_time(cls):
        return Column(BigInteger, nullable=False, unique=True, index=True)

    @declared_attr
    def end_time(cls):
        return Column(BigInteger, nullable=False, index=True)

    @declared_attr
    def ingested_at(cls):
        return Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class DepthHistory(Base, IntervalMixin):
    __tablename__ = "depth_history"

    asset_depth = Column(BigInteger, nullable=False, default=0)
    asset_price = Column(Float, nullable=False, default=0.0)
    asset_price_usd = Column(Float, nullable=False, default=0.0)
    liquidity_units = Column(BigInteger, nullable=False, default=0)
    luvi = Column(Float, nullable=False, default=0.0)
    members_count = Column(Integer, nullable=False, default=0)
    rune_depth = Column(BigInteger, nullable=False, default=0)
    synth_supply = Column(BigInteger, nullable=False, default=0)
    synth_units = Column(BigInteger, nullable=False, default=0)
    units = Column(BigInteger, nullable=False, default=0)


class RunePoolHistory(Base, IntervalMixin):
    __tablename__ = "rune_pool_history"

    units = Column(BigInteger, nullable=False, default=0)
    count = Column(BigInteger, nullable=False, default=0)


class SwapHistory(Base, IntervalMixin):
    __tablename__ = "swaps"

    to_asset_count = Column(BigInteger, nullable=False, default=0)
    to_rune_count = Column(BigInteger, nullable=False, default=0)
    to_trade_count = Column(BigInteger, nullable=False, default=0)
    from_trade_count = Column(BigInteger, nullable=False, default=0)
    synth_mint_count = Column(BigInteger, nullable=False, default=0)
    synth_redeem_count = Column(BigInteger, nullable=False, default=0)
    total_count = Column(BigInteger, nullable=False, default=0)
    to_asset_volume = Column(BigInteger, nullable=False, default=0)
    to_rune_volume = Column(BigInteger, nullable=False, default=0)
    to_trade_volume = Column(BigInteger, nullable=False, default=0)
    from_trade_volume = Column(BigInteger, nullable=False, default=0)
    synth_mint_volume = Column(BigInteger, nullable=False, default=0)
    synth_redeem_volume = Column(BigInteger, nullable=False, default=0)
    total_volume = Column(BigInteger, nullable=False, default=0)
    to_asset_volume_usd = Column(Float, nullable=False, default=0.0)
    to_rune_volume_usd = Column(Float, nullable=False, default=0.0)
    to_trade_volume_usd = Column(Float, nullable=False, default=0.0)
    from_trade_volume_usd = Column(Float, nullable=False, default=0.0)
    synth_mint_volume_usd = Column(Float, nullable=False, default=0.0)
    synth_redeem_volume_usd = Column(Float, nullable=False, default=0.0)
    total_volume_usd = Column(Float, nullable=False, default=0.0)
    to_asset_fees = Column(BigInteger, nullable=False, default=0)
    to_rune_fees = Column(BigInteger, nullable=False, default=0)
    to_trade_fees = Column(BigInteger, nullable=False, default=0)
    from_trade_fees = Column(BigInteger, nullable=False, default=0)
    synth_mint_fees = Column(BigInteger, nullable=False, default=0)
    synth_redeem_fees = Column(BigInteger, nullable=False, default=0)
    total_fees = Column(BigInteger, nullable=False, default=0)
    to_asset_average_slip = Column(Float, nullable=False, default=0.0)
    to_rune_average_slip = Column(Float, nullable=False, default=0.0)
    to_trade_average_slip = Column(Float, nullable=False, default=0.0)
    from_trade_average_slip = Column(Float, nullable=False, default=0.0)
    synth_mint_average_slip = Column(Float, nullable=False, default=0.0)
    synth_redeem_average_slip = Column(Float, nullable=False, default=0.0)
    average_slip = Column(Float, nullable=False, default=0.0)
    rune_price_usd = Column(Float, nullable=False, default=0.0)


class EarningsHistory(Base, IntervalMixin):
    __tablename__ = "earnings_history"

    liquidity_fees = Column(BigInteger, nullable=False, default=0)
    block_rewards = Column(BigInteger, nullable=False, default=0)
    earnings = Column(BigInteger, nullable=False, default=0)
    bonding_earnings = Column(BigInteger, nullable=False, default=0)
    liquidity_earnings = Column(BigInteger, nullable=False, default=0)
    avg_node_count = Column(Float, nullable=False, default=0.0)
    rune_price_usd = Column(Float, nullable=False, default=0.0)

    pools = relationship(
        "PoolEarnings",
        back_populates="interval",
        order_by="PoolEarnings.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PoolEarnings(Base):
    __tablename__ = "pool_history"
    __table_args__ = (UniqueConstraint("earnings_start_time", "pool_name", name="uq_pool_history_interval_pool"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    earnings_start_time = Column(
        BigInteger,
        ForeignKey("earnings_history.start_time", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    pool_name = Column(String(128), nullable=False)
    asset_liquidity_fees = Column(BigInteger, nullable=False, default=0)
    rune_liquidity_fees = Column(BigInteger, nullable=False, default=0)
    total_liquidity_fees_rune = Column(BigInteger, nullable=False, default=0)
    saver_earning = Column(BigInteger, nullable=False, default=0)
    rewards = Column(BigInteger, nullable=False, default=0)
    earnings = Column(BigInteger, nullable=False, default=0)

    interval = relationship("EarningsHistory", back_populates="pools")
