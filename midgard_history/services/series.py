"""Per-series definitions driving the generic ingest / store / aggregate pipeline.

Each tracked Midgard history endpoint is described once here: where it lives
upstream, which table it lands in, how its decimal-string fields are parsed
and how two records of the series fold together inside an aggregation bucket.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from midgard_history.models import (
    DepthHistory,
    EarningsHistory,
    PoolEarnings,
    RunePoolHistory,
    SeriesName,
    SwapHistory,
)
from midgard_history.services.data_quality import parse_float, parse_int


class FoldRule(str, Enum):
    KEEP = "keep"  # bucket keeps its own value (anchors and keys)
    SUM = "sum"
    LAST = "last"
    MAX = "max"
    # (acc + incoming) / 2
    PAIRWISE_MEAN = "pairwise_mean"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    upstream: str
    kind: type = int
    fold: FoldRule = FoldRule.SUM


Record = dict[str, Any]


def _interval_fields(*fields: FieldSpec) -> tuple[FieldSpec, ...]:
    return (
        FieldSpec("start_time", "startTime", int, FoldRule.KEEP),
        FieldSpec("end_time", "endTime", int, FoldRule.MAX),
        *fields,
    )


def _fold_value(rule: FoldRule, acc: Any, incoming: Any) -> Any:
    if rule is FoldRule.SUM:
        return acc + incoming
    if rule is FoldRule.LAST:
        return incoming
    if rule is FoldRule.MAX:
        return max(acc, incoming)
    if rule is FoldRule.PAIRWISE_MEAN:
        return (acc + incoming) / 2.0
    return acc


def _parse_fields(fields: tuple[FieldSpec, ...], raw: dict[str, Any], series: str) -> Record:
    record: Record = {}
    for column in fields:
        value = raw.get(column.upstream)
        if column.kind is int:
            record[column.name] = parse_int(value, series, column.name)
        elif column.kind is float:
            record[column.name] = parse_float(value, series, column.name)
        else:
            record[column.name] = "" if value is None else str(value)
    return record


@dataclass(frozen=True)
class SeriesDefinition:
    name: SeriesName
    model: type
    upstream_path: str
    response_key: str
    fields: tuple[FieldSpec, ...]
    pool_fields: tuple[FieldSpec, ...] = field(default_factory=tuple)
    natural_key: str = "start_time"

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    @property
    def has_pools(self) -> bool:
        return bool(self.pool_fields)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.fields]

    def parse(self, raw: dict[str, Any]) -> Record:
        """Turn one upstream interval (camelCase, decimal strings) into a record."""
        record = _parse_fields(self.fields, raw, self.name.value)
        if self.has_pools:
            record["pools"] = [
                _parse_fields(self.pool_fields, pool, f"{self.name.value}.pools")
                for pool in raw.get("pools") or []
                if isinstance(pool, dict)
            ]
        return record

    def copy(self, record: Record) -> Record:
        out = dict(record)
        if self.has_pools:
            out["pools"] = [dict(p) for p in record.get("pools") or []]
        return out

    def fold_into(self, acc: Record, incoming: Record) -> Record:
        """Fold ``incoming`` into the bucket accumulator ``acc`` in place."""
        for column in self.fields:
            acc[column.name] = _fold_value(column.fold, acc[column.name], incoming[column.name])
        if self.has_pools:
            acc_pools = acc.setdefault("pools", [])
            by_name = {p["pool_name"]: p for p in acc_pools}
            for other in incoming.get("pools") or []:
                existing = by_name.get(other["pool_name"])
                if existing is None:
                    copied = dict(other)
                    acc_pools.append(copied)
                    by_name[copied["pool_name"]] = copied
                    continue
                for column in self.pool_fields:
                    existing[column.name] = _fold_value(column.fold, existing[column.name], other[column.name])
        return acc

    def to_record(self, row: Any) -> Record:
        record: Record = {name: getattr(row, name) for name in self.column_names}
        if self.has_pools:
            record["pools"] = [
                {column.name: getattr(pool, column.name) for column in self.pool_fields} for pool in row.pools
            ]
        return record

    def to_row(self, record: Record) -> Any:
        return self.model(**{name: record[name] for name in self.column_names})

    def to_pool_rows(self, record: Record) -> list[PoolEarnings]:
        start_time = record[self.natural_key]
        return [
            PoolEarnings(earnings_start_time=start_time, **{column.name: pool[column.name] for column in self.pool_fields})
            for pool in record.get("pools") or []
        ]


DEPTH = SeriesDefinition(
    name=SeriesName.DEPTH,
    model=DepthHistory,
    upstream_path="/history/depths/{pool}",
    response_key="data",
    fields=_interval_fields(
        FieldSpec("asset_depth", "assetDepth"),
        FieldSpec("asset_price", "assetPrice", float, FoldRule.LAST),
        FieldSpec("asset_price_usd", "assetPriceUSD", float, FoldRule.LAST),
        FieldSpec("liquidity_units", "liquidityUnits"),
        FieldSpec("luvi", "luvi", float, FoldRule.LAST),
        FieldSpec("members_count", "membersCount"),
        FieldSpec("rune_depth", "runeDepth"),
        FieldSpec("synth_supply", "synthSupply"),
        FieldSpec("synth_units", "synthUnits"),
        FieldSpec("units", "units"),
    ),
)

RUNE_POOL = SeriesDefinition(
    name=SeriesName.RUNE_POOL,
    model=RunePoolHistory,
    upstream_path="/history/runepool",
    response_key="data",
    fields=_interval_fields(
        FieldSpec("units", "units"),
        FieldSpec("count", "count"),
    ),
)

_SWAP_LEGS = (
    ("to_asset", "toAsset"),
    ("to_rune", "toRune"),
    ("to_trade", "toTrade"),
    ("from_trade", "fromTrade"),
    ("synth_mint", "synthMint"),
    ("synth_redeem", "synthRedeem"),
)

SWAP = SeriesDefinition(
    name=SeriesName.SWAP,
    model=SwapHistory,
    upstream_path="/history/swaps",
    response_key="data",
    fields=_interval_fields(
        *(FieldSpec(f"{leg}_count", f"{up}Count") for leg, up in _SWAP_LEGS),
        FieldSpec("total_count", "totalCount"),
        *(FieldSpec(f"{leg}_volume", f"{up}Volume") for leg, up in _SWAP_LEGS),
        FieldSpec("total_volume", "totalVolume"),
        *(FieldSpec(f"{leg}_volume_usd", f"{up}VolumeUSD", float) for leg, up in _SWAP_LEGS),
        FieldSpec("total_volume_usd", "totalVolumeUSD", float),
        *(FieldSpec(f"{leg}_fees", f"{up}Fees") for leg, up in _SWAP_LEGS),
        FieldSpec("total_fees", "totalFees"),
        *(FieldSpec(f"{leg}_average_slip", f"{up}AverageSlip", float, FoldRule.PAIRWISE_MEAN) for leg, up in _SWAP_LEGS),
        FieldSpec("average_slip", "averageSlip", float, FoldRule.PAIRWISE_MEAN),
        FieldSpec("rune_price_usd", "runePriceUSD", float, FoldRule.LAST),
    ),
)

EARNINGS = SeriesDefinition(
    name=SeriesName.EARNINGS,
    model=EarningsHistory,
    upstream_path="/history/earnings",
    response_key="intervals",
    fields=_interval_fields(
        FieldSpec("liquidity_fees", "liquidityFees"),
        FieldSpec("block_rewards", "blockRewards"),
        FieldSpec("earnings", "earnings"),
        FieldSpec("bonding_earnings", "bondingEarnings"),
        FieldSpec("liquidity_earnings", "liquidityEarnings"),
        FieldSpec("avg_node_count", "avgNodeCount", float, FoldRule.PAIRWISE_MEAN),
        FieldSpec("rune_price_usd", "runePriceUSD", float, FoldRule.LAST),
    ),
    pool_fields=(
        FieldSpec("pool_name", "pool", str, FoldRule.KEEP),
        FieldSpec("asset_liquidity_fees", "assetLiquidityFees"),
        FieldSpec("rune_liquidity_fees", "runeLiquidityFees"),
        FieldSpec("total_liquidity_fees_rune", "totalLiquidityFeesRune"),
        FieldSpec("saver_earning", "saverEarning"),
        FieldSpec("rewards", "rewards"),
        FieldSpec("earnings", "earnings"),
    ),
)

SERIES: dict[SeriesName, SeriesDefinition] = {
    definition.name: definition for definition in (DEPTH, RUNE_POOL, SWAP, EARNINGS)
}


def get_series(name: SeriesName | str) -> SeriesDefinition:
    return SERIES[SeriesName(name)]
