"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _interval_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("start_time", sa.BigInteger(), nullable=False),
        sa.Column("end_time", sa.BigInteger(), nullable=False),
        sa.Column("ingested_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _interval_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_start_time", table, ["start_time"], unique=True)
    op.create_index(f"ix_{table}_end_time", table, ["end_time"], unique=False)


def upgrade() -> None:
    op.create_table(
        "depth_history",
        *_interval_columns(),
        sa.Column("asset_depth", sa.BigInteger(), nullable=False),
        sa.Column("asset_price", sa.Float(), nullable=False),
        sa.Column("asset_price_usd", sa.Float(), nullable=False),
        sa.Column("liquidity_units", sa.BigInteger(), nullable=False),
        sa.Column("luvi", sa.Float(), nullable=False),
        sa.Column("members_count", sa.Integer(), nullable=False),
        sa.Column("rune_depth", sa.BigInteger(), nullable=False),
        sa.Column("synth_supply", sa.BigInteger(), nullable=False),
        sa.Column("synth_units", sa.BigInteger(), nullable=False),
        sa.Column("units", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    _interval_indexes("depth_history")

    op.create_table(
        "rune_pool_history",
        *_interval_columns(),
        sa.Column("units", sa.BigInteger(), nullable=False),
        sa.Column("count", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    _interval_indexes("rune_pool_history")

    legs = ["to_asset", "to_rune", "to_trade", "from_trade", "synth_mint", "synth_redeem"]
    swap_columns = []
    swap_columns += [sa.Column(f"{leg}_count", sa.BigInteger(), nullable=False) for leg in legs]
    swap_columns.append(sa.Column("total_count", sa.BigInteger(), nullable=False))
    swap_columns += [sa.Column(f"{leg}_volume", sa.BigInteger(), nullable=False) for leg in legs]
    swap_columns.append(sa.Column("total_volume", sa.BigInteger(), nullable=False))
    swap_columns += [sa.Column(f"{leg}_volume_usd", sa.Float(), nullable=False) for leg in legs]
    swap_columns.append(sa.Column("total_volume_usd", sa.Float(), nullable=False))
    swap_columns += [sa.Column(f"{leg}_fees", sa.BigInteger(), nullable=False) for leg in legs]
    swap_columns.append(sa.Column("total_fees", sa.BigInteger(), nullable=False))
    swap_columns += [sa.Column(f"{leg}_average_slip", sa.Float(), nullable=False) for leg in legs]
    swap_columns.append(sa.Column("average_slip", sa.Float(), nullable=False))
    swap_columns.append(sa.Column("rune_price_usd", sa.Float(), nullable=False))
    op.create_table(
        "swaps",
        *_interval_columns(),
        *swap_columns,
        sa.PrimaryKeyConstraint("id"),
    )
    _interval_indexes("swaps")

    op.create_table(
        "earnings_history",
        *_interval_columns(),
        sa.Column("liquidity_fees", sa.BigInteger(), nullable=False),
        sa.Column("block_rewards", sa.BigInteger(), nullable=False),
        sa.Column("earnings", sa.BigInteger(), nullable=False),
        sa.Column("bonding_earnings", sa.BigInteger(), nullable=False),
        sa.Column("liquidity_earnings", sa.BigInteger(), nullable=False),
        sa.Column("avg_node_count", sa.Float(), nullable=False),
        sa.Column("rune_price_usd", sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    _interval_indexes("earnings_history")

    op.create_table(
        "pool_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("earnings_start_time", sa.BigInteger(), nullable=False),
        sa.Column("pool_name", sa.String(length=128), nullable=False),
        sa.Column("asset_liquidity_fees", sa.BigInteger(), nullable=False),
        sa.Column("rune_liquidity_fees", sa.BigInteger(), nullable=False),
        sa.Column("total_liquidity_fees_rune", sa.BigInteger(), nullable=False),
        sa.Column("saver_earning", sa.BigInteger(), nullable=False),
        sa.Column("rewards", sa.BigInteger(), nullable=False),
        sa.Column("earnings", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["earnings_start_time"], ["earnings_history.start_time"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("earnings_start_time", "pool_name", name="uq_pool_history_interval_pool"),
    )
    op.create_index("ix_pool_history_earnings_start_time", "pool_history", ["earnings_start_time"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_pool_history_earnings_start_time", table_name="pool_history")
    op.drop_table("pool_history")
    for table in ("earnings_history", "swaps", "rune_pool_history", "depth_history"):
        op.drop_index(f"ix_{table}_end_time", table_name=table)
        op.drop_index(f"ix_{table}_start_time", table_name=table)
        op.drop_table(table)
