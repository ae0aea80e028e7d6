from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

from midgard_history.db.session import Base, engine  # noqa: E402
from midgard_history.services.checkpoint_store import CheckpointStore  # noqa: E402
from midgard_history.services.series import SERIES, get_series  # noqa: E402
from midgard_history.workers.series_fetcher import SeriesFetcher  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Run one Midgard history fetch outside the scheduler.")
    parser.add_argument(
        "--series",
        default="all",
        choices=["all", *[name.value for name in SERIES]],
        help="Series to fetch (default: all)",
    )
    parser.add_argument("--from", dest="from_ts", type=int, help="Unix start timestamp (default: stored checkpoint)")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables before fetching")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    if args.create_tables:
        Base.metadata.create_all(engine)

    names = [name.value for name in SERIES] if args.series == "all" else [args.series]
    checkpoints = CheckpointStore()
    fetcher = SeriesFetcher()
    for name in names:
        definition = get_series(name)
        start = args.from_ts if args.from_ts is not None else checkpoints.last_boundary(definition)
        result = fetcher.fetch(definition, start)
        print(
            f"{name}: {result.state.value} pages={result.pages} written={result.written} "
            f"next_from={result.next_from}" + (f" error={result.error}" if result.error else "")
        )


if __name__ == "__main__":
    main()
