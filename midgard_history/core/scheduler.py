from __future__ import annotations

import logging
from typing import Sequence

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler

from midgard_history.core.config import settings
from midgard_history.core.time_utils import now
from midgard_history.workers.history_ingestor import HistoryIngestor

logger = logging.getLogger(__name__)


def _run_tick(ingestor: HistoryIngestor) -> None:
    started = now()
    logger.info("scheduler: %s tick start", ingestor.name)
    # tick() logs and swallows its own failures.
    result = ingestor.tick()
    state = result.state.value if result else "skipped"
    logger.info(
        "scheduler: %s tick done (%s) in %.2fs",
        ingestor.name,
        state,
        (now() - started).total_seconds(),
    )


def start_scheduler(
    ingestors: Sequence[HistoryIngestor],
    interval_seconds: int | None = None,
) -> BackgroundScheduler:
    """Register one interval job per series on a shared clock and start it.

    ``max_instances=1`` keeps an overrunning fetch from being joined by the next
    tick's run; ``coalesce`` folds missed ticks into one.
    """
    interval = interval_seconds or settings.scheduler_interval_seconds
    scheduler = BackgroundScheduler(executors={"default": ThreadPoolExecutor(max_workers=max(1, len(ingestors)))})
    for ingestor in ingestors:
        scheduler.add_job(
            _run_tick,
            "interval",
            seconds=interval,
            args=[ingestor],
            next_run_time=now(),
            id=f"ingest_{ingestor.name}",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
    scheduler.start()
    logger.info("scheduler started with %s series every %ss", len(ingestors), interval)
    return scheduler
