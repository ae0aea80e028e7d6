import threading

from sqlalchemy import func, select

from midgard_history.core.config import Settings
from midgard_history.models import DepthHistory
from midgard_history.services.checkpoint_store import CheckpointStore
from midgard_history.services.series import DEPTH, SERIES
from midgard_history.services.writer import IdempotentWriter
from midgard_history.workers.history_ingestor import HistoryIngestor, IngestorState, build_ingestors
from midgard_history.workers.series_fetcher import FetchResult, FetchState, SeriesFetcher

from helpers import FakeMidgardClient, depth_raw, page


class StubCheckpoints:
    def __init__(self, boundary):
        self.boundary = boundary

    def last_boundary(self, definition):
        return self.boundary


def test_end_to_end_first_run_then_fresh_tick(session_factory):
    checkpoints = CheckpointStore(session_factory, Settings(depth_start_timestamp=0))
    client = FakeMidgardClient([page(depth_raw(0, 400), depth_raw(400, 700), depth_raw(700, 1000)), page()])
    fetcher = SeriesFetcher(client=client, writer=IdempotentWriter(session_factory), sleep=lambda _: None)
    ingestor = HistoryIngestor(DEPTH, checkpoints=checkpoints, fetcher=fetcher, staleness_threshold=3600)

    result = ingestor.tick(now=10_000)

    assert result.state is FetchState.EXHAUSTED
    assert result.written == 3
    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(DepthHistory)) == 3
    assert checkpoints.last_boundary(DEPTH) == 1000

    calls_before = list(client.calls)
    assert ingestor.tick(now=1000 + 1800) is None
    assert client.calls == calls_before


def test_stale_series_fetches_from_boundary():
    client = FakeMidgardClient([page()])
    fetcher = SeriesFetcher(client=client, writer=IdempotentWriter(), sleep=lambda _: None)
    ingestor = HistoryIngestor(DEPTH, checkpoints=StubCheckpoints(5000), fetcher=fetcher, staleness_threshold=3600)

    result = ingestor.tick(now=5000 + 3600)

    assert client.calls == [5000]
    assert result.state is FetchState.EXHAUSTED
    assert ingestor.state is IngestorState.IDLE


def test_overlapping_tick_is_a_no_op():
    entered = threading.Event()
    release = threading.Event()
    calls = []

    class BlockingFetcher:
        def fetch(self, definition, from_timestamp, now=None):
            calls.append(from_timestamp)
            entered.set()
            release.wait(5)
            return FetchResult(series="depth", state=FetchState.EXHAUSTED, start_from=from_timestamp, next_from=from_timestamp)

    ingestor = HistoryIngestor(DEPTH, checkpoints=StubCheckpoints(0), fetcher=BlockingFetcher(), staleness_threshold=1)
    worker = threading.Thread(target=ingestor.tick, kwargs={"now": 10_000})
    worker.start()
    try:
        assert entered.wait(5)
        assert ingestor.state is IngestorState.FETCHING
        assert ingestor.tick(now=20_000) is None
    finally:
        release.set()
        worker.join(5)

    assert calls == [0]
    assert ingestor.state is IngestorState.IDLE


def test_failure_in_one_series_is_contained():
    class ExplodingFetcher:
        def fetch(self, definition, from_timestamp, now=None):
            raise RuntimeError("store went away")

    ingestor = HistoryIngestor(DEPTH, checkpoints=StubCheckpoints(0), fetcher=ExplodingFetcher(), staleness_threshold=1)

    assert ingestor.tick(now=10_000) is None
    assert ingestor.state is IngestorState.IDLE
    # lock released: next tick runs again
    assert ingestor.tick(now=20_000) is None


def test_build_ingestors_one_per_series():
    ingestors = build_ingestors(checkpoints=StubCheckpoints(0), fetcher=SeriesFetcher(client=FakeMidgardClient([])))

    assert sorted(i.name for i in ingestors) == sorted(name.value for name in SERIES)
