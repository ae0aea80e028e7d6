import httpx
from sqlalchemy import func, select

from midgard_history.services.series import DEPTH
from midgard_history.services.writer import IdempotentWriter
from midgard_history.workers.series_fetcher import FetchState, SeriesFetcher

from helpers import FakeMidgardClient, depth_raw, page, status_error


class RecordingWriter:
    def __init__(self):
        self.batches = []

    def persist(self, definition, records):
        self.batches.append([r["start_time"] for r in records])
        return len(records)


def _fetcher(client, writer=None, sleeps=None):
    return SeriesFetcher(
        client=client,
        writer=writer or RecordingWriter(),
        page_size=400,
        backoff_seconds=5.0,
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
    )


def test_next_request_starts_one_second_after_last_end_time():
    client = FakeMidgardClient([page(depth_raw(0, 3600), depth_raw(3600, 7200)), page()])

    result = _fetcher(client).fetch(DEPTH, 0, now=10**9)

    assert client.calls == [0, 7201]
    assert result.state is FetchState.EXHAUSTED
    assert result.next_from == 7201


def test_rate_limit_waits_and_retries_same_cursor():
    sleeps = []
    client = FakeMidgardClient([status_error(429), status_error(429), page(depth_raw(100, 3700))])

    result = _fetcher(client, sleeps=sleeps).fetch(DEPTH, 100, now=3000)

    assert sleeps == [5.0, 5.0]
    assert client.calls == [100, 100, 100]
    assert result.pages == 1
    assert result.rate_limited == 2
    assert result.state is FetchState.CAUGHT_UP


def test_server_error_aborts_without_raising():
    writer = RecordingWriter()
    client = FakeMidgardClient([page(depth_raw(0, 3600)), status_error(500)])

    result = _fetcher(client, writer=writer).fetch(DEPTH, 0, now=10**9)

    assert result.state is FetchState.FAILED
    assert result.error == "HTTP 500"
    assert writer.batches == [[0]]
    assert result.next_from == 3601


def test_network_errors_are_retried():
    sleeps = []
    request = httpx.Request("GET", "https://midgard.test")
    client = FakeMidgardClient([httpx.ConnectError("boom", request=request), page()])

    result = _fetcher(client, sleeps=sleeps).fetch(DEPTH, 0, now=10**9)

    assert sleeps == [5.0]
    assert client.calls == [0, 0]
    assert result.state is FetchState.EXHAUSTED
    assert result.transient_errors == 1


def test_undecodable_payload_aborts():
    client = FakeMidgardClient([ValueError("Expecting value")])

    result = _fetcher(client).fetch(DEPTH, 0, now=10**9)

    assert result.state is FetchState.FAILED
    assert client.calls == [0]


def test_stops_once_cursor_reaches_start_time_clock():
    client = FakeMidgardClient([page(depth_raw(0, 3600)), page(depth_raw(3600, 7200)), page(depth_raw(7200, 10800))])

    result = _fetcher(client).fetch(DEPTH, 0, now=7000)

    assert client.calls == [0, 3601]
    assert result.state is FetchState.CAUGHT_UP
    assert [r["start_time"] for r in result.records] == [0, 3600]


def test_each_page_is_persisted_before_the_next_request(session_factory):
    persisted_before_call = []

    class ObservingClient(FakeMidgardClient):
        def get_history(self, definition, from_timestamp, count):
            with session_factory() as session:
                persisted_before_call.append(session.scalar(select(func.count()).select_from(definition.model)))
            return super().get_history(definition, from_timestamp, count)

    client = ObservingClient([page(depth_raw(0, 3600)), page(depth_raw(3600, 7200)), page()])

    result = _fetcher(client, writer=IdempotentWriter(session_factory)).fetch(DEPTH, 0, now=10**9)

    assert persisted_before_call == [0, 1, 2]
    assert result.written == 2


def test_non_advancing_upstream_is_abandoned():
    client = FakeMidgardClient([page(depth_raw(0, 3600)), page(depth_raw(0, 3600))])

    result = _fetcher(client).fetch(DEPTH, 3601, now=10**9)

    assert result.state is FetchState.FAILED
    assert client.calls == [3601]
