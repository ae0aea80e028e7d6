from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from midgard_history.core.config import Settings
from midgard_history.services.checkpoint_store import CheckpointStore
from midgard_history.services.series import DEPTH, SWAP
from midgard_history.services.writer import IdempotentWriter

from helpers import depth_raw


def _settings(**overrides):
    return Settings(**overrides)


def test_empty_series_reports_configured_fallback(session_factory):
    store = CheckpointStore(session_factory, _settings(depth_start_timestamp=1700000000))

    assert store.last_boundary(DEPTH) == 1700000000
    assert store.last_boundary(SWAP) == 1647910800


def test_boundary_is_max_end_time(session_factory):
    writer = IdempotentWriter(session_factory)
    store = CheckpointStore(session_factory, _settings())
    writer.persist(DEPTH, [DEPTH.parse(depth_raw(0, 3600)), DEPTH.parse(depth_raw(3600, 7200))])

    assert store.last_boundary(DEPTH) == 7200


def test_boundary_never_decreases_across_writes(session_factory):
    writer = IdempotentWriter(session_factory)
    store = CheckpointStore(session_factory, _settings(depth_start_timestamp=0))
    seen = [store.last_boundary(DEPTH)]

    for pages in ([(0, 3600), (3600, 7200)], [(3600, 7200)], [(7200, 10800), (10800, 14400)]):
        writer.persist(DEPTH, [DEPTH.parse(depth_raw(s, e)) for s, e in pages])
        seen.append(store.last_boundary(DEPTH))

    assert seen == sorted(seen)
    assert seen[-1] == 14400


def test_store_error_falls_back_to_floor(tmp_path):
    broken = create_engine(f"sqlite:///{tmp_path / 'missing' / 'nope.db'}")
    store = CheckpointStore(sessionmaker(bind=broken), _settings(depth_start_timestamp=42))

    assert store.last_boundary(DEPTH) == 42
