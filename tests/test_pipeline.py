from __future__ import annotations

import pytest

from conftest import FakeClock, ManualTimer, make_entity
from flightweather.display.markers import MarkerLayer
from flightweather.ingestion.pipeline import LivePipeline
from flightweather.ingestion.token_cache import TokenExchangeError
from flightweather.models import BoundingBox, Snapshot

BOUNDS = BoundingBox(north=49.38, south=24.52, east=-66.95, west=-125.0)


class _FakeFetcher:
    def __init__(self, results: list) -> None:
        self.results = results
        self.bounds_seen: list[BoundingBox] = []

    def fetch(self, bounds: BoundingBox) -> Snapshot:
        self.bounds_seen.append(bounds)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _pipeline(results: list, clock: FakeClock, timer: ManualTimer) -> LivePipeline:
    return LivePipeline(
        fetcher=_FakeFetcher(results),
        bounds=BOUNDS,
        layer=MarkerLayer(),
        render_interval=0.5,
        clock=clock,
        render_clock=clock,
        timer_factory=timer,
    )


def _snapshot(*ids: str, **overrides) -> Snapshot:
    return Snapshot.from_entities([make_entity(i, **overrides) for i in ids], fetched_at=1.0)


def test_cycle_applies_snapshot_to_layer(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline([_snapshot("a", "b")], clock, manual_timer)

    assert pipeline.fetch_and_process() == 2

    assert sorted(m.entity.id for m in pipeline.layer.markers()) == ["a", "b"]
    assert pipeline.fetcher.bounds_seen == [BOUNDS]


def test_only_changes_are_applied(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline(
        [_snapshot("a", "b"), _snapshot("b", "c")],
        clock,
        manual_timer,
    )

    pipeline.fetch_and_process()
    clock.advance(30)
    pipeline.fetch_and_process()

    ops = pipeline.layer.last_batch()["operations"]
    assert sorted((op["op"], op["id"]) for op in ops) == [("add", "c"), ("remove", "a")]


def test_coalesced_snapshots_lose_nothing(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline(
        [_snapshot("a"), _snapshot("a", "b"), _snapshot("a", "b", "c")],
        clock,
        manual_timer,
    )

    pipeline.fetch_and_process()
    clock.advance(0.1)
    pipeline.fetch_and_process()
    clock.advance(0.1)
    pipeline.fetch_and_process()

    assert len(pipeline.layer) == 1
    clock.advance(0.3)
    manual_timer.fire_all()

    assert sorted(m.entity.id for m in pipeline.layer.markers()) == ["a", "b", "c"]


def test_empty_snapshot_keeps_last_displayed(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline([_snapshot("a", "b"), Snapshot.empty()], clock, manual_timer)

    pipeline.fetch_and_process()
    clock.advance(30)

    assert pipeline.fetch_and_process() == 0
    assert len(pipeline.layer) == 2
    assert pipeline.stats["empty_count"] == 1
    assert len(pipeline.latest) == 2


def test_token_failure_propagates_from_cycle(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline([TokenExchangeError("denied")], clock, manual_timer)

    with pytest.raises(TokenExchangeError):
        pipeline.fetch_and_process()


def test_ticker_counts_failed_cycles(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline([TokenExchangeError("denied"), _snapshot("a")], clock, manual_timer)

    pipeline._run_cycle()
    pipeline._run_cycle()

    assert pipeline.stats["error_count"] == 1
    assert len(pipeline.layer) == 1


def test_stop_flushes_pending_batch(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline([_snapshot("a"), _snapshot("a", "b")], clock, manual_timer)

    pipeline.fetch_and_process()
    pipeline.fetch_and_process()
    pipeline.stop()

    assert len(pipeline.layer) == 2


def test_render_throttle_applies_through_pipeline(clock: FakeClock, manual_timer: ManualTimer) -> None:
    pipeline = _pipeline([_snapshot("a"), _snapshot("a", "b")], clock, manual_timer)

    pipeline.fetch_and_process()
    clock.advance(0.1)
    pipeline.fetch_and_process()

    assert pipeline.scheduler.interval == 0.5
    assert abs(manual_timer.timers[0].delay - 0.4) < 1e-6
    assert pipeline.scheduler.stats == {"state": "pending", "interval": 0.5, "submitted": 2, "applied": 1}
