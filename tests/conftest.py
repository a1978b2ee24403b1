from __future__ import annotations

from typing import Any, Callable

import pytest
import requests

from flightweather.models import Entity


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """Returns queued responses (or raises queued exceptions) per method."""

    def __init__(self) -> None:
        self.get_responses: list[Any] = []
        self.post_responses: list[Any] = []
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def _next(self, queue: list[Any]) -> FakeResponse:
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append(("GET", url, kwargs))
        return self._next(self.get_responses)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append(("POST", url, kwargs))
        return self._next(self.post_responses)


class ManualTimer:
    """Timer factory that records timers and fires them on demand."""

    def __init__(self) -> None:
        self.timers: list[_Timer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> _Timer:
        timer = _Timer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_all(self) -> None:
        for timer in list(self.timers):
            if not timer.cancelled and not timer.fired:
                timer.fired = True
                timer.callback()


class _Timer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


def make_entity(entity_id: str = "abc123", **overrides: Any) -> Entity:
    fields: dict[str, Any] = {
        "id": entity_id,
        "label": "UAL123",
        "origin_region": "United States",
        "latitude": 40.0,
        "longitude": -75.0,
        "altitude": 10000.0,
        "ground_speed": 230.0,
        "heading": 90.0,
        "vertical_rate": 0.0,
        "grounded": False,
    }
    fields.update(overrides)
    return Entity(**fields)


def state_vector(
    icao24: str = "abc123",
    callsign: str | None = "UAL123 ",
    country: str = "United States",
    lat: float | None = 40.0,
    lon: float | None = -75.0,
    on_ground: bool = False,
    altitude: float | None = 10000.0,
    velocity: float | None = 230.0,
    track: float | None = 90.0,
    vertical_rate: float | None = 0.0,
) -> list[Any]:
    return [
        icao24, callsign, country, 1700000000, 1700000001,
        lon, lat, altitude, on_ground, velocity, track, vertical_rate,
        None, altitude, "1200", False, 0,
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def manual_timer() -> ManualTimer:
    return ManualTimer()
