from __future__ import annotations

import pytest
import requests

from conftest import FakeClock, FakeResponse, FakeSession, state_vector
from flightweather.ingestion.fetcher import BoundedFetcher
from flightweather.ingestion.opensky_client import OpenSkyClient, StateVector
from flightweather.ingestion.token_cache import TokenCache, TokenExchangeError
from flightweather.models import UNKNOWN_LABEL, BoundingBox

BOUNDS = BoundingBox(north=49.38, south=24.52, east=-66.95, west=-125.0)


def _fetcher(session: FakeSession, clock: FakeClock, token_cache: TokenCache | None = None) -> BoundedFetcher:
    client = OpenSkyClient(token_cache=token_cache, base_url="https://opensky.example/api", session=session)
    return BoundedFetcher(client=client, clock=clock)


def _states(*rows: list) -> FakeResponse:
    return FakeResponse(200, {"time": 1700000000, "states": list(rows)})


def test_fetch_normalizes_records(session: FakeSession, clock: FakeClock) -> None:
    session.get_responses.append(_states(state_vector(icao24="ABC123", callsign="DAL42   ")))

    snapshot = _fetcher(session, clock).fetch(BOUNDS)

    entity = snapshot.get("abc123")
    assert entity is not None
    assert entity.label == "DAL42"
    assert entity.origin_region == "United States"
    assert entity.position == (40.0, -75.0)
    assert entity.heading == 90.0
    assert snapshot.fetched_at == clock.now


def test_fetch_sends_bounds_as_query(session: FakeSession, clock: FakeClock) -> None:
    session.get_responses.append(_states())

    _fetcher(session, clock).fetch(BOUNDS)

    _, url, kwargs = session.calls[0]
    assert url == "https://opensky.example/api/states/all"
    assert kwargs["params"] == {"lamin": 24.52, "lomin": -125.0, "lamax": 49.38, "lomax": -66.95}
    assert "Authorization" not in kwargs["headers"]


def test_missing_callsign_uses_unknown_label(session: FakeSession, clock: FakeClock) -> None:
    session.get_responses.append(_states(state_vector(callsign=None), state_vector(icao24="def456", callsign="   ")))

    snapshot = _fetcher(session, clock).fetch(BOUNDS)

    assert {e.label for e in snapshot} == {UNKNOWN_LABEL}


def test_drops_records_without_position_and_grounded(session: FakeSession, clock: FakeClock) -> None:
    session.get_responses.append(
        _states(
            state_vector(icao24="a00001", lat=None),
            state_vector(icao24="a00002", lon=None),
            state_vector(icao24="a00003", on_ground=True),
            state_vector(icao24="a00004"),
        )
    )

    snapshot = _fetcher(session, clock).fetch(BOUNDS)

    assert snapshot.ids == ["a00004"]


def test_bounding_edge_is_inclusive(session: FakeSession, clock: FakeClock) -> None:
    session.get_responses.append(
        _states(
            state_vector(icao24="edge01", lat=BOUNDS.north),
            state_vector(icao24="out001", lat=BOUNDS.north + 1),
            state_vector(icao24="edge02", lon=BOUNDS.west),
            state_vector(icao24="out002", lon=BOUNDS.east + 1),
        )
    )

    snapshot = _fetcher(session, clock).fetch(BOUNDS)

    assert sorted(snapshot.ids) == ["edge01", "edge02"]


def test_zero_coordinates_are_valid() -> None:
    sv = StateVector.from_array(state_vector(lat=0.0, lon=0.0))
    assert sv is not None
    assert sv.has_position()


def test_non_finite_numbers_are_treated_as_missing() -> None:
    sv = StateVector.from_array(state_vector(track=float("nan"), velocity=float("inf")))
    assert sv is not None
    assert sv.true_track is None
    assert sv.velocity is None

    assert StateVector.from_array(state_vector(lat=float("nan"))).has_position() is False


def test_short_or_invalid_rows_are_skipped(session: FakeSession, clock: FakeClock) -> None:
    session.get_responses.append(_states(["abc"], None, [None] * 17, state_vector(icao24="good01")))

    snapshot = _fetcher(session, clock).fetch(BOUNDS)

    assert snapshot.ids == ["good01"]


@pytest.mark.parametrize(
    "failure",
    [
        requests.ConnectionError("no route"),
        requests.Timeout("slow"),
        FakeResponse(503, None, text="unavailable"),
        FakeResponse(200, ValueError("not json")),
        FakeResponse(200, ["not", "an", "object"]),
        FakeResponse(200, {"states": "garbage"}),
    ],
)
def test_failures_yield_empty_snapshot(session: FakeSession, clock: FakeClock, failure: object) -> None:
    session.get_responses.append(failure)
    fetcher = _fetcher(session, clock)

    snapshot = fetcher.fetch(BOUNDS)

    assert len(snapshot) == 0
    assert fetcher.failure_count == 1


def test_null_states_is_an_empty_snapshot_not_a_failure(session: FakeSession, clock: FakeClock) -> None:
    session.get_responses.append(FakeResponse(200, {"time": 1, "states": None}))
    fetcher = _fetcher(session, clock)

    assert len(fetcher.fetch(BOUNDS)) == 0
    assert fetcher.failure_count == 0


def test_token_failure_propagates(session: FakeSession, clock: FakeClock) -> None:
    session.post_responses.append(FakeResponse(400, None, text="bad credentials"))
    token_cache = TokenCache("client", "secret", token_url="https://auth.example/token", session=session, clock=clock)

    with pytest.raises(TokenExchangeError):
        _fetcher(session, clock, token_cache=token_cache).fetch(BOUNDS)

    assert not any(method == "GET" for method, _, _ in session.calls)


def test_authenticated_fetch_sends_bearer_token(session: FakeSession, clock: FakeClock) -> None:
    session.post_responses.append(FakeResponse(200, {"access_token": "tok-1", "expires_in": 1800}))
    session.get_responses.extend([_states(state_vector()), _states(state_vector())])
    token_cache = TokenCache("client", "secret", token_url="https://auth.example/token", session=session, clock=clock)
    fetcher = _fetcher(session, clock, token_cache=token_cache)

    fetcher.fetch(BOUNDS)
    fetcher.fetch(BOUNDS)

    gets = [kwargs for method, _, kwargs in session.calls if method == "GET"]
    assert [g["headers"]["Authorization"] for g in gets] == ["Bearer tok-1", "Bearer tok-1"]
    assert sum(1 for method, _, _ in session.calls if method == "POST") == 1


def test_unauthorized_response_invalidates_token(session: FakeSession, clock: FakeClock) -> None:
    session.post_responses.append(FakeResponse(200, {"access_token": "tok-1"}))
    session.get_responses.append(FakeResponse(401, None, text="expired"))
    token_cache = TokenCache("client", "secret", token_url="https://auth.example/token", session=session, clock=clock)

    snapshot = _fetcher(session, clock, token_cache=token_cache).fetch(BOUNDS)

    assert len(snapshot) == 0
    assert token_cache.expires_at is None
