from __future__ import annotations

from flightweather.config import US_BOUNDS, _clamp_poll_interval, _parse_bounds, load_config


def test_bounds_parsing() -> None:
    assert _parse_bounds("") == US_BOUNDS
    assert _parse_bounds("42.0, 40.0, -73.0, -76.0") == (42.0, 40.0, -73.0, -76.0)
    assert _parse_bounds("1,2,3") == US_BOUNDS
    # South above north is rejected
    assert _parse_bounds("40.0,42.0,-73.0,-76.0") == US_BOUNDS


def test_poll_interval_is_clamped() -> None:
    assert _clamp_poll_interval("10") == 30
    assert _clamp_poll_interval("60") == 60
    assert _clamp_poll_interval("600") == 120
    assert _clamp_poll_interval("soon") == 30


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("BOUNDS", "42,40,-73,-76")
    monkeypatch.setenv("PORT", "5050")
    monkeypatch.setenv("FLASK_DEBUG", "1")

    cfg = load_config()

    assert (cfg.bounds.north, cfg.bounds.west) == (42.0, -76.0)
    assert cfg.port == 5050
    assert cfg.debug is True
    assert cfg.ingestion.render_interval == cfg.ingestion.render_interval_ms / 1000
