"""
Configuration management for the Flight Weather Tracker.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

# Continental United States (north, south, east, west)
US_BOUNDS = (49.38, 24.52, -66.95, -125.0)


def _parse_bounds(value: str) -> Tuple[float, float, float, float]:
    """Parse 'north,south,east,west' string, falling back to the US box."""
    if not value:
        return US_BOUNDS
    try:
        north, south, east, west = (float(part.strip()) for part in value.split(','))
    except (ValueError, AttributeError):
        return US_BOUNDS
    if south > north or west > east:
        return US_BOUNDS
    return (north, south, east, west)


def _clamp_poll_interval(value: str) -> int:
    """Fetch cadence is kept between 30 and 120 seconds."""
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return 30
    return max(30, min(120, seconds))


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky API and OAuth2 client-credentials configuration."""
    client_id: Optional[str] = os.getenv('OPENSKY_CLIENT_ID') or None
    client_secret: Optional[str] = os.getenv('OPENSKY_CLIENT_SECRET') or None
    base_url: str = 'https://opensky-network.org/api'
    token_url: str = (
        'https://auth.opensky-network.org/auth/realms/opensky-network'
        '/protocol/openid-connect/token'
    )
    token_safety_margin_seconds: int = 60
    default_token_lifetime_seconds: int = 1800
    request_timeout: int = 30

    @property
    def is_authenticated(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(frozen=True)
class BoundsConfig:
    """Tracked region, in degrees."""
    north: float
    south: float
    east: float
    west: float


@dataclass(frozen=True)
class IngestionConfig:
    """Polling and render cadence."""
    poll_interval: int = _clamp_poll_interval(os.getenv('POLL_INTERVAL_SECONDS', '30'))
    render_interval_ms: int = int(os.getenv('RENDER_INTERVAL_MS', '500'))

    @property
    def render_interval(self) -> float:
        return self.render_interval_ms / 1000.0


@dataclass(frozen=True)
class WeatherConfig:
    """National Weather Service lookups and caching."""
    base_url: str = 'https://api.weather.gov'
    # NWS rejects requests without a User-Agent
    user_agent: str = os.getenv('NWS_USER_AGENT', '(FlightWeatherTracker)')
    ttl_seconds: int = int(os.getenv('WEATHER_TTL_SECONDS', '600'))
    key_precision: int = 2
    request_timeout: int = 10
    high_wind_mph: float = 25.0
    low_visibility_km: float = 5.0


@dataclass(frozen=True)
class DisplayConfig:
    """Marker colouring and icon settings."""
    home_country: str = os.getenv('HOME_COUNTRY', 'United States')
    heading_step: int = 15
    max_icons: int = 100


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    opensky: OpenSkyConfig
    bounds: BoundsConfig
    ingestion: IngestionConfig
    weather: WeatherConfig
    display: DisplayConfig

    # Flask settings
    cors_origin: str
    port: int
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    north, south, east, west = _parse_bounds(os.getenv('BOUNDS', ''))
    return AppConfig(
        opensky=OpenSkyConfig(),
        bounds=BoundsConfig(north=north, south=south, east=east, west=west),
        ingestion=IngestionConfig(),
        weather=WeatherConfig(),
        display=DisplayConfig(),
        cors_origin=os.getenv('CORS_ORIGIN', 'http://localhost:5173'),
        port=int(os.getenv('PORT', '4000')),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
