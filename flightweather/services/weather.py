"""
Weather service - current conditions near a selected aircraft.

Integrates with the National Weather Service API (US coverage only):
1. /points/{lat},{lon}        -> observation stations URL for the grid point
2. observation stations URL   -> nearest station id
3. {station}/observations/latest -> latest observation

Lookups are cached per coordinate, quantized to two decimal places, so
repeated clicks around the same area share one upstream round-trip.
Failures are never cached; the next lookup retries immediately.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import requests

from flightweather.config import config
from flightweather.models import WeatherObservation

logger = logging.getLogger(__name__)


class NwsClient:
    """
    Client for the api.weather.gov three-step observation lookup.

    All failures degrade to None.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url or config.weather.base_url
        self.session = session or requests.Session()
        self.timeout = timeout or config.weather.request_timeout
        self.headers = {
            'User-Agent': user_agent or config.weather.user_agent,
            'Accept': 'application/geo+json',
        }

    def _get_json(self, url: str) -> dict:
        response = self.session.get(url, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_observation(self, lat: float, lon: float) -> Optional[WeatherObservation]:
        """Fetch the latest observation nearest (lat, lon), or None."""
        try:
            # Step 1: grid point
            point = self._get_json(f'{self.base_url}/points/{lat:.4f},{lon:.4f}')
            stations_url = point['properties']['observationStations']

            # Step 2: nearest station
            stations = self._get_json(stations_url)
            features = stations.get('features') or []
            station_id = features[0].get('id') if features else None
            if not station_id:
                logger.warning(f'No weather station found near ({lat:.2f}, {lon:.2f})')
                return None

            # Step 3: latest observation
            observation = self._get_json(f'{station_id}/observations/latest')
            return WeatherObservation.from_nws(observation['properties'])

        except requests.HTTPError as e:
            # NWS answers 404 for points outside US coverage
            logger.warning(f'Weather lookup rejected for ({lat:.2f}, {lon:.2f}): {e}')
            return None
        except requests.RequestException as e:
            logger.error(f'Failed to fetch weather: {e}')
            return None
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f'Error parsing weather data: {e}')
            return None


@dataclass
class CacheEntry:
    value: WeatherObservation
    expires_at: float


class WeatherCache:
    """
    TTL cache of observations keyed by quantized coordinate.

    Expired entries are dropped lazily on read. Concurrent misses for the
    same key are not coalesced; each performs its own lookup and the last
    one stored wins.
    """

    def __init__(
        self,
        client: Optional[NwsClient] = None,
        ttl_seconds: Optional[float] = None,
        precision: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client or NwsClient()
        self.ttl_seconds = ttl_seconds or config.weather.ttl_seconds
        self.precision = config.weather.key_precision if precision is None else precision
        self._clock = clock

        self._cache: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0

    def key_for(self, lat: float, lon: float) -> str:
        return f'{lat:.{self.precision}f},{lon:.{self.precision}f}'

    def get(self, lat: float, lon: float) -> Optional[WeatherObservation]:
        """Cached observation near (lat, lon), fetched on miss or expiry."""
        key = self.key_for(lat, lon)

        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                if self._clock() < entry.expires_at:
                    self._hits += 1
                    logger.debug(f'Weather cache hit for {key}')
                    return entry.value
                # Expired
                del self._cache[key]
            self._misses += 1

        observation = self.client.get_observation(lat, lon)
        if observation is None:
            return None

        with self._lock:
            self._cache[key] = CacheEntry(
                value=observation,
                expires_at=self._clock() + self.ttl_seconds,
            )

        return observation

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                'entries': len(self._cache),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / total if total > 0 else 0,
            }
