"""
OpenSky Network API client.

Handles communication with the OpenSky REST API, including:
- OAuth2 bearer authentication via TokenCache (optional; anonymous
  access works with lower rate limits)
- Bounding box queries for geographic filtering
- Parsing the positional state-vector arrays

OpenSky state vector format (array indices):
0: icao24          - ICAO24 hex address
1: callsign        - Callsign (8 chars max)
2: origin_country  - Country of registration
3: time_position   - Unix timestamp of last position update
4: last_contact    - Unix timestamp of last message
5: longitude       - WGS84 longitude
6: latitude        - WGS84 latitude
7: baro_altitude   - Barometric altitude (meters)
8: on_ground       - Boolean
9: velocity        - Ground speed (m/s)
10: true_track     - Track angle (degrees, 0=north)
11: vertical_rate  - Vertical rate (m/s)
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Optional, List, Tuple, Any

import requests

from flightweather.config import config
from flightweather.ingestion.token_cache import TokenCache
from flightweather.models import BoundingBox

logger = logging.getLogger(__name__)

# Highest index we read from a state vector
_MIN_STATE_LENGTH = 12


def _number(value: Any) -> Optional[float]:
    """Accept finite ints and floats, reject bools and anything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


@dataclass
class StateVector:
    """
    Parsed state vector from OpenSky API.

    Normalizes the raw array format into a typed dataclass.
    All values may be None if not reported by the aircraft.
    """
    icao24: str
    callsign: Optional[str]
    origin_country: Optional[str]
    time_position: Optional[int]
    last_contact: Optional[int]
    longitude: Optional[float]
    latitude: Optional[float]
    baro_altitude: Optional[float]
    on_ground: bool
    velocity: Optional[float]
    true_track: Optional[float]
    vertical_rate: Optional[float]

    @classmethod
    def from_array(cls, arr: Any) -> Optional['StateVector']:
        """
        Parse OpenSky state vector array into StateVector object.

        Returns None if the array is malformed or missing required fields.
        """
        if not isinstance(arr, (list, tuple)) or len(arr) < _MIN_STATE_LENGTH:
            return None

        icao24 = arr[0]
        if not icao24 or not isinstance(icao24, str):
            return None

        # Normalize callsign (strip whitespace, handle None)
        callsign = arr[1]
        if isinstance(callsign, str):
            callsign = callsign.strip() or None
        else:
            callsign = None

        return cls(
            icao24=icao24.strip().lower(),
            callsign=callsign,
            origin_country=arr[2] if isinstance(arr[2], str) else None,
            time_position=arr[3],
            last_contact=arr[4],
            longitude=_number(arr[5]),
            latitude=_number(arr[6]),
            baro_altitude=_number(arr[7]),
            on_ground=bool(arr[8]),
            velocity=_number(arr[9]),
            true_track=_number(arr[10]),
            vertical_rate=_number(arr[11]),
        )

    def has_position(self) -> bool:
        """Check if this state has valid position data."""
        return self.latitude is not None and self.longitude is not None


class OpenSkyClient:
    """
    Client for OpenSky Network API.

    Handles:
    - GET requests to /states/all endpoint
    - Bearer authentication through a TokenCache
    - Bounding box query parameters

    Errors are raised; callers decide whether to swallow them.
    """

    def __init__(
        self,
        token_cache: Optional[TokenCache] = None,
        base_url: str = 'https://opensky-network.org/api',
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        self.base_url = base_url
        self.token_cache = token_cache
        self.session = session or requests.Session()
        self.timeout = timeout

        if token_cache:
            logger.info('OpenSky client initialized with OAuth2 client credentials')
        else:
            logger.warning('OpenSky client running without authentication (lower rate limits)')

    @classmethod
    def from_config(cls) -> 'OpenSkyClient':
        """Create client from application configuration."""
        session = requests.Session()
        token_cache = None
        if config.opensky.is_authenticated:
            token_cache = TokenCache.from_config(session=session)
        return cls(
            token_cache=token_cache,
            base_url=config.opensky.base_url,
            session=session,
            timeout=config.opensky.request_timeout,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.token_cache is not None

    def _headers(self) -> dict:
        """
        Request headers, including a bearer token when configured.

        Raises TokenExchangeError if a token cannot be obtained.
        """
        if not self.token_cache:
            return {}
        return {'Authorization': f'Bearer {self.token_cache.get_token()}'}

    def request_states(self, params: Optional[dict] = None) -> requests.Response:
        """
        Issue the raw /states/all request without checking the status.

        Used by the pass-through proxy route, which forwards upstream
        errors verbatim.
        """
        url = f'{self.base_url}/states/all'
        headers = self._headers()
        logger.debug(f'Fetching states: {url} params={params}')
        return self.session.get(
            url,
            params=params or {},
            headers=headers,
            timeout=self.timeout,
        )

    def get_states(
        self,
        bbox: Optional[BoundingBox] = None,
    ) -> Tuple[int, List[StateVector]]:
        """
        Fetch current state vectors from OpenSky.

        Args:
            bbox: Optional bounding box to filter by geography

        Returns:
            Tuple of (api_timestamp, list of StateVectors)
            api_timestamp is the OpenSky server time for this snapshot

        Raises:
            requests.RequestException on network/API errors
            ValueError on a malformed payload
            TokenExchangeError if authentication fails
        """
        params = bbox.to_params() if bbox else {}

        try:
            response = self.request_states(params)
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.Timeout:
            logger.error('OpenSky API timeout')
            raise
        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code == 429:
                logger.warning('OpenSky rate limit exceeded')
            elif e.response is not None and e.response.status_code == 401 and self.token_cache:
                # Token rejected early; force a fresh exchange next cycle
                self.token_cache.invalidate()
                logger.error('OpenSky rejected access token')
            else:
                logger.error(f'OpenSky API error: {e}')
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f'OpenSky request failed: {e}')
            raise

        if not isinstance(data, dict):
            raise ValueError('OpenSky payload is not an object')

        # Parse response
        api_time = data.get('time') or int(time.time())
        states_raw = data.get('states') or []
        if not isinstance(states_raw, list):
            raise ValueError('OpenSky states field is not a list')

        logger.info(f'Received {len(states_raw)} state vectors from OpenSky')

        states = []
        for arr in states_raw:
            sv = StateVector.from_array(arr)
            if sv:
                states.append(sv)

        return api_time, states
