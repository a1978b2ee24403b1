"""
OAuth2 access-token cache for the OpenSky API.

OpenSky issues short-lived bearer tokens through a client-credentials
exchange. One token is cached and reused until it comes within a safety
margin of its expiry, so each fetch batch costs at most one extra round-trip.

Unlike fetch failures, a failed exchange is raised to the caller: no
authenticated request can succeed without a token.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from flightweather.config import config

logger = logging.getLogger(__name__)


class TokenExchangeError(RuntimeError):
    """The credential exchange did not yield a usable token."""


@dataclass
class CacheEntry:
    """A cached value and the epoch time at which it expires."""
    value: str
    expires_at: float


class TokenCache:
    """
    Holds at most one access token plus its expiry.

    Thread-safe; two callers racing on a stale token may both refresh, the
    last write wins.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        token_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
        safety_margin: Optional[float] = None,
        default_lifetime: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url or config.opensky.token_url
        self.session = session or requests.Session()
        self._clock = clock
        self.safety_margin = (
            config.opensky.token_safety_margin_seconds if safety_margin is None else safety_margin
        )
        self.default_lifetime = default_lifetime or config.opensky.default_token_lifetime_seconds
        self.timeout = timeout or config.opensky.request_timeout

        self._entry: Optional[CacheEntry] = None
        self._lock = threading.RLock()

        # Statistics
        self._refreshes = 0
        self._hits = 0

    @classmethod
    def from_config(cls, session: Optional[requests.Session] = None) -> 'TokenCache':
        """Create cache from application configuration."""
        return cls(
            client_id=config.opensky.client_id,
            client_secret=config.opensky.client_secret,
            token_url=config.opensky.token_url,
            session=session,
        )

    def get_token(self) -> str:
        """
        Return a token valid for at least `safety_margin` more seconds.

        Raises:
            TokenExchangeError if a refresh was needed and failed
        """
        with self._lock:
            entry = self._entry
            if entry and self._clock() < entry.expires_at - self.safety_margin:
                self._hits += 1
                return entry.value

        # Network call happens outside the lock
        token, lifetime = self._exchange()

        with self._lock:
            self._entry = CacheEntry(value=token, expires_at=self._clock() + lifetime)
            self._refreshes += 1

        logger.info(f'Obtained OpenSky access token (valid {lifetime:.0f}s)')
        return token

    def invalidate(self) -> None:
        """Forget the cached token; the next call performs an exchange."""
        with self._lock:
            self._entry = None

    @property
    def expires_at(self) -> Optional[float]:
        with self._lock:
            return self._entry.expires_at if self._entry else None

    def _exchange(self):
        """POST client credentials and return (access_token, lifetime_seconds)."""
        try:
            response = self.session.post(
                self.token_url,
                data={
                    'grant_type': 'client_credentials',
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                },
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f'Token request failed: {e}')
            raise TokenExchangeError(f'Token request failed: {e}') from e

        if not response.ok:
            logger.error(f'Token request failed: {response.status_code}')
            raise TokenExchangeError(
                f'Token request failed: {response.status_code} {response.text}'
            )

        try:
            payload = response.json()
            token = payload['access_token']
            lifetime = float(payload.get('expires_in') or self.default_lifetime)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise TokenExchangeError(f'Malformed token response: {e}') from e

        if not token:
            raise TokenExchangeError('Token response did not include an access token')

        return token, lifetime

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            return {
                'cached': self._entry is not None,
                'expires_at': self._entry.expires_at if self._entry else None,
                'hits': self._hits,
                'refreshes': self._refreshes,
            }
