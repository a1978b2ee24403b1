"""
Data ingestion module.

Handles authenticating against OpenSky, fetching and filtering state
vectors, and driving the live fetch cycle.
"""

from flightweather.ingestion.fetcher import BoundedFetcher
from flightweather.ingestion.opensky_client import OpenSkyClient, StateVector
from flightweather.ingestion.pipeline import LivePipeline
from flightweather.ingestion.token_cache import TokenCache, TokenExchangeError

__all__ = [
    'BoundedFetcher',
    'OpenSkyClient',
    'StateVector',
    'LivePipeline',
    'TokenCache',
    'TokenExchangeError',
]
