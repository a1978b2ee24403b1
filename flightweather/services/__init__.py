"""
External integration services.

Handles third-party API calls with caching and graceful degradation
when services are unavailable.
"""

from flightweather.services.weather import NwsClient, WeatherCache

__all__ = ['NwsClient', 'WeatherCache']
