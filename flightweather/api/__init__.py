"""
API module.

Provides REST endpoints for:
- Flight data (displayed markers, incremental updates, OpenSky proxy)
- Weather near a selected aircraft
- Fleet metrics and system status
"""

from flightweather.api.flights import flights_bp
from flightweather.api.metrics import metrics_bp
from flightweather.api.weather import weather_bp

__all__ = ['flights_bp', 'metrics_bp', 'weather_bp']
