"""
Data models for the Flight Weather Tracker.

Everything here is in-memory; nothing survives a process restart.
"""

from flightweather.models.entity import (
    UNKNOWN_LABEL,
    BoundingBox,
    Entity,
    Snapshot,
    meters_to_feet,
    ms_to_knots,
)
from flightweather.models.weather import WeatherObservation

__all__ = [
    'UNKNOWN_LABEL',
    'BoundingBox',
    'Entity',
    'Snapshot',
    'meters_to_feet',
    'ms_to_knots',
    'WeatherObservation',
]
