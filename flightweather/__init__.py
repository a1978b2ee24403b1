"""
Flight Weather Tracker.

Live map backend for airborne aircraft over the US, built with Flask,
requests and NumPy. Polls OpenSky, diffs each snapshot against what is on
the map, and serves NWS weather for a selected aircraft.

Modules:
    api/         REST endpoints for flights, weather, metrics and the OpenSky proxy
    models/      Entity, Snapshot, BoundingBox and WeatherObservation
    ingestion/   OpenSky client, token cache, bounded fetcher, polling pipeline
    sync/        Snapshot differ and throttled update scheduler
    display/     Colour classifier, icon cache and marker layer
    services/    NWS weather lookups with a per-location TTL cache
    analytics/   NumPy fleet statistics
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
