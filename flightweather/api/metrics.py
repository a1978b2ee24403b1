"""
Metrics API endpoints.

Provides endpoints for:
- GET /api/metrics/fleet - Fleet-wide statistics
- GET /api/metrics/status - Pipeline and cache health
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from flightweather.analytics import fleet_statistics
from flightweather.config import config

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__, url_prefix='/api/metrics')


@metrics_bp.route('/fleet', methods=['GET'])
def get_fleet_metrics():
    """
    Aggregate statistics for all displayed aircraft.

    Returns:
    - Aircraft count, by colour bucket
    - Altitude and speed distributions
    - Climbing / descending / level counts
    """
    start_time = time.perf_counter()

    pipeline = current_app.config['PIPELINE']
    stats = fleet_statistics(pipeline.layer.markers())

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'fleet': stats,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@metrics_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    Returns:
    - Polling pipeline and render scheduler status
    - Token and weather cache statistics
    - Configuration info
    """
    pipeline = current_app.config['PIPELINE']
    client = current_app.config['OPENSKY_CLIENT']
    weather_cache = current_app.config['WEATHER_CACHE']

    pipeline_stats = pipeline.stats
    token_stats = client.token_cache.stats if client.token_cache else None

    return jsonify({
        'status': 'healthy' if pipeline_stats.get('running') else 'degraded',
        'ingestion': pipeline_stats,
        'scheduler': pipeline.scheduler.stats,
        'token': token_stats,
        'weather_cache': weather_cache.stats,
        'bounds': {
            'north': pipeline.bounds.north,
            'south': pipeline.bounds.south,
            'east': pipeline.bounds.east,
            'west': pipeline.bounds.west,
        },
        'config': {
            'poll_interval': config.ingestion.poll_interval,
            'render_interval_ms': config.ingestion.render_interval_ms,
            'opensky_authenticated': client.is_authenticated,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
