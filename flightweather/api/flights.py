"""
Flight data API endpoints.

Provides endpoints for:
- GET /api/flights - List tracked flights (optional callsign search)
- GET /api/flights/<icao24> - Get single flight details
- GET /api/flights/updates - Most recently applied diff batch
- GET /api/flights/states - Authenticated pass-through to OpenSky
"""

import logging
import time
from datetime import datetime, timezone

import requests
from flask import Blueprint, current_app, jsonify, request

from flightweather.ingestion.token_cache import TokenExchangeError

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__, url_prefix='/api/flights')

# Query parameters forwarded to OpenSky by the proxy route
PROXY_PARAMS = ('lamin', 'lomin', 'lamax', 'lomax')


def _layer():
    return current_app.config['PIPELINE'].layer


@flights_bp.route('', methods=['GET'])
def list_flights():
    """
    List all currently displayed flights.

    Query parameters:
    - q: callsign substring, case-insensitive (blank shows all)

    Response includes query timing for latency awareness.
    """
    start_time = time.perf_counter()

    layer = _layer()
    term = request.args.get('q', '')
    markers = layer.search(term)
    markers.sort(key=lambda m: m.entity.label)

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'flights': [m.to_dict() for m in markers],
        'count': len(markers),
        'total': len(layer),
        'query': term.strip().upper() or None,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@flights_bp.route('/updates', methods=['GET'])
def get_updates():
    """
    Most recent batch applied to the map.

    Clients compare `sequence` with the last one they saw; a gap means
    they should reload the full list.
    """
    return jsonify(_layer().last_batch())


@flights_bp.route('/states', methods=['GET'])
def proxy_states():
    """
    Pass-through proxy for OpenSky /states/all.

    Adds the bearer token server-side so browsers never see credentials.
    Upstream errors are forwarded with their status code.
    """
    client = current_app.config['OPENSKY_CLIENT']
    params = {
        name: request.args[name]
        for name in PROXY_PARAMS
        if request.args.get(name)
    }

    try:
        upstream = client.request_states(params)
    except (TokenExchangeError, requests.RequestException) as e:
        logger.error(f'Proxy request failed: {e}')
        return jsonify({'error': 'Server error', 'details': str(e)}), 500

    if not upstream.ok:
        return jsonify({'error': 'OpenSky error', 'details': upstream.text}), upstream.status_code

    try:
        return jsonify(upstream.json())
    except ValueError as e:
        logger.error(f'Proxy received malformed payload: {e}')
        return jsonify({'error': 'Server error', 'details': str(e)}), 500


@flights_bp.route('/<icao24>', methods=['GET'])
def get_flight(icao24: str):
    """Get detailed information for a single displayed flight."""
    marker = _layer().get(icao24)
    if marker is None:
        return jsonify({'error': 'Flight not found'}), 404
    return jsonify(marker.to_dict())
