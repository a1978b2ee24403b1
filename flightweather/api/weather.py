"""
Weather API endpoint.

- GET /api/weather?lat=..&lon=.. - Conditions near a selected aircraft

When no observation can be obtained the response says so explicitly
rather than showing stale or made-up values.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from flightweather.config import config

logger = logging.getLogger(__name__)

weather_bp = Blueprint('weather', __name__, url_prefix='/api/weather')


@weather_bp.route('', methods=['GET'])
def get_weather():
    try:
        lat = float(request.args['lat'])
        lon = float(request.args['lon'])
    except (KeyError, ValueError, TypeError):
        return jsonify({'error': 'lat and lon are required numbers'}), 400

    if not (-90 <= lat <= 90):
        return jsonify({'error': 'Latitude must be between -90 and 90'}), 400
    if not (-180 <= lon <= 180):
        return jsonify({'error': 'Longitude must be between -180 and 180'}), 400

    cache = current_app.config['WEATHER_CACHE']
    observation = cache.get(lat, lon)

    if observation is None:
        return jsonify({
            'status': 'unavailable',
            'location': {'latitude': lat, 'longitude': lon},
        })

    return jsonify({
        'status': 'ok',
        'location': {'latitude': lat, 'longitude': lon},
        'weather': observation.to_dict(),
        'alerts': observation.alerts(
            high_wind_mph=config.weather.high_wind_mph,
            low_visibility_km=config.weather.low_visibility_km,
        ),
    })
