"""
Flight Weather Tracker Flask Application.

Main entry point for the web application. Initializes:
- OpenSky client (with token cache when credentials are configured)
- Live polling pipeline and marker layer
- Weather cache
- API routes

Usage:
    python -m flightweather.app

Or with gunicorn:
    gunicorn 'flightweather.app:create_app()'
"""

import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from flightweather.api import flights_bp, metrics_bp, weather_bp
from flightweather.config import config
from flightweather.ingestion import BoundedFetcher, LivePipeline, OpenSkyClient
from flightweather.services import WeatherCache

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    start_pipeline: bool = True,
    opensky_client: Optional[OpenSkyClient] = None,
    pipeline: Optional[LivePipeline] = None,
    weather_cache: Optional[WeatherCache] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        start_pipeline: Whether to start background polling.
                        Set to False for testing.
        opensky_client: Upstream client shared by the pipeline and proxy
        pipeline: Live pipeline (built from the client if None)
        weather_cache: Weather cache (built from config if None)

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': config.cors_origin}})

    # Process-lifetime components live on the app, not in module globals
    client = opensky_client or OpenSkyClient.from_config()
    if pipeline is None:
        pipeline = LivePipeline(fetcher=BoundedFetcher(client=client))
    app.config['OPENSKY_CLIENT'] = client
    app.config['PIPELINE'] = pipeline
    app.config['WEATHER_CACHE'] = weather_cache or WeatherCache()

    # Register API blueprints
    app.register_blueprint(flights_bp)
    app.register_blueprint(weather_bp)
    app.register_blueprint(metrics_bp)

    if start_pipeline:
        pipeline.start_background()
        logger.info(f'Polling started for bounds {pipeline.bounds}')

    @app.route('/')
    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    logger.info(f'Starting Flight Weather Tracker on http://localhost:{config.port}')

    app.run(
        host='0.0.0.0',
        port=config.port,
        debug=config.debug,
        use_reloader=False,  # Reloader would start a second polling thread
    )


if __name__ == '__main__':
    run_development_server()
