"""
Wait Time Tracker - Flask API Application
Main API application with Blueprints, CORS, and middleware.
"""

import time
from typing import Optional

from flask import Flask, g, jsonify, request
from flask_cors import CORS

from collector.refresh_orchestrator import RefreshOrchestrator
from collector.themeparks_wiki_client import get_themeparks_wiki_client
from storage.medium import create_storage_medium
from storage.snapshot_store import SnapshotStore
from utils.config import (
    FLASK_DEBUG,
    FLASK_ENV,
    HISTORY_DEDUP_WINDOW_SECONDS,
    HISTORY_MAX_SNAPSHOTS,
    PARK_IDS,
    SECRET_KEY,
)
from utils.logger import log_api_request, logger
from api.routes.health import health_bp
from api.routes.wait_times import ORCHESTRATOR_EXTENSION, wait_times_bp
from api.middleware.error_handler import register_error_handlers


def create_default_orchestrator() -> RefreshOrchestrator:
    """Wire the live client and configured history store together."""
    store = SnapshotStore(
        create_storage_medium(),
        dedup_window_seconds=HISTORY_DEDUP_WINDOW_SECONDS,
        max_snapshots=HISTORY_MAX_SNAPSHOTS
    )
    return RefreshOrchestrator(get_themeparks_wiki_client(), store, PARK_IDS)


def create_app(orchestrator: Optional[RefreshOrchestrator] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        orchestrator: Refresh orchestrator to serve from (default: live client
            plus the configured history store)

    Returns:
        Configured Flask app instance
    """
    app = Flask(__name__)

    # Configuration
    app.config['ENV'] = FLASK_ENV
    app.config['DEBUG'] = FLASK_DEBUG
    app.config['SECRET_KEY'] = SECRET_KEY
    app.json.sort_keys = False  # Preserve JSON key order

    # CORS configuration
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "OPTIONS"],
            "allow_headers": ["Content-Type"]
        }
    })

    app.extensions[ORCHESTRATOR_EXTENSION] = orchestrator or create_default_orchestrator()

    # Register blueprints
    app.register_blueprint(health_bp, url_prefix='/api')
    app.register_blueprint(wait_times_bp, url_prefix='/api')

    # Register error handlers
    register_error_handlers(app)

    @app.before_request
    def start_timer():
        g.request_start = time.monotonic()

    @app.after_request
    def log_request(response):
        started = g.get('request_start')
        if started is not None and request.path.startswith('/api'):
            log_api_request(
                method=request.method,
                path=request.path,
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - started) * 1000, 2)
            )
        return response

    # Log startup
    logger.info(f"Flask app created (env={FLASK_ENV}, debug={FLASK_DEBUG})")

    # Root endpoint
    @app.route('/')
    def index():
        """Root endpoint with API information."""
        return jsonify({
            "name": "Wait Time Tracker API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "health": "/api/health",
                "wait_times": "/api/wait-times",
                "park_rides": "/api/parks/<park_id>/rides"
            }
        })

    return app


if __name__ == '__main__':
    # Development server
    app = create_app()
    app.run(
        host='0.0.0.0',
        port=5000,
        debug=FLASK_DEBUG
    )
