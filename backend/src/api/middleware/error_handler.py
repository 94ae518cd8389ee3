"""
Wait Time Tracker - Error Handler Middleware
JSON error bodies ({error, message}) for the wait time endpoints.
"""

from flask import jsonify, request, Flask
from werkzeug.exceptions import HTTPException

from utils.logger import logger


def _error(status: int, error: str, message: str):
    return jsonify({"error": error, "message": message}), status


def register_error_handlers(app: Flask):
    """
    Register error handlers for Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(400)
    def bad_request(error):
        logger.warning(f"Bad request on {request.path}: {error}")
        return _error(400, "Bad Request", getattr(error, 'description', None) or "Invalid query parameters")

    @app.errorhandler(404)
    def not_found(error):
        logger.info(f"No route for {request.method} {request.path}")
        return _error(404, "Not Found", f"{request.path} is not a wait time endpoint")

    @app.errorhandler(405)
    def method_not_allowed(error):
        logger.info(f"Rejected {request.method} {request.path}")
        return _error(405, "Method Not Allowed", "The wait time API is read-only; use GET")

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return _error(500, "Internal Server Error", "Wait times could not be served")

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        # HTTP exceptions go to their specific handler
        if isinstance(error, HTTPException):
            return error

        logger.error(f"Unhandled {type(error).__name__} on {request.path}: {error}", exc_info=True)
        return _error(500, "Internal Server Error", "Wait times could not be served")

    logger.info("Error handlers registered")
