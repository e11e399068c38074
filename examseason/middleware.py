"""
Middleware components for the exam season prescriptions report API.
"""

import time
import logging
from flask import request, g, abort

logger = logging.getLogger(__name__)


def request_timing_middleware(app):
    """
    Middleware to track request processing time.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def before_request():
        """Record request start time."""
        g.start_time = time.time()
        g.request_id = f"{int(time.time() * 1000)}"
        logger.info(f"Request {g.request_id} started: {request.method} {request.path}")

    @app.after_request
    def after_request(response):
        """Log request completion and timing."""
        if hasattr(g, 'start_time'):
            duration = time.time() - g.start_time
            logger.info(f"Request {g.request_id} completed: {response.status_code} in {duration:.4f}s")
            response.headers['X-Response-Time'] = f"{duration:.4f}s"
            response.headers['X-Request-ID'] = g.request_id
        return response


def security_headers_middleware(app):
    """
    Middleware to add security headers to responses.

    Args:
        app: Flask application instance
    """

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Content-Security-Policy'] = "default-src 'self'"
        return response


def error_tracking_middleware(app):
    """
    Middleware for error tracking.

    Args:
        app: Flask application instance
    """

    @app.teardown_request
    def track_errors(exception):
        """Track and log errors."""
        if exception:
            logger.error(f"Request failed with exception: {str(exception)}")
            logger.error(f"Request URL: {request.url}")
            logger.error(f"Request method: {request.method}")


def request_validation_middleware(app):
    """
    Middleware for request validation.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def validate_request():
        """Validate incoming requests."""
        # Bodies sent to the API must be JSON
        if request.method in ['POST', 'PUT'] and request.path.startswith('/api/') and request.content_length:
            if not request.is_json:
                abort(400, description="Content-Type must be application/json")


def register_middleware(app):
    """
    Register all middleware components.

    Args:
        app: Flask application instance
    """
    request_timing_middleware(app)
    security_headers_middleware(app)
    error_tracking_middleware(app)
    request_validation_middleware(app)

    logger.info("Middleware components registered successfully")
