"""
Security Utilities & Middleware
Secret key handling, CORS, security headers, JSON error handlers
and request logging for the API.
"""
import os
import secrets
from typing import Dict, Any
from flask import Flask, request, jsonify, Response
from flask_cors import CORS
import logging

from services.errors import ServiceError
from validators import ValidationError

logger = logging.getLogger(__name__)

QUIET_PATHS = ('/api/health', '/api/ping')

PRODUCTION_ENV_VARS = ['SECRET_KEY', 'DATABASE_URL', 'STRIPE_SECRET_KEY', 'STRIPE_WEBHOOK_SECRET']

# Fixed messages for aborts that never reach a ServiceError
HTTP_ERROR_MESSAGES = {
    400: 'The request could not be understood or was missing required parameters',
    401: 'Authentication required',
    403: 'You do not have permission to access this resource',
    404: 'The requested resource was not found',
    405: 'The method is not allowed for the requested URL',
    413: 'The uploaded file or request is too large',
    429: 'Too many requests. Please try again later',
    503: 'The service is temporarily unavailable. Please try again later',
}


class SecurityConfig:
    """Security configuration and validation"""

    @staticmethod
    def generate_secret_key() -> str:
        """
        Generate a cryptographically secure secret key

        Returns:
            Hex-encoded secret key
        """
        return secrets.token_hex(32)

    @staticmethod
    def validate_secret_key(secret_key: str) -> bool:
        """
        Validate that secret key is sufficiently secure

        Args:
            secret_key: Secret key to validate

        Returns:
            True if key is secure, False otherwise
        """
        if not secret_key:
            return False

        if len(secret_key) < 32:
            logger.warning("Secret key is too short (minimum 32 characters)")
            return False

        weak_keys = ['dev', 'secret', 'password', 'changeme', '12345']
        if any(weak in secret_key.lower() for weak in weak_keys):
            logger.warning("Secret key appears to be weak or default")
            return False

        return True

    @staticmethod
    def ensure_secret_key(config: Dict[str, Any]) -> str:
        """
        Ensure a secure secret key is configured.

        Sessions and password-reset links signed with a generated key stop
        working on restart, so production logs an error when it has to.
        """
        secret_key = config.get('SECRET_KEY')

        if config.get('TESTING'):
            return secret_key or SecurityConfig.generate_secret_key()

        if not secret_key or not SecurityConfig.validate_secret_key(secret_key):
            if os.environ.get('FLASK_ENV') == 'production':
                logger.error("No secure SECRET_KEY in production! Generating one...")
                logger.error("Add SECRET_KEY to environment variables for persistence!")

            secret_key = SecurityConfig.generate_secret_key()
            logger.warning(f"Generated new secret key (length: {len(secret_key)})")

        return secret_key


def setup_security_headers(app: Flask):
    """
    Add security headers to all responses

    Args:
        app: Flask application instance
    """
    @app.after_request
    def add_security_headers(response: Response) -> Response:
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=(), camera=()'

        # HTTPS only outside development
        if not app.debug and not app.testing:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        # JSON API: nothing is rendered, uploaded photos are the only embeds
        response.headers['Content-Security-Policy'] = "default-src 'none'; img-src 'self'; frame-ancestors 'none'"

        return response

    logger.info("Security headers configured")


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Configure CORS for the front-end origins

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    cors_origins = config.get('CORS_ORIGINS', ['*'])
    cors_methods = config.get('CORS_METHODS', ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'])
    cors_headers = config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'Authorization'])

    if not app.debug and '*' in cors_origins:
        logger.warning("⚠️  Using wildcard CORS in production! Set CORS_ORIGINS environment variable.")

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        methods=cors_methods,
        allow_headers=cors_headers,
        supports_credentials=True,
        max_age=3600
    )

    logger.info(f"CORS configured: origins={cors_origins}")


def sanitize_error_response(error: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    Sanitize error response to prevent information leakage

    Args:
        error: Exception object
        include_details: Whether to include detailed error info (dev only)

    Returns:
        Sanitized error response dictionary
    """
    error_response = {
        'success': False,
        'error': 'An error occurred while processing your request'
    }

    if include_details:
        original = getattr(error, 'original_exception', None) or error
        error_response['details'] = str(original)
        error_response['type'] = type(original).__name__

    return error_response


def _error(message: str, status_code: int):
    return jsonify({'success': False, 'error': message}), status_code


def _http_error_handler(status_code: int, message: str):
    def handler(error):
        return _error(message, status_code)
    return handler


def setup_error_handlers(app: Flask):
    """
    Register JSON error handlers that don't expose stack traces

    Args:
        app: Flask application instance
    """
    include_details = app.debug

    @app.errorhandler(ServiceError)
    def service_error(error):
        """Domain errors raised by the services layer"""
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        else:
            logger.info(f"{type(error).__name__} ({error.status_code}): {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def validation_error(error):
        return _error(str(error), 400)

    for status_code, message in HTTP_ERROR_MESSAGES.items():
        app.register_error_handler(status_code, _http_error_handler(status_code, message))

    @app.errorhandler(500)
    def internal_server_error(error):
        """Handle 500 Internal Server Error"""
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify(sanitize_error_response(error, include_details)), 500

    logger.info("Error handlers registered")


def setup_request_logging(app: Flask):
    """
    Setup request/response logging

    Args:
        app: Flask application instance
    """
    @app.before_request
    def log_request():
        # Don't log health checks to reduce noise
        if request.path in QUIET_PATHS:
            return

        logger.info(
            f"Request: {request.method} {request.path} "
            f"from {request.remote_addr}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path in QUIET_PATHS:
            return response

        logger.info(
            f"Response: {request.method} {request.path} "
            f"status={response.status_code} "
            f"size={response.content_length}"
        )

        return response

    logger.info("Request logging configured")


def validate_environment_variables(required_vars: list, app: Flask) -> bool:
    """
    Validate that required environment variables are set

    Args:
        required_vars: List of required environment variable names
        app: Flask application instance

    Returns:
        True when every variable is present
    """
    missing_vars = [var for var in required_vars if not os.environ.get(var)]

    for var in missing_vars:
        logger.warning(f"Missing environment variable: {var}")

    if missing_vars and not app.debug:
        logger.error(f"Missing required environment variables in production: {missing_vars}")
        logger.error("Application may not function correctly!")

    return len(missing_vars) == 0


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Setup all security features for the application

    Args:
        app: Flask application instance
        config: Application configuration dictionary
    """
    logger.info("Configuring application security...")

    app.secret_key = SecurityConfig.ensure_secret_key(config)

    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug and not app.testing:
        validate_environment_variables(PRODUCTION_ENV_VARS, app)

    logger.info("✅ Security configuration complete")
