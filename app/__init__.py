"""
TradeFlow - Application Package

This package contains the HTTP layer:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared request/response helpers

Business logic lives in the top-level services/ package and persistence in
database/. The app factory is create_app() in app_init.py at the project root.
"""

import logging

logger = logging.getLogger(__name__)

# Import blueprints
from app.api.auth_routes import auth_bp
from app.api.profile import profile_bp
from app.api.customers import customers_bp
from app.api.catalog import catalog_bp
from app.api.quotes import quotes_bp
from app.api.jobs import jobs_bp
from app.api.invoices import invoices_bp
from app.api.payments import payments_bp
from app.api.dashboard import dashboard_bp

BLUEPRINTS = (
    auth_bp,
    profile_bp,
    customers_bp,
    catalog_bp,
    quotes_bp,
    jobs_bp,
    invoices_bp,
    payments_bp,
    dashboard_bp,
)


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from create_app() after configuration and database setup.

    Args:
        app: Flask application instance
    """
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)
    logger.info(f"Registered {len(BLUEPRINTS)} blueprints")


__all__ = ['register_blueprints', 'app', 'auth_bp', 'profile_bp', 'customers_bp', 'catalog_bp',
           'quotes_bp', 'jobs_bp', 'invoices_bp', 'payments_bp', 'dashboard_bp']


# ==============================================================================
# WSGI APP EXPORT FOR GUNICORN
# ==============================================================================
# This allows gunicorn to run with: gunicorn app:app
# The Flask app is created in wsgi.py.
# We use __getattr__ for lazy loading to avoid circular import issues.
# ==============================================================================

_flask_app = None

def __getattr__(name):
    """Lazy load the Flask app to avoid circular imports."""
    global _flask_app
    if name == 'app':
        if _flask_app is None:
            from wsgi import app as flask_app
            _flask_app = flask_app
        return _flask_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
