"""
WSGI Entry Point for Gunicorn

This module provides the WSGI application entry point for production deployment.
Gunicorn can be configured to use either:
  - wsgi:app
  - app:app (via app/__init__.py which imports from this module)

The Flask application is built by create_app() in app_init.py.
"""

from app_init import create_app

app = create_app()
