"""
Application Initialization Module
Initializes the Flask app with all infrastructure components
"""
import os
from flask import Flask, send_from_directory
from config import get_config
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
from database import configure_database, init_db
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_class: Configuration class to load (defaults to get_config())

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class or get_config())

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("🚀 Initializing TradeFlow API")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    create_required_directories(app)

    initialize_database(app)

    # Imported here so blueprint modules load after configuration
    from app import register_blueprints
    register_blueprints(app)

    register_upload_route(app)

    register_health_checks(app)

    if app.config.get('SCHEDULER_ENABLED'):
        from services.scheduler import init_scheduler
        init_scheduler(app)
    else:
        logger.info("Background scheduler disabled")

    logger.info("✅ Application initialization complete")
    logger.info("=" * 60)

    return app


def create_required_directories(app):
    """
    Create all required application directories

    Args:
        app: Flask application instance
    """
    directories = [
        app.config['UPLOAD_FOLDER'],
        os.path.join(app.config['UPLOAD_FOLDER'], 'job-photos'),
        'logs'
    ]

    for directory in directories:
        try:
            os.makedirs(directory, exist_ok=True)
            logger.debug(f"Directory ensured: {directory}")
        except OSError as e:
            logger.error(f"Failed to create directory {directory}: {e}")

    logger.info(f"✅ Created {len(directories)} required directories")


def initialize_database(app):
    """
    Bind the engine to DATABASE_URL and create any missing tables

    Args:
        app: Flask application instance
    """
    configure_database(
        app.config['DATABASE_URL'],
        app.config.get('SQLALCHEMY_ENGINE_OPTIONS')
    )
    init_db()
    logger.info("✅ Database initialized")


def register_upload_route(app):
    """
    Serve uploaded job photos under PHOTO_URL_PREFIX

    Args:
        app: Flask application instance
    """
    prefix = app.config.get('PHOTO_URL_PREFIX', '/uploads').rstrip('/')
    upload_root = os.path.abspath(app.config['UPLOAD_FOLDER'])

    def serve_upload(filename):
        return send_from_directory(upload_root, filename)

    app.add_url_rule(f"{prefix}/<path:filename>", 'serve_upload', serve_upload, methods=['GET'])
