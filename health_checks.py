"""
Health Check & Monitoring Endpoints
Liveness, readiness and metrics endpoints for deployment health checks and monitoring
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify, current_app
import logging

logger = logging.getLogger(__name__)

# Create Blueprint for health check routes
health_bp = Blueprint('health', __name__)

# Track application start time
START_TIME = time.time()

SERVICE_NAME = 'tradeflow'


def get_system_metrics() -> Dict[str, Any]:
    """
    Get basic process metrics

    Returns:
        Dictionary of process metrics (empty if psutil can't read them)
    """
    try:
        process = psutil.Process()

        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(process.memory_info().rss / 1024 / 1024, 2),
            'memory_percent': round(process.memory_percent(), 2),
            'threads': process.num_threads(),
        }
    except psutil.Error as e:
        logger.warning(f"Failed to get system metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    """
    Get application uptime

    Returns:
        Dictionary with uptime information
    """
    uptime_seconds = time.time() - START_TIME

    return {
        'uptime_seconds': round(uptime_seconds, 2),
        'uptime_minutes': round(uptime_seconds / 60, 2),
        'uptime_hours': round(uptime_seconds / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_database() -> Dict[str, Any]:
    """Run SELECT 1 against the configured database."""
    from database import check_db_connection

    try:
        check_db_connection()
        return {'healthy': True}
    except RuntimeError as e:
        return {'healthy': False, 'error': str(e)}


def check_upload_folder(app) -> Dict[str, Any]:
    """
    Check that the photo upload folder exists and is writable

    Args:
        app: Flask application instance
    """
    path = app.config.get('UPLOAD_FOLDER', 'uploads')
    exists = os.path.isdir(path)
    writable = os.access(path, os.W_OK) if exists else False

    return {
        'path': path,
        'exists': exists,
        'writable': writable,
        'healthy': exists and writable
    }


def check_stripe(app) -> Dict[str, bool]:
    """Whether online payments can be taken and confirmed"""
    return {
        'secret_key': bool(app.config.get('STRIPE_SECRET_KEY')),
        'webhook_secret': bool(app.config.get('STRIPE_WEBHOOK_SECRET')),
    }


def get_scheduler_status() -> Dict[str, Any]:
    from services.scheduler import get_scheduler
    return get_scheduler().get_job_status()


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint
    Returns 200 if application is running
    """
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness probe endpoint
    Returns 200 once the database is reachable, uploads can be written
    and Stripe is configured; 503 otherwise.
    """
    database = check_database()
    upload_folder = check_upload_folder(current_app)
    stripe_status = check_stripe(current_app)
    stripe_ready = all(stripe_status.values())

    is_ready = database['healthy'] and upload_folder['healthy'] and stripe_ready

    response = {
        'status': 'ready' if is_ready else 'not_ready',
        'timestamp': datetime.utcnow().isoformat(),
        'checks': {
            'database': database,
            'upload_folder': upload_folder,
            'stripe': stripe_status,
            'stripe_configured': stripe_ready
        }
    }

    if not is_ready:
        logger.warning(f"Readiness check failed: {response['checks']}")

    return jsonify(response), 200 if is_ready else 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """
    Basic metrics endpoint
    Returns process metrics, uptime and background job status
    """
    response = {
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME,
        'version': '1.0.0',
        'environment': os.environ.get('FLASK_ENV', 'production'),
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'scheduler': get_scheduler_status(),
        'python_version': sys.version.split()[0]
    }

    return jsonify(response), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    """
    Simple ping endpoint
    Returns immediate response for basic connectivity tests
    """
    return 'pong', 200


def register_health_checks(app):
    """
    Register health check blueprint with Flask app

    Args:
        app: Flask application instance
    """
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health check endpoints registered")
    logger.info("Available endpoints: /api/health, /api/ready, /api/metrics, /api/ping")
