"""
Centralized Configuration for TradeFlow
Manages environment-specific settings, secrets, and service configurations.
"""
import os
from datetime import timedelta


def _database_url(default=None):
    """Read DATABASE_URL, normalising Render/Heroku style postgres:// URLs."""
    url = os.environ.get('DATABASE_URL', default)
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max upload (job photos)

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Database Settings
    DATABASE_URL = _database_url('postgresql://localhost/tradeflow')
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Public URL of the web front end (used for payment redirects and emails)
    APP_URL = os.environ.get('APP_URL', 'http://localhost:5173').rstrip('/')

    # File Storage
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'uploads')
    PHOTO_URL_PREFIX = '/uploads'

    # Stripe
    STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY')
    STRIPE_WEBHOOK_SECRET = os.environ.get('STRIPE_WEBHOOK_SECRET')
    STRIPE_API_VERSION = os.environ.get('STRIPE_API_VERSION', '2025-05-28.basil')
    STRIPE_CURRENCY = os.environ.get('STRIPE_CURRENCY', 'usd')

    # Business rules
    FREE_TIER_CUSTOMER_LIMIT = 10
    QUOTE_VALIDITY_DAYS = int(os.environ.get('QUOTE_VALIDITY_DAYS', '30'))
    INVOICE_DUE_DAYS = int(os.environ.get('INVOICE_DUE_DAYS', '14'))
    PAYMENT_TERMS = {
        'net_15': 15,
        'net_30': 30,
    }

    # Email (SMTP)
    SMTP_HOST = os.environ.get('SMTP_HOST', '')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
    SMTP_USER = os.environ.get('SMTP_USER', '')
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD', '')
    FROM_EMAIL = os.environ.get('FROM_EMAIL', 'noreply@tradeflow.app')

    # Password reset tokens
    PASSWORD_RESET_SALT = 'tradeflow-password-reset'
    PASSWORD_RESET_MAX_AGE = int(os.environ.get('PASSWORD_RESET_MAX_AGE', '3600'))  # seconds

    # Background scheduler
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'true').lower() == 'true'
    SCHEDULER_INTERVAL_SECONDS = int(os.environ.get('SCHEDULER_INTERVAL_SECONDS', '3600'))

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://tradeflow.app').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    SECRET_KEY = 'test-secret-key-minimum-32-chars-long-for-security'
    DATABASE_URL = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    APP_URL = 'http://testserver'
    STRIPE_SECRET_KEY = 'sk_test_dummy'
    STRIPE_WEBHOOK_SECRET = 'whsec_test_dummy'
    SMTP_HOST = ''
    SMTP_USER = ''
    # Never start background threads in tests
    SCHEDULER_ENABLED = False


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
