"""
Tests for configuration system
"""
import pytest
from config import (
    Config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
    _database_url
)


@pytest.mark.unit
class TestBaseConfig:
    """Tests for base configuration"""

    def test_base_config_has_secret_key(self):
        """Test that base config has a secret key"""
        config = Config()
        assert config.SECRET_KEY is not None

    def test_base_config_has_max_content_length(self):
        """Test that uploads are capped at 16MB"""
        assert Config.MAX_CONTENT_LENGTH == 16 * 1024 * 1024

    def test_base_config_has_cors_settings(self):
        """Test that base config has CORS settings"""
        assert 'GET' in Config.CORS_METHODS
        assert 'POST' in Config.CORS_METHODS

    def test_business_rule_defaults(self):
        """Test free-tier limit, quote validity and invoice terms"""
        assert Config.FREE_TIER_CUSTOMER_LIMIT == 10
        assert Config.QUOTE_VALIDITY_DAYS == 30
        assert Config.INVOICE_DUE_DAYS == 14
        assert Config.PAYMENT_TERMS == {'net_15': 15, 'net_30': 30}

    def test_stripe_currency_defaults_to_usd(self):
        """Test that Stripe charges default to USD"""
        assert Config.STRIPE_CURRENCY == 'usd'

    def test_base_config_has_logging_settings(self):
        """Test that base config has logging settings"""
        assert Config.LOG_FILE == 'app.log'
        assert Config.LOG_FORMAT


@pytest.mark.unit
class TestDatabaseURL:
    """Tests for DATABASE_URL normalisation"""

    def test_postgres_scheme_is_rewritten(self, monkeypatch):
        """Test that postgres:// URLs become postgresql://"""
        monkeypatch.setenv('DATABASE_URL', 'postgres://u:p@db:5432/tradeflow')
        assert _database_url() == 'postgresql://u:p@db:5432/tradeflow'

    def test_default_used_when_unset(self, monkeypatch):
        """Test that the default is returned when DATABASE_URL is unset"""
        monkeypatch.delenv('DATABASE_URL', raising=False)
        assert _database_url('sqlite://') == 'sqlite://'


@pytest.mark.unit
class TestDevelopmentConfig:
    """Tests for development configuration"""

    def test_development_config_has_debug(self):
        """Test that development config has debug enabled"""
        assert DevelopmentConfig.DEBUG is True
        assert DevelopmentConfig.TESTING is False

    def test_development_config_allows_all_cors(self):
        """Test that development config allows all CORS origins"""
        assert '*' in DevelopmentConfig.CORS_ORIGINS


@pytest.mark.unit
class TestProductionConfig:
    """Tests for production configuration"""

    def test_production_config_has_debug_disabled(self):
        """Test that production config has debug disabled"""
        assert ProductionConfig.DEBUG is False
        assert ProductionConfig.TESTING is False

    def test_production_config_has_secure_cookies(self):
        """Test that production config has secure cookies"""
        assert ProductionConfig.SESSION_COOKIE_SECURE is True
        assert ProductionConfig.SESSION_COOKIE_HTTPONLY is True
        assert ProductionConfig.SESSION_COOKIE_SAMESITE == 'Lax'

    def test_production_config_has_https_scheme(self):
        """Test that production config prefers HTTPS"""
        assert ProductionConfig.PREFERRED_URL_SCHEME == 'https'


@pytest.mark.unit
class TestTestingConfig:
    """Tests for testing configuration"""

    def test_testing_config_has_testing_enabled(self):
        """Test that testing config has testing enabled"""
        assert TestingConfig.TESTING is True

    def test_testing_config_uses_in_memory_sqlite(self):
        """Test that tests never touch a real database"""
        assert TestingConfig.DATABASE_URL == 'sqlite://'

    def test_testing_config_disables_scheduler(self):
        """Test that no background threads start under test"""
        assert TestingConfig.SCHEDULER_ENABLED is False

    def test_testing_config_has_stripe_test_secrets(self):
        """Test that Stripe test secrets are fixed"""
        assert TestingConfig.STRIPE_SECRET_KEY.startswith('sk_test_')
        assert TestingConfig.STRIPE_WEBHOOK_SECRET.startswith('whsec_')


@pytest.mark.unit
class TestGetConfig:
    """Tests for configuration selector"""

    def test_get_config_returns_development_by_default(self, monkeypatch):
        """Test that get_config returns development config by default"""
        monkeypatch.delenv('FLASK_ENV', raising=False)
        assert get_config() == DevelopmentConfig

    def test_get_config_returns_production_when_set(self, monkeypatch):
        """Test that get_config returns production config when env is production"""
        monkeypatch.setenv('FLASK_ENV', 'production')
        assert get_config() == ProductionConfig

    def test_get_config_returns_testing_when_set(self, monkeypatch):
        """Test that get_config returns testing config when env is testing"""
        monkeypatch.setenv('FLASK_ENV', 'testing')
        assert get_config() == TestingConfig

    def test_get_config_falls_back_for_unknown_env(self, monkeypatch):
        """Test that an unknown environment falls back to development"""
        monkeypatch.setenv('FLASK_ENV', 'staging')
        assert get_config() == DevelopmentConfig
