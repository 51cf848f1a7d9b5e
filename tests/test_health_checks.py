"""
Tests for health check endpoints
"""
import pytest
import psutil
from unittest.mock import Mock, patch
from health_checks import (
    get_system_metrics,
    get_uptime,
    check_upload_folder,
    check_stripe,
    START_TIME
)


@pytest.mark.unit
class TestSystemMetrics:
    """Tests for system metrics collection"""

    def test_get_system_metrics_returns_dict(self):
        """Test that get_system_metrics returns a dictionary"""
        metrics = get_system_metrics()
        assert isinstance(metrics, dict)

    def test_system_metrics_has_memory_info(self):
        """Test that system metrics includes memory info"""
        metrics = get_system_metrics()
        if metrics:
            assert 'memory_mb' in metrics
            assert 'memory_percent' in metrics
            assert 'threads' in metrics

    @patch('health_checks.psutil.Process')
    def test_system_metrics_handles_errors(self, mock_process):
        """Test that get_system_metrics handles psutil errors gracefully"""
        mock_process.side_effect = psutil.AccessDenied()
        metrics = get_system_metrics()
        assert metrics == {}


@pytest.mark.unit
class TestUptime:
    """Tests for uptime calculation"""

    def test_uptime_has_required_fields(self):
        """Test that uptime includes all required fields"""
        uptime = get_uptime()
        assert 'uptime_seconds' in uptime
        assert 'uptime_minutes' in uptime
        assert 'uptime_hours' in uptime
        assert 'started_at' in uptime

    def test_uptime_is_positive(self):
        """Test that uptime is a positive number"""
        uptime = get_uptime()
        assert uptime['uptime_seconds'] >= 0

    def test_start_time_is_in_past(self):
        """Test that START_TIME is in the past"""
        import time
        assert START_TIME <= time.time()


@pytest.mark.unit
class TestDependencyChecks:
    """Tests for upload folder and Stripe checks"""

    def test_check_stripe_configured(self):
        """Test that both Stripe secrets are reported"""
        mock_app = Mock()
        mock_app.config = {
            'STRIPE_SECRET_KEY': 'sk_test_x',
            'STRIPE_WEBHOOK_SECRET': 'whsec_x'
        }
        assert check_stripe(mock_app) == {'secret_key': True, 'webhook_secret': True}

    def test_check_stripe_unconfigured(self):
        """Test that missing secrets report False"""
        mock_app = Mock()
        mock_app.config = {'STRIPE_SECRET_KEY': ''}
        assert check_stripe(mock_app) == {'secret_key': False, 'webhook_secret': False}

    def test_upload_folder_healthy(self, tmp_path):
        """Test that an existing writable folder is healthy"""
        mock_app = Mock()
        mock_app.config = {'UPLOAD_FOLDER': str(tmp_path)}
        status = check_upload_folder(mock_app)
        assert status['exists'] is True
        assert status['writable'] is True
        assert status['healthy'] is True

    def test_upload_folder_missing(self, tmp_path):
        """Test that a missing folder is unhealthy"""
        mock_app = Mock()
        mock_app.config = {'UPLOAD_FOLDER': str(tmp_path / 'nope')}
        status = check_upload_folder(mock_app)
        assert status['exists'] is False
        assert status['healthy'] is False


@pytest.mark.integration
class TestHealthEndpoints:
    """Tests for the /api health routes"""

    def test_health(self, client):
        """Test that /api/health reports healthy"""
        response = client.get('/api/health')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['service'] == 'tradeflow'

    def test_ping(self, client):
        """Test that /api/ping answers pong"""
        response = client.get('/api/ping')
        assert response.status_code == 200
        assert response.data == b'pong'

    def test_ready(self, client):
        """Test that the test app is ready"""
        response = client.get('/api/ready')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ready'
        assert data['checks']['database']['healthy'] is True
        assert data['checks']['upload_folder']['healthy'] is True
        assert data['checks']['stripe_configured'] is True

    def test_not_ready_without_stripe(self, app, client):
        """Test that missing Stripe secrets make the app not ready"""
        app.config['STRIPE_WEBHOOK_SECRET'] = None
        response = client.get('/api/ready')
        assert response.status_code == 503
        assert response.get_json()['status'] == 'not_ready'

    def test_metrics(self, client):
        """Test that /api/metrics carries uptime and scheduler status"""
        response = client.get('/api/metrics')
        assert response.status_code == 200
        data = response.get_json()
        assert 'uptime' in data
        assert 'system' in data
        assert isinstance(data['scheduler'], dict)
        assert data['python_version']

    def test_health_needs_no_login(self, client):
        """Test that health routes are public"""
        assert client.get('/api/health').status_code == 200

    def test_unknown_route_is_json_404(self, client):
        """Test that unknown routes answer with a JSON error"""
        response = client.get('/api/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['success'] is False
