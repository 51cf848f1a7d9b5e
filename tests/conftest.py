"""
Pytest configuration and shared fixtures
"""
import os
import sys
import pytest
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

OWNER = {
    'email': 'owner@example.com',
    'password': 'password123',
    'business_name': 'Sparkle Cleaning Co',
    'service_types': ['cleaning'],
}


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    os.environ['FLASK_ENV'] = 'testing'
    os.environ['SECRET_KEY'] = 'test-secret-key-minimum-32-chars-long-for-security'
    os.environ['STRIPE_SECRET_KEY'] = 'sk_test_dummy'

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def app(tmp_path, app_config):
    """Application bound to a fresh in-memory SQLite database"""
    from app_init import create_app
    from database.connection import drop_db

    class Config(app_config):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    flask_app = create_app(Config)
    yield flask_app
    drop_db()


@pytest.fixture
def client(app):
    """Unauthenticated test client"""
    return app.test_client()


def _register(client, **overrides):
    payload = dict(OWNER)
    payload.update(overrides)
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


@pytest.fixture
def owner(client):
    """Registered operator; the client is logged in as them"""
    return _register(client)


@pytest.fixture
def auth_client(client, owner):
    """Test client logged in as the owner"""
    return client


@pytest.fixture
def other_client(app):
    """Second operator on a separate client, for ownership checks"""
    other = app.test_client()
    _register(other, email='rival@example.com', business_name='Rival Yard Care',
              service_types=['yard_work'])
    return other


@pytest.fixture
def create_customer(auth_client):
    """Factory creating customers for the owner"""
    def _create(**overrides):
        payload = {
            'name': 'Jane Smith',
            'email': 'jane@example.com',
            'phone': '555-123-4567',
            'address': '12 Elm Street',
        }
        payload.update(overrides)
        response = auth_client.post('/api/customers', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['customer']
    return _create


@pytest.fixture
def customer(create_customer):
    return create_customer()


@pytest.fixture
def line_items():
    return [
        {'service_name': 'Deep Cleaning', 'price': 50, 'quantity': 2},
        {'service_name': 'Window Cleaning', 'price': 75.5, 'quantity': 1, 'notes': 'Ground floor only'},
    ]


@pytest.fixture
def create_quote(auth_client, customer, line_items):
    """Factory creating draft quotes for the default customer"""
    def _create(**overrides):
        payload = {
            'customer_id': customer['id'],
            'services': line_items,
            'notes': 'Spring clean',
            'customer_notes': 'Key under the mat',
        }
        payload.update(overrides)
        response = auth_client.post('/api/quotes', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['quote']
    return _create


@pytest.fixture
def create_job(auth_client, customer, line_items):
    """Factory creating standalone jobs for the default customer"""
    def _create(**overrides):
        payload = {
            'customer_id': customer['id'],
            'title': 'Kitchen deep clean',
            'description': 'Oven and fridge included',
            'services': line_items,
        }
        payload.update(overrides)
        response = auth_client.post('/api/jobs', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['job']
    return _create


@pytest.fixture
def completed_job(auth_client, create_job):
    """A job taken through to completion; returns the job and its draft invoice"""
    job = create_job()
    assert auth_client.put(f"/api/jobs/{job['id']}/status", json={'status': 'in_progress'}).status_code == 200
    response = auth_client.put(f"/api/jobs/{job['id']}/status", json={'status': 'completed'})
    assert response.status_code == 200, response.get_json()
    return response.get_json()


@pytest.fixture
def sent_invoice(auth_client, completed_job):
    """Draft invoice from a completed job, sent to the customer"""
    invoice_id = completed_job['invoice']['id']
    response = auth_client.post(f"/api/invoices/{invoice_id}/send")
    assert response.status_code == 200, response.get_json()
    return response.get_json()['invoice']


@pytest.fixture
def png_bytes():
    """A small valid PNG image"""
    from io import BytesIO
    from PIL import Image

    buffer = BytesIO()
    Image.new('RGB', (8, 8), 'red').save(buffer, 'PNG')
    return buffer.getvalue()
