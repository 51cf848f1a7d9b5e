"""
Tests for customer management and the free-tier limit
"""
import pytest

from database import get_db_session
from database.models import Profile


def _upgrade(user_id):
    with get_db_session() as db:
        db.query(Profile).filter(Profile.id == user_id).update({'subscription_tier': 'professional'})


def _set_limit(user_id, limit):
    with get_db_session() as db:
        db.query(Profile).filter(Profile.id == user_id).update({'customer_limit': limit})


@pytest.mark.integration
class TestCustomerCrud:
    """Tests for /api/customers"""

    def test_create_customer(self, auth_client, owner):
        """Test that a customer is created for the logged-in owner"""
        response = auth_client.post('/api/customers', json={
            'name': '  Bob Jones ', 'email': 'bob@example.com', 'phone': '(555) 987-6543'
        })
        assert response.status_code == 201
        customer = response.get_json()['customer']
        assert customer['name'] == 'Bob Jones'
        assert customer['user_id'] == owner['user']['id']
        assert customer['address'] is None

    def test_create_requires_name(self, auth_client):
        """Test that a name is required"""
        response = auth_client.post('/api/customers', json={'email': 'x@example.com'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Name is required'

    def test_create_rejects_bad_email(self, auth_client):
        """Test that malformed emails are rejected"""
        response = auth_client.post('/api/customers', json={'name': 'Bob', 'email': 'bob-at-example'})
        assert response.status_code == 400

    def test_list_is_sorted_and_counted(self, auth_client, create_customer):
        """Test that customers list alphabetically with a count"""
        create_customer(name='Zed Zulu', email='zed@example.com')
        create_customer(name='Amy Adams', email='amy@example.com')

        data = auth_client.get('/api/customers').get_json()
        assert data['count'] == 2
        assert [c['name'] for c in data['customers']] == ['Amy Adams', 'Zed Zulu']

    def test_search_matches_name_email_and_phone(self, auth_client, create_customer):
        """Test that search looks at name, email and phone"""
        create_customer()
        create_customer(name='Carl Brown', email='carl@brown.net', phone='555-000-1111')

        by_name = auth_client.get('/api/customers?search=jane').get_json()['customers']
        by_email = auth_client.get('/api/customers?search=brown.net').get_json()['customers']
        by_phone = auth_client.get('/api/customers?search=000-1111').get_json()['customers']

        assert [c['name'] for c in by_name] == ['Jane Smith']
        assert [c['name'] for c in by_email] == ['Carl Brown']
        assert [c['name'] for c in by_phone] == ['Carl Brown']

    def test_get_customer_includes_history(self, auth_client, customer, create_quote):
        """Test that the detail view carries quotes, jobs, invoices and spend"""
        create_quote()
        data = auth_client.get(f"/api/customers/{customer['id']}").get_json()['customer']
        assert len(data['quotes']) == 1
        assert data['jobs'] == []
        assert data['invoices'] == []
        assert data['total_spent'] == 0

    def test_update_customer(self, auth_client, customer):
        """Test that fields update and blank optional fields clear"""
        response = auth_client.put(f"/api/customers/{customer['id']}", json={
            'phone': '555-222-3333', 'address': ''
        })
        assert response.status_code == 200
        updated = response.get_json()['customer']
        assert updated['phone'] == '555-222-3333'
        assert updated['address'] is None
        assert updated['name'] == 'Jane Smith'

    def test_delete_customer_without_history(self, auth_client, customer):
        """Test that a customer with no records can be deleted"""
        assert auth_client.delete(f"/api/customers/{customer['id']}").status_code == 200
        assert auth_client.get(f"/api/customers/{customer['id']}").status_code == 404

    def test_delete_customer_with_quote_refused(self, auth_client, customer, create_quote):
        """Test that customers referenced by quotes are kept"""
        create_quote()
        response = auth_client.delete(f"/api/customers/{customer['id']}")
        assert response.status_code == 409
        assert 'quotes' in response.get_json()['error']

    def test_other_owner_cannot_see_customer(self, customer, other_client):
        """Test that customers are scoped to their owner"""
        assert other_client.get(f"/api/customers/{customer['id']}").status_code == 404
        assert other_client.put(f"/api/customers/{customer['id']}", json={'name': 'Hacked'}).status_code == 404
        assert other_client.delete(f"/api/customers/{customer['id']}").status_code == 404
        assert other_client.get('/api/customers').get_json()['count'] == 0


@pytest.mark.integration
class TestCustomerLimit:
    """Tests for the free-tier customer limit"""

    def test_limit_status_for_new_account(self, auth_client):
        """Test that a new free account can add ten customers"""
        data = auth_client.get('/api/customers/limit').get_json()
        assert data['count'] == 0
        assert data['limit'] == 10
        assert data['tier'] == 'free'
        assert data['can_add'] is True

    def test_eleventh_customer_blocked(self, auth_client, create_customer):
        """Test that the free tier stops at ten customers"""
        for i in range(10):
            create_customer(name=f"Customer {i}", email=f"c{i}@example.com")

        response = auth_client.post('/api/customers', json={'name': 'One Too Many'})
        assert response.status_code == 403
        data = response.get_json()
        assert data['upgrade_required'] is True
        assert data['limit'] == 10

        status = auth_client.get('/api/customers/limit').get_json()
        assert status['count'] == 10
        assert status['can_add'] is False

    def test_professional_tier_is_unlimited(self, auth_client, owner, create_customer):
        """Test that professional accounts have no limit"""
        _upgrade(owner['user']['id'])
        for i in range(11):
            create_customer(name=f"Customer {i}")

        status = auth_client.get('/api/customers/limit').get_json()
        assert status['count'] == 11
        assert status['limit'] is None
        assert status['can_add'] is True

    def test_zero_limit_is_respected(self, auth_client, owner):
        """Test that a configured limit of zero blocks every new customer"""
        _set_limit(owner['user']['id'], 0)
        status = auth_client.get('/api/customers/limit').get_json()
        assert status['limit'] == 0
        assert status['can_add'] is False

        response = auth_client.post('/api/customers', json={'name': 'Blocked'})
        assert response.status_code == 403
