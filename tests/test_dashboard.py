"""
Tests for dashboard stats and the activity feed
"""
import pytest
from datetime import datetime, timedelta

from database import get_db_session
from database.models import Invoice


@pytest.mark.integration
class TestDashboardStats:
    """Tests for /api/dashboard/stats"""

    def test_empty_account(self, auth_client):
        """Test that a new account has zeroed stats"""
        stats = auth_client.get('/api/dashboard/stats').get_json()['stats']
        assert stats == {
            'total_customers': 0,
            'active_quotes': 0,
            'scheduled_jobs': 0,
            'monthly_revenue': 0,
            'outstanding_amount': 0,
            'overdue_invoices': 0,
        }

    def test_counts_and_amounts(self, auth_client, create_quote, create_job, sent_invoice):
        """Test that stats reflect quotes, jobs, payments and balances"""
        quote = create_quote()
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        create_job(scheduled_date='2031-03-01T09:00:00')
        auth_client.post(f"/api/invoices/{sent_invoice['id']}/payments", json={'amount': 75.5})

        stats = auth_client.get('/api/dashboard/stats').get_json()['stats']
        assert stats['total_customers'] == 1
        assert stats['active_quotes'] == 1
        assert stats['scheduled_jobs'] == 1
        assert stats['monthly_revenue'] == 75.5
        assert stats['outstanding_amount'] == 100
        assert stats['overdue_invoices'] == 0

    def test_overdue_count(self, auth_client, sent_invoice):
        """Test that past-due sent invoices count as overdue"""
        with get_db_session() as db:
            db.query(Invoice).filter(Invoice.id == sent_invoice['id']).update({
                'due_date': datetime.utcnow().date() - timedelta(days=3)
            })
        stats = auth_client.get('/api/dashboard/stats').get_json()['stats']
        assert stats['overdue_invoices'] == 1

    def test_stats_are_per_owner(self, auth_client, customer, other_client):
        """Test that one owner's records do not leak into another's stats"""
        stats = other_client.get('/api/dashboard/stats').get_json()['stats']
        assert stats['total_customers'] == 0


@pytest.mark.integration
class TestActivityFeed:
    """Tests for /api/dashboard/activity"""

    def test_activity_newest_first(self, auth_client, customer, create_quote):
        """Test that recent events are listed newest first"""
        quote = create_quote()
        auth_client.post(f"/api/quotes/{quote['id']}/send")

        events = auth_client.get('/api/dashboard/activity').get_json()['events']
        assert events[0]['event_type'] == 'QUOTE_SENT'
        assert events[0]['entity_id'] == quote['id']
        assert {'USER_REGISTERED', 'CREATED'} <= {e['event_type'] for e in events}

    def test_activity_limit(self, auth_client, create_customer):
        """Test that the limit parameter caps the feed"""
        for i in range(3):
            create_customer(name=f"Customer {i}")
        events = auth_client.get('/api/dashboard/activity?limit=2').get_json()['events']
        assert len(events) == 2

    def test_activity_requires_login(self, client):
        """Test that the feed needs a session"""
        assert client.get('/api/dashboard/activity').status_code == 401
