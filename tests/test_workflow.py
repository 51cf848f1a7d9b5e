"""
Tests for status transition rules and the scheduled sweeps
"""
import pytest
from datetime import date, datetime, timedelta

from database import get_db_session
from database.models import Invoice
from services.workflow import (
    QUOTE_TRANSITIONS,
    JOB_TRANSITIONS,
    INVOICE_TRANSITIONS,
    can_transition,
    expire_quotes,
    mark_overdue_invoices
)


@pytest.mark.unit
class TestTransitionTables:
    """Tests for the allowed status moves"""

    @pytest.mark.parametrize('current,target,allowed', [
        ('draft', 'sent', True),
        ('draft', 'approved', False),
        ('sent', 'approved', True),
        ('sent', 'expired', True),
        ('approved', 'rejected', False),
        ('expired', 'sent', False),
    ])
    def test_quote_transitions(self, current, target, allowed):
        """Test quote transitions"""
        assert can_transition(QUOTE_TRANSITIONS, current, target) is allowed

    @pytest.mark.parametrize('current,target,allowed', [
        ('draft', 'scheduled', True),
        ('draft', 'in_progress', True),
        ('scheduled', 'draft', True),
        ('in_progress', 'completed', True),
        ('draft', 'completed', False),
        ('completed', 'cancelled', False),
        ('cancelled', 'draft', False),
    ])
    def test_job_transitions(self, current, target, allowed):
        """Test job transitions"""
        assert can_transition(JOB_TRANSITIONS, current, target) is allowed

    @pytest.mark.parametrize('current,target,allowed', [
        ('draft', 'sent', True),
        ('sent', 'paid', True),
        ('overdue', 'paid', True),
        ('draft', 'paid', False),
        ('paid', 'cancelled', False),
    ])
    def test_invoice_transitions(self, current, target, allowed):
        """Test invoice transitions"""
        assert can_transition(INVOICE_TRANSITIONS, current, target) is allowed

    def test_unknown_status(self):
        """Test that unknown current statuses allow nothing"""
        assert can_transition(QUOTE_TRANSITIONS, 'archived', 'sent') is False

    def test_terminal_states(self):
        """Test that terminal states have no exits"""
        for table, terminal in ((QUOTE_TRANSITIONS, ('approved', 'rejected', 'expired')),
                                (JOB_TRANSITIONS, ('completed', 'cancelled')),
                                (INVOICE_TRANSITIONS, ('paid', 'cancelled'))):
            for status in terminal:
                assert table[status] == set()


@pytest.mark.integration
class TestQuoteExpiry:
    """Tests for the quote expiry sweep"""

    def test_expires_sent_quotes_past_validity(self, auth_client, create_quote):
        """Test that only sent quotes past valid_until expire"""
        stale = create_quote(valid_until='2020-01-01')
        fresh = create_quote()
        draft = create_quote(valid_until='2020-01-01')
        auth_client.post(f"/api/quotes/{stale['id']}/send")
        auth_client.post(f"/api/quotes/{fresh['id']}/send")

        with get_db_session() as db:
            assert expire_quotes(db) == 1

        assert auth_client.get(f"/api/quotes/{stale['id']}").get_json()['quote']['status'] == 'expired'
        assert auth_client.get(f"/api/quotes/{fresh['id']}").get_json()['quote']['status'] == 'sent'
        assert auth_client.get(f"/api/quotes/{draft['id']}").get_json()['quote']['status'] == 'draft'

        with get_db_session() as db:
            assert expire_quotes(db) == 0

    def test_expiry_is_logged_as_system(self, auth_client, create_quote):
        """Test that the sweep records a system event"""
        quote = create_quote(valid_until='2020-01-01')
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        with get_db_session() as db:
            expire_quotes(db)

        history = auth_client.get(f"/api/quotes/{quote['id']}").get_json()['quote']['history']
        expired = [e for e in history if e['event_type'] == 'QUOTE_EXPIRED']
        assert len(expired) == 1
        assert expired[0]['actor_type'] == 'system'

    def test_valid_until_today_is_still_valid(self, auth_client, create_quote):
        """Test that quotes stay valid through their last day"""
        today = datetime.utcnow().date()
        quote = create_quote(valid_until=today.isoformat())
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        with get_db_session() as db:
            assert expire_quotes(db, today=today) == 0


@pytest.mark.integration
class TestOverdueSweep:
    """Tests for the overdue invoice sweep"""

    def test_marks_sent_invoices_overdue(self, auth_client, sent_invoice):
        """Test that sent invoices past due become overdue"""
        later = datetime.utcnow().date() + timedelta(days=15)
        with get_db_session() as db:
            assert mark_overdue_invoices(db, today=later) == 1

        invoice = auth_client.get(f"/api/invoices/{sent_invoice['id']}").get_json()['invoice']
        assert invoice['stored_status'] == 'overdue'

        with get_db_session() as db:
            assert mark_overdue_invoices(db, today=later) == 0

    def test_ignores_drafts_and_paid(self, auth_client, create_job, sent_invoice):
        """Test that only sent invoices are swept"""
        auth_client.post(f"/api/jobs/{create_job()['id']}/invoice")
        auth_client.post(f"/api/invoices/{sent_invoice['id']}/mark-paid")
        with get_db_session() as db:
            assert mark_overdue_invoices(db, today=date(2099, 1, 1)) == 0
            statuses = {i.status for i in db.query(Invoice).all()}
        assert statuses == {'paid', 'draft'}

    def test_overdue_invoice_can_still_be_paid(self, auth_client, sent_invoice):
        """Test that overdue invoices accept payment"""
        with get_db_session() as db:
            mark_overdue_invoices(db, today=date(2099, 1, 1))
        response = auth_client.post(f"/api/invoices/{sent_invoice['id']}/payments", json={'amount': 175.5})
        assert response.status_code == 201
        assert response.get_json()['invoice']['status'] == 'paid'
