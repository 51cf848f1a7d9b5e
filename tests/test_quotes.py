"""
Tests for quotes and the quote lifecycle
"""
import pytest
from datetime import datetime, timedelta


@pytest.mark.integration
class TestQuoteCrud:
    """Tests for draft quotes"""

    def test_create_quote_totals_line_items(self, create_quote, customer):
        """Test that the total is the sum of price x quantity"""
        quote = create_quote()
        assert quote['status'] == 'draft'
        assert quote['total_amount'] == 175.5
        assert quote['customer']['name'] == customer['name']
        assert [s['line_total'] for s in quote['services']] == [100, 75.5]
        assert quote['services'][1]['notes'] == 'Ground floor only'

    def test_valid_until_defaults_to_thirty_days(self, create_quote):
        """Test that quotes stay valid for thirty days by default"""
        quote = create_quote()
        expected = (datetime.utcnow().date() + timedelta(days=30)).isoformat()
        assert quote['valid_until'] == expected

    def test_explicit_valid_until(self, create_quote):
        """Test that an explicit valid_until is kept"""
        quote = create_quote(valid_until='2031-06-30')
        assert quote['valid_until'] == '2031-06-30'

    def test_create_requires_services(self, auth_client, customer):
        """Test that a quote needs at least one line item"""
        response = auth_client.post('/api/quotes', json={'customer_id': customer['id'], 'services': []})
        assert response.status_code == 400

    def test_create_for_unknown_customer(self, auth_client, line_items):
        """Test that quotes must belong to one of the owner's customers"""
        response = auth_client.post('/api/quotes', json={'customer_id': 'missing', 'services': line_items})
        assert response.status_code == 404

    def test_create_for_other_owners_customer(self, customer, other_client, line_items):
        """Test that another owner's customer is not found"""
        response = other_client.post('/api/quotes', json={'customer_id': customer['id'], 'services': line_items})
        assert response.status_code == 404

    def test_update_replaces_line_items(self, auth_client, create_quote):
        """Test that a new services list replaces the old one"""
        quote = create_quote()
        response = auth_client.put(f"/api/quotes/{quote['id']}", json={
            'services': [{'service_name': 'Oven Cleaning', 'price': 40, 'quantity': 3}],
            'notes': 'Oven only'
        })
        assert response.status_code == 200
        updated = response.get_json()['quote']
        assert updated['total_amount'] == 120
        assert len(updated['services']) == 1
        assert updated['notes'] == 'Oven only'

    def test_list_filters_by_status(self, auth_client, create_quote):
        """Test that quotes can be filtered by status"""
        first = create_quote()
        create_quote()
        auth_client.post(f"/api/quotes/{first['id']}/send")

        sent = auth_client.get('/api/quotes?status=sent').get_json()['quotes']
        drafts = auth_client.get('/api/quotes?status=draft').get_json()['quotes']
        assert [q['id'] for q in sent] == [first['id']]
        assert len(drafts) == 1

    def test_delete_draft(self, auth_client, create_quote):
        """Test that drafts can be deleted"""
        quote = create_quote()
        assert auth_client.delete(f"/api/quotes/{quote['id']}").status_code == 200
        assert auth_client.get(f"/api/quotes/{quote['id']}").status_code == 404

    def test_sent_quote_is_read_only(self, auth_client, create_quote):
        """Test that sent quotes can no longer be edited or deleted"""
        quote = create_quote()
        auth_client.post(f"/api/quotes/{quote['id']}/send")

        assert auth_client.put(f"/api/quotes/{quote['id']}", json={'notes': 'x'}).status_code == 409
        assert auth_client.delete(f"/api/quotes/{quote['id']}").status_code == 409


@pytest.mark.integration
class TestQuoteLifecycle:
    """Tests for send, approve and reject"""

    def test_send_quote(self, auth_client, create_quote):
        """Test that sending stamps sent_at; email is off under test"""
        quote = create_quote()
        response = auth_client.post(f"/api/quotes/{quote['id']}/send")
        assert response.status_code == 200
        data = response.get_json()
        assert data['quote']['status'] == 'sent'
        assert data['quote']['sent_at'] is not None
        assert data['email_sent'] is False

    def test_approve_creates_job(self, auth_client, create_quote):
        """Test that approval creates a draft job with the quote's services"""
        quote = create_quote()
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        response = auth_client.post(f"/api/quotes/{quote['id']}/approve")
        assert response.status_code == 200

        data = response.get_json()
        job = data['job']
        assert data['quote']['status'] == 'approved'
        assert job['status'] == 'draft'
        assert job['payment_status'] == 'unpaid'
        assert job['quote_id'] == quote['id']
        assert job['title'] == f"Job from Quote #{quote['id'][:8]}"
        assert job['total_amount'] == 175.5
        assert [s['service_name'] for s in job['services']] == ['Deep Cleaning', 'Window Cleaning']

        jobs = auth_client.get('/api/jobs').get_json()['jobs']
        assert [j['id'] for j in jobs] == [job['id']]

    def test_reject_quote(self, auth_client, create_quote):
        """Test that sent quotes can be rejected"""
        quote = create_quote()
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        response = auth_client.post(f"/api/quotes/{quote['id']}/reject")
        assert response.status_code == 200
        assert response.get_json()['quote']['status'] == 'rejected'
        assert response.get_json()['quote']['rejected_at'] is not None

    def test_cannot_approve_draft(self, auth_client, create_quote):
        """Test that a draft must be sent before approval"""
        quote = create_quote()
        response = auth_client.post(f"/api/quotes/{quote['id']}/approve")
        assert response.status_code == 409
        data = response.get_json()
        assert data['current_status'] == 'draft'
        assert data['target_status'] == 'approved'

    def test_cannot_approve_twice(self, auth_client, create_quote):
        """Test that approval is final"""
        quote = create_quote()
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        auth_client.post(f"/api/quotes/{quote['id']}/approve")
        assert auth_client.post(f"/api/quotes/{quote['id']}/approve").status_code == 409
        assert auth_client.post(f"/api/quotes/{quote['id']}/reject").status_code == 409
        assert len(auth_client.get('/api/jobs').get_json()['jobs']) == 1

    def test_cannot_approve_lapsed_quote(self, auth_client, create_quote):
        """Test that a sent quote past valid_until is refused before the expiry sweep runs"""
        quote = create_quote(valid_until='2020-01-01')
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        response = auth_client.post(f"/api/quotes/{quote['id']}/approve")
        assert response.status_code == 409
        assert response.get_json()['current_status'] == 'expired'
        assert auth_client.get('/api/jobs').get_json()['jobs'] == []
        assert auth_client.get(f"/api/quotes/{quote['id']}").get_json()['quote']['status'] == 'sent'

    def test_history_records_transitions(self, auth_client, create_quote):
        """Test that the quote's history lists its events"""
        quote = create_quote()
        auth_client.post(f"/api/quotes/{quote['id']}/send")
        history = auth_client.get(f"/api/quotes/{quote['id']}").get_json()['quote']['history']
        assert {'CREATED', 'QUOTE_SENT'} <= {e['event_type'] for e in history}

    def test_quote_pdf(self, auth_client, create_quote):
        """Test that the quote renders as a PDF download"""
        quote = create_quote()
        response = auth_client.get(f"/api/quotes/{quote['id']}/pdf")
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert f"quote-{quote['id'][:8]}.pdf" in response.headers['Content-Disposition']
