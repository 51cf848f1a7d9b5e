"""
Online Payment Routes Blueprint

Authenticated:
- POST /api/invoices/<id>/payment-link   - create a Stripe Checkout link

Public (no session):
- POST /api/stripe/webhook               - Stripe event receiver
- GET  /api/public/invoices/<id>         - customer payment page data
- GET  /api/public/invoices/<id>/success - landing page after checkout
"""

import logging
from flask import Blueprint, request, jsonify

from auth import login_required, current_user_id
from database import get_db_session
from services.payment_service import (
    PaymentService, WebhookProcessor, construct_event, get_public_invoice
)

logger = logging.getLogger(__name__)

payments_bp = Blueprint('payments_bp', __name__)


@payments_bp.route('/api/invoices/<invoice_id>/payment-link', methods=['POST'])
@login_required
def create_payment_link(invoice_id):
    """Create (once) a hosted checkout page for the invoice balance"""
    with get_db_session() as db:
        result = PaymentService(db, current_user_id()).create_payment_link(invoice_id)
    return jsonify({'success': True, **result})


@payments_bp.route('/api/stripe/webhook', methods=['POST'])
def stripe_webhook():
    """
    Receive Stripe events.

    A bad signature is rejected with 400. Every verified event is
    acknowledged with 200, including ones that match no invoice, so
    Stripe does not keep retrying them.
    """
    event = construct_event(
        request.get_data(),
        request.headers.get('Stripe-Signature')
    )

    with get_db_session() as db:
        result = WebhookProcessor(db).process_event(event)

    logger.info(f"Webhook {event.type} processed: {result.get('status')}")
    return jsonify({'success': True, 'received': True, **result})


@payments_bp.route('/api/public/invoices/<invoice_id>', methods=['GET'])
def public_invoice(invoice_id):
    with get_db_session() as db:
        invoice = get_public_invoice(db, invoice_id)
    return jsonify({'success': True, 'invoice': invoice})


@payments_bp.route('/api/public/invoices/<invoice_id>/success', methods=['GET'])
def public_invoice_success(invoice_id):
    """Shown after checkout; the webhook may not have landed yet"""
    with get_db_session() as db:
        invoice = get_public_invoice(db, invoice_id)
    return jsonify({
        'success': True,
        'invoice': invoice,
        'paid': invoice['paid'],
        'session_id': request.args.get('session_id')
    })
