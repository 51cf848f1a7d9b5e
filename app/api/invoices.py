"""
Invoice Routes Blueprint

- /api/invoices                  - list (?status=, ?customer_id=, ?sort=, ?order=)
- /api/invoices/<id>             - detail with job, payments and history
- /api/invoices/<id>/payments    - record a cash/check/other payment
- /api/invoices/<id>/send        - draft -> sent, emails the pay link
- /api/invoices/<id>/mark-paid   - settle the remaining balance
- /api/invoices/<id>/cancel      - cancel
- /api/invoices/<id>/status      - generic status transition
- /api/invoices/<id>/pdf         - PDF download
"""

import logging
from flask import Blueprint, request, jsonify

from app.utils import get_json_body, ensure_valid, pdf_response
from auth import login_required, current_user_id
from database import get_db_session
from services.document_service import render_invoice_pdf
from services.errors import ServiceError
from services.invoice_repository import InvoiceRepository
from services.workflow import WorkflowService
from validators import validate_payment_payload

logger = logging.getLogger(__name__)

invoices_bp = Blueprint('invoices_bp', __name__)


@invoices_bp.route('/api/invoices', methods=['GET'])
@login_required
def list_invoices():
    with get_db_session() as db:
        invoices = InvoiceRepository(db, current_user_id()).list_invoices(
            status=request.args.get('status'),
            customer_id=request.args.get('customer_id'),
            sort=request.args.get('sort', 'created_at'),
            order=request.args.get('order', 'desc')
        )
    return jsonify({'success': True, 'invoices': invoices})


@invoices_bp.route('/api/invoices/<invoice_id>', methods=['GET'])
@login_required
def get_invoice(invoice_id):
    with get_db_session() as db:
        invoice = InvoiceRepository(db, current_user_id()).get_invoice(invoice_id)
    return jsonify({'success': True, 'invoice': invoice})


@invoices_bp.route('/api/invoices/<invoice_id>/payments', methods=['POST'])
@login_required
def record_payment(invoice_id):
    """Record a payment taken outside Stripe"""
    data = get_json_body()
    ensure_valid(validate_payment_payload(data))

    with get_db_session() as db:
        result = InvoiceRepository(db, current_user_id()).record_payment(
            invoice_id,
            float(data['amount']),
            data.get('payment_method', 'other'),
            notes=data.get('notes')
        )
    logger.info(f"Recorded ${float(data['amount']):.2f} payment on invoice {invoice_id}")
    return jsonify({'success': True, **result}), 201


# ============================================================================
# STATUS TRANSITIONS
# ============================================================================

@invoices_bp.route('/api/invoices/<invoice_id>/send', methods=['POST'])
@login_required
def send_invoice(invoice_id):
    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).send_invoice(invoice_id)
    return jsonify({'success': True, **result})


@invoices_bp.route('/api/invoices/<invoice_id>/mark-paid', methods=['POST'])
@login_required
def mark_paid(invoice_id):
    data = request.get_json(silent=True) or {}
    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).mark_invoice_paid(
            invoice_id, notes=data.get('notes')
        )
    return jsonify({'success': True, **result})


@invoices_bp.route('/api/invoices/<invoice_id>/cancel', methods=['POST'])
@login_required
def cancel_invoice(invoice_id):
    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).cancel_invoice(invoice_id)
    return jsonify({'success': True, **result})


@invoices_bp.route('/api/invoices/<invoice_id>/status', methods=['PUT', 'POST'])
@login_required
def update_invoice_status(invoice_id):
    data = get_json_body()
    if not data.get('status'):
        raise ServiceError("status is required")

    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).update_invoice_status(
            invoice_id, data['status']
        )
    return jsonify({'success': True, **result})


@invoices_bp.route('/api/invoices/<invoice_id>/pdf', methods=['GET'])
@login_required
def invoice_pdf(invoice_id):
    with get_db_session() as db:
        repo = InvoiceRepository(db, current_user_id())
        invoice = repo.get_invoice(invoice_id)
        business_name = repo.business_name()

    content = render_invoice_pdf(invoice, business_name)
    return pdf_response(content, f"invoice-{invoice_id[:8]}.pdf")
