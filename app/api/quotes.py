"""
Quote Routes Blueprint

- /api/quotes                 - list (?status=, ?customer_id=) and create
- /api/quotes/<id>            - get, update and delete (drafts only)
- /api/quotes/<id>/send       - draft -> sent, emails the customer
- /api/quotes/<id>/approve    - sent -> approved, creates the job
- /api/quotes/<id>/reject     - sent -> rejected
- /api/quotes/<id>/pdf        - PDF download
"""

import logging
from flask import Blueprint, request, jsonify

from app.utils import get_json_body, ensure_valid, pdf_response
from auth import login_required, current_user_id
from database import get_db_session
from services.document_service import render_quote_pdf
from services.quote_repository import QuoteRepository
from services.workflow import WorkflowService
from validators import validate_quote_payload

logger = logging.getLogger(__name__)

quotes_bp = Blueprint('quotes_bp', __name__)


@quotes_bp.route('/api/quotes', methods=['GET'])
@login_required
def list_quotes():
    with get_db_session() as db:
        quotes = QuoteRepository(db, current_user_id()).list_quotes(
            status=request.args.get('status'),
            customer_id=request.args.get('customer_id')
        )
    return jsonify({'success': True, 'quotes': quotes})


@quotes_bp.route('/api/quotes', methods=['POST'])
@login_required
def create_quote():
    """Create a draft quote with its line items"""
    data = get_json_body()
    ensure_valid(validate_quote_payload(data))

    with get_db_session() as db:
        quote = QuoteRepository(db, current_user_id()).create_quote(data)
    return jsonify({'success': True, 'quote': quote}), 201


@quotes_bp.route('/api/quotes/<quote_id>', methods=['GET'])
@login_required
def get_quote(quote_id):
    with get_db_session() as db:
        quote = QuoteRepository(db, current_user_id()).get_quote(quote_id)
    return jsonify({'success': True, 'quote': quote})


@quotes_bp.route('/api/quotes/<quote_id>', methods=['PUT'])
@login_required
def update_quote(quote_id):
    data = get_json_body()
    ensure_valid(validate_quote_payload(data, partial=True))

    with get_db_session() as db:
        quote = QuoteRepository(db, current_user_id()).update_quote(quote_id, data)
    return jsonify({'success': True, 'quote': quote})


@quotes_bp.route('/api/quotes/<quote_id>', methods=['DELETE'])
@login_required
def delete_quote(quote_id):
    with get_db_session() as db:
        QuoteRepository(db, current_user_id()).delete_quote(quote_id)
    return jsonify({'success': True})


# ============================================================================
# STATUS TRANSITIONS
# ============================================================================

@quotes_bp.route('/api/quotes/<quote_id>/send', methods=['POST'])
@login_required
def send_quote(quote_id):
    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).send_quote(quote_id)
    return jsonify({'success': True, **result})


@quotes_bp.route('/api/quotes/<quote_id>/approve', methods=['POST'])
@login_required
def approve_quote(quote_id):
    """Approve a sent quote and create its job"""
    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).approve_quote(quote_id)
    logger.info(f"Quote {quote_id} approved -> job {result['job']['id']}")
    return jsonify({'success': True, **result})


@quotes_bp.route('/api/quotes/<quote_id>/reject', methods=['POST'])
@login_required
def reject_quote(quote_id):
    with get_db_session() as db:
        result = WorkflowService(db, current_user_id()).reject_quote(quote_id)
    return jsonify({'success': True, **result})


@quotes_bp.route('/api/quotes/<quote_id>/pdf', methods=['GET'])
@login_required
def quote_pdf(quote_id):
    with get_db_session() as db:
        repo = QuoteRepository(db, current_user_id())
        quote = repo.get_quote(quote_id)
        business_name = repo.business_name()

    content = render_quote_pdf(quote, business_name)
    return pdf_response(content, f"quote-{quote_id[:8]}.pdf")
