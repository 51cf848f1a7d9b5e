"""
Customer Routes Blueprint

- /api/customers          - list (with ?search=) and create
- /api/customers/limit    - free-tier usage
- /api/customers/<id>     - detail with history, update, delete
"""

import logging
from flask import Blueprint, request, jsonify

from app.utils import get_json_body, ensure_valid
from auth import login_required, current_user_id
from database import get_db_session
from services.customer_repository import CustomerRepository
from validators import validate_customer_payload

logger = logging.getLogger(__name__)

# Create blueprint
customers_bp = Blueprint('customers_bp', __name__)


@customers_bp.route('/api/customers', methods=['GET'])
@login_required
def list_customers():
    with get_db_session() as db:
        customers = CustomerRepository(db, current_user_id()).list_customers(
            search=request.args.get('search')
        )
    return jsonify({'success': True, 'customers': customers, 'count': len(customers)})


@customers_bp.route('/api/customers', methods=['POST'])
@login_required
def create_customer():
    """Create a customer, subject to the free-tier limit"""
    data = get_json_body()
    ensure_valid(validate_customer_payload(data))

    with get_db_session() as db:
        customer = CustomerRepository(db, current_user_id()).create_customer(data)
    return jsonify({'success': True, 'customer': customer}), 201


@customers_bp.route('/api/customers/limit', methods=['GET'])
@login_required
def customer_limit():
    with get_db_session() as db:
        status = CustomerRepository(db, current_user_id()).get_limit_status()
    return jsonify({'success': True, **status})


@customers_bp.route('/api/customers/<customer_id>', methods=['GET'])
@login_required
def get_customer(customer_id):
    with get_db_session() as db:
        customer = CustomerRepository(db, current_user_id()).get_customer(customer_id)
    return jsonify({'success': True, 'customer': customer})


@customers_bp.route('/api/customers/<customer_id>', methods=['PUT'])
@login_required
def update_customer(customer_id):
    data = get_json_body()
    ensure_valid(validate_customer_payload(data, partial=True))

    with get_db_session() as db:
        customer = CustomerRepository(db, current_user_id()).update_customer(customer_id, data)
    return jsonify({'success': True, 'customer': customer})


@customers_bp.route('/api/customers/<customer_id>', methods=['DELETE'])
@login_required
def delete_customer(customer_id):
    with get_db_session() as db:
        CustomerRepository(db, current_user_id()).delete_customer(customer_id)
    return jsonify({'success': True})
