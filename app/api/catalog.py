"""
Service Catalogue Routes Blueprint

- /api/services                    - list and create priced services
- /api/services/populate-defaults  - load the starter catalogue for the profile
- /api/services/<id>               - get, update, delete
"""

import logging
from flask import Blueprint, jsonify

from app.utils import get_json_body, ensure_valid
from auth import login_required, current_user_id
from database import get_db_session
from services.catalog_repository import CatalogRepository
from validators import validate_service_payload

logger = logging.getLogger(__name__)

catalog_bp = Blueprint('catalog_bp', __name__)


@catalog_bp.route('/api/services', methods=['GET'])
@login_required
def list_services():
    with get_db_session() as db:
        services = CatalogRepository(db, current_user_id()).list_services()
    return jsonify({'success': True, 'services': services})


@catalog_bp.route('/api/services', methods=['POST'])
@login_required
def create_service():
    data = get_json_body()
    ensure_valid(validate_service_payload(data))

    with get_db_session() as db:
        service = CatalogRepository(db, current_user_id()).create_service(data)
    return jsonify({'success': True, 'service': service}), 201


@catalog_bp.route('/api/services/populate-defaults', methods=['POST'])
@login_required
def populate_defaults():
    """Add the default services for the profile's business types"""
    with get_db_session() as db:
        added = CatalogRepository(db, current_user_id()).populate_defaults()
    logger.info(f"Populated {added} default services for {current_user_id()}")
    return jsonify({'success': True, 'added': added})


@catalog_bp.route('/api/services/<service_id>', methods=['GET'])
@login_required
def get_service(service_id):
    with get_db_session() as db:
        service = CatalogRepository(db, current_user_id()).get_service(service_id)
    return jsonify({'success': True, 'service': service})


@catalog_bp.route('/api/services/<service_id>', methods=['PUT'])
@login_required
def update_service(service_id):
    data = get_json_body()
    ensure_valid(validate_service_payload(data, partial=True))

    with get_db_session() as db:
        service = CatalogRepository(db, current_user_id()).update_service(service_id, data)
    return jsonify({'success': True, 'service': service})


@catalog_bp.route('/api/services/<service_id>', methods=['DELETE'])
@login_required
def delete_service(service_id):
    with get_db_session() as db:
        CatalogRepository(db, current_user_id()).delete_service(service_id)
    return jsonify({'success': True})
