"""
Profile Routes Blueprint

Business settings for the logged-in operator. Subscription tier and customer
limit are read-only here.
"""

from flask import Blueprint, jsonify
import logging

from app.utils import get_json_body, ensure_valid
from auth import login_required, current_user_id
from database import get_db_session
from database.models import Profile
from services.errors import NotFoundError
from validators import validate_string_length, validate_phone, validate_service_types

logger = logging.getLogger(__name__)

profile_bp = Blueprint('profile_bp', __name__)


def _get_profile(db):
    profile = db.query(Profile).filter(Profile.id == current_user_id()).first()
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


@profile_bp.route('/api/profile', methods=['GET'])
@login_required
def get_profile():
    with get_db_session() as db:
        profile = _get_profile(db).to_dict()
    return jsonify({'success': True, 'profile': profile})


@profile_bp.route('/api/profile', methods=['PUT'])
@login_required
def update_profile():
    """Update business name, phone and service types"""
    data = get_json_body()

    if 'business_name' in data:
        ensure_valid(validate_string_length(data['business_name'] or '', min_length=1, max_length=255))
    if data.get('phone'):
        ensure_valid(validate_phone(data['phone']))
    if 'service_types' in data:
        ensure_valid(validate_service_types(data['service_types']))

    with get_db_session() as db:
        profile = _get_profile(db)
        if 'business_name' in data:
            profile.business_name = data['business_name'].strip()
        if 'phone' in data:
            profile.phone = data['phone'] or None
        if 'service_types' in data:
            profile.service_types = list(data['service_types'])
        db.flush()
        result = profile.to_dict()

    logger.info(f"Updated profile {result['id']}")
    return jsonify({'success': True, 'profile': result})
