"""
Authentication Routes Blueprint

Handles sign-up, login/logout, the current session and password resets.
"""

from flask import Blueprint, jsonify
import logging

from app.utils import get_json_body, ensure_valid
from database import get_db_session
from database.models import User
from validators import validate_registration, validate_password, validate_required_fields

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)


def get_auth():
    """Get auth module - imported lazily to avoid circular imports"""
    import auth
    return auth


def _session_payload(user):
    return {'user': user.to_dict(), 'profile': user.profile.to_dict() if user.profile else None}


# ============================================================================
# SIGN UP / LOGIN / LOGOUT
# ============================================================================

@auth_bp.route('/api/auth/register', methods=['POST'])
def api_register():
    """Create an account and log it in"""
    auth = get_auth()
    data = get_json_body()
    ensure_valid(validate_registration(data))

    with get_db_session() as db:
        user = auth.register_user(db, data)
        payload = _session_payload(user)

    auth.login_user(payload['user']['id'], payload['user']['email'])
    return jsonify({'success': True, **payload}), 201


@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """API endpoint for user login"""
    auth = get_auth()
    data = get_json_body()
    ensure_valid(validate_required_fields(data, ['email', 'password']))

    with get_db_session() as db:
        user, error = auth.authenticate_user(db, data['email'], data['password'])
        if error:
            return jsonify({'success': False, 'error': error}), 401
        payload = _session_payload(user)

    auth.login_user(payload['user']['id'], payload['user']['email'])
    return jsonify({'success': True, **payload})


@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """API endpoint for user logout"""
    get_auth().logout_user()
    return jsonify({'success': True})


@auth_bp.route('/api/auth/me', methods=['GET'])
def api_me():
    """Current session's user and profile"""
    auth = get_auth()
    user_id = auth.current_user_id()
    if not user_id:
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    with get_db_session() as db:
        user = db.query(User).filter(User.id == user_id).first()
        if not user or not user.is_active:
            auth.logout_user()
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        payload = _session_payload(user)

    return jsonify({'success': True, **payload})


# ============================================================================
# PASSWORD RESET
# ============================================================================

@auth_bp.route('/api/auth/password-reset', methods=['POST'])
def api_request_password_reset():
    """Send a reset link. Always reports success so emails can't be probed."""
    auth = get_auth()
    data = get_json_body()

    with get_db_session() as db:
        auth.request_password_reset(db, data.get('email', ''))

    return jsonify({
        'success': True,
        'message': 'If an account exists for that email, a reset link has been sent.'
    })


@auth_bp.route('/api/auth/password-reset/confirm', methods=['POST'])
def api_confirm_password_reset():
    """Set a new password using a reset token"""
    auth = get_auth()
    data = get_json_body()
    ensure_valid(validate_required_fields(data, ['token', 'password']))
    ensure_valid(validate_password(data['password']))

    with get_db_session() as db:
        auth.reset_password(db, data['token'], data['password'])

    return jsonify({'success': True, 'message': 'Password updated. You can now log in.'})
