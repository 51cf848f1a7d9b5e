"""
User Authentication Module
Handles operator sign-up, login, session management and password resets.

Accounts are email + password. Every API route apart from auth, the Stripe
webhook and the public payment page requires a logged-in session, and all
data access is scoped to the session's user_id.
"""
import logging
from datetime import datetime
from functools import wraps
from typing import Dict, Optional, Tuple

from flask import session, jsonify, current_app
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from werkzeug.security import generate_password_hash, check_password_hash

from database.models import User, Profile
from services.errors import ConflictError, ServiceError
from services.event_logger import EventLogger

logger = logging.getLogger(__name__)


# Use pbkdf2 method which is compatible with older Python/OpenSSL versions
def safe_generate_password_hash(password):
    """Generate password hash using pbkdf2 for compatibility"""
    return generate_password_hash(password, method='pbkdf2:sha256')


def safe_check_password_hash(pwhash, password):
    """Check a password against its stored hash"""
    return check_password_hash(pwhash, password)


# ============================================================================
# ACCOUNTS
# ============================================================================

def get_user_by_email(db, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register_user(db, data: Dict) -> User:
    """
    Create a user and their business profile in the caller's transaction.

    New accounts start on the free tier with the configured customer limit.

    Raises:
        ConflictError: email already registered
    """
    email = data['email'].strip().lower()
    if get_user_by_email(db, email):
        raise ConflictError("An account with this email already exists")

    user = User(
        email=email,
        password_hash=safe_generate_password_hash(data['password']),
        is_active=True
    )
    user.profile = Profile(
        business_name=data['business_name'].strip(),
        service_types=data.get('service_types') or [],
        phone=data.get('phone'),
        subscription_tier='free',
        customer_limit=current_app.config.get('FREE_TIER_CUSTOMER_LIMIT', 10)
    )
    db.add(user)
    db.flush()

    EventLogger(db, user.id).log('user', user.id, 'USER_REGISTERED',
                                 f"Account created for {user.profile.business_name}")
    logger.info(f"Registered user: {user.id}")
    return user


def authenticate_user(db, email: str, password: str) -> Tuple[Optional[User], Optional[str]]:
    """
    Authenticate a user with email and password

    Returns:
        Tuple of (user, error_message)
    """
    user = get_user_by_email(db, email)
    if not user or not safe_check_password_hash(user.password_hash, password):
        return None, "Invalid email or password"

    if not user.is_active:
        return None, "Account is deactivated"

    user.last_login = datetime.utcnow()
    EventLogger(db, user.id).log('user', user.id, 'USER_LOGIN', "User logged in")
    logger.info(f"User authenticated: {user.id}")
    return user, None


def login_user(user_id: str, email: str):
    """Set user session"""
    session.clear()
    session['user_id'] = user_id
    session['user_email'] = email
    session.permanent = current_app.config.get('SESSION_PERMANENT', False)


def logout_user():
    """Clear user session"""
    session.clear()


def current_user_id() -> Optional[str]:
    """The logged-in user's id, or None."""
    return session.get('user_id')


def is_authenticated():
    """Check if user is logged in"""
    return 'user_id' in session


def login_required(f):
    """Decorator to require login for an API route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


# ============================================================================
# PASSWORD RESET
# ============================================================================

def _reset_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        current_app.config['SECRET_KEY'],
        salt=current_app.config.get('PASSWORD_RESET_SALT', 'password-reset')
    )


def generate_reset_token(user: User) -> str:
    """
    Signed, time-limited reset token.

    The token carries the tail of the current password hash, so it stops
    working once the password has been changed.
    """
    return _reset_serializer().dumps({'uid': user.id, 'ph': user.password_hash[-12:]})


def request_password_reset(db, email: str) -> Optional[str]:
    """
    Email a reset link if the account exists.

    Returns:
        The token when one was issued, else None. Callers must answer the
        same way in both cases.
    """
    from services.email_service import EmailService

    user = get_user_by_email(db, email or '')
    if not user or not user.is_active:
        logger.info("Password reset requested for unknown or inactive account")
        return None

    token = generate_reset_token(user)
    reset_url = f"{current_app.config.get('APP_URL', '')}/reset-password?token={token}"
    EmailService().send_password_reset(user.email, reset_url)
    logger.info(f"Password reset issued for user {user.id}")
    return token


def reset_password(db, token: str, new_password: str) -> User:
    """
    Set a new password from a reset token.

    Raises:
        ServiceError: token invalid, expired or already used
    """
    max_age = current_app.config.get('PASSWORD_RESET_MAX_AGE', 3600)
    try:
        payload = _reset_serializer().loads(token or '', max_age=max_age)
    except SignatureExpired:
        raise ServiceError("Reset link has expired")
    except BadSignature:
        raise ServiceError("Invalid reset link")

    user = db.query(User).filter(User.id == payload.get('uid')).first()
    if not user or user.password_hash[-12:] != payload.get('ph'):
        raise ServiceError("Invalid reset link")

    user.password_hash = safe_generate_password_hash(new_password)
    EventLogger(db, user.id).log('user', user.id, 'PASSWORD_RESET', "Password was reset")
    logger.info(f"Password reset for user {user.id}")
    return user
