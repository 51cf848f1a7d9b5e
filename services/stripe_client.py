"""
Stripe client setup shared by the payment link and invoice code.
"""

import logging

import stripe

from services.base_repository import setting
from services.errors import PaymentError

logger = logging.getLogger(__name__)


def configure_stripe():
    api_key = setting('STRIPE_SECRET_KEY')
    if not api_key:
        raise PaymentError("Online payments are not configured", status_code=503)
    stripe.api_key = api_key
    stripe.api_version = setting('STRIPE_API_VERSION', stripe.api_version)


def expire_checkout_session(session_id: str) -> bool:
    """
    Expire an open Checkout Session so its page can no longer take payment.

    Returns:
        True if Stripe expired the session. False when payments are not
        configured or Stripe refused (the session already completed or
        expired); the webhook handler still guards late payments.
    """
    if not setting('STRIPE_SECRET_KEY'):
        logger.warning(f"Cannot expire checkout session {session_id}: Stripe is not configured")
        return False

    configure_stripe()
    try:
        stripe.checkout.Session.expire(session_id)
    except stripe.StripeError as e:
        logger.warning(f"Stripe did not expire checkout session {session_id}: {e}")
        return False

    logger.info(f"Expired checkout session {session_id}")
    return True
