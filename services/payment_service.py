"""
Payment Service - Online invoice payments through Stripe Checkout.

Implements:
- Checkout Session creation for an invoice's outstanding balance
- Webhook signature verification
- Idempotent payment application, keyed on the Stripe payment intent id
- Public invoice lookups for the customer payment page
"""

import logging
from typing import Dict, Optional

import stripe

from database.models import Invoice, InvoicePayment, Profile
from services.base_repository import BaseRepository, round_money, setting
from services.errors import ConflictError, NotFoundError, PaymentError, WebhookError
from services.event_logger import EventLogger
from services.invoice_repository import InvoiceRepository
from services.stripe_client import configure_stripe

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = ('sent', 'overdue')


def _field(obj, name, default=None):
    """Read a field from a Stripe object, tolerating missing keys."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PaymentService(BaseRepository):
    """Creates Checkout Sessions for an operator's invoices."""

    def create_payment_link(self, invoice_id: str) -> Dict:
        """
        Create a hosted Checkout page for the invoice's balance.

        Raises:
            ConflictError: invoice is not payable or already has a link
            PaymentError: Stripe rejected the request
        """
        invoice = self._get_owned(Invoice, invoice_id, 'Invoice')

        if invoice.status not in PAYABLE_STATUSES:
            raise ConflictError(f"Invoice must be sent before it can be paid online (status is '{invoice.status}')")
        if invoice.balance_due <= 0:
            raise ConflictError("Invoice has no balance due")
        if invoice.stripe_payment_link:
            raise ConflictError("Invoice already has a payment link",
                                payment_link=invoice.stripe_payment_link)

        configure_stripe()
        app_url = setting('APP_URL', '')
        metadata = {'invoice_id': invoice.id, 'user_id': invoice.user_id}

        try:
            session = stripe.checkout.Session.create(
                mode='payment',
                payment_method_types=['card'],
                line_items=[{
                    'price_data': {
                        'currency': setting('STRIPE_CURRENCY', 'usd'),
                        'unit_amount': int(round(invoice.balance_due * 100)),
                        'product_data': {
                            'name': f"Invoice #{invoice.id[:8]}",
                            'description': f"Payment for services - {invoice.customer.name}",
                        },
                    },
                    'quantity': 1,
                }],
                customer_email=invoice.customer.email or None,
                success_url=f"{app_url}/pay/{invoice.id}/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{app_url}/pay/{invoice.id}",
                client_reference_id=invoice.id,
                metadata=metadata,
                payment_intent_data={'metadata': metadata},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed for invoice {invoice.id}: {e}")
            raise PaymentError(f"Could not create payment link: {e.user_message or str(e)}")

        invoice.stripe_checkout_session_id = session.id
        invoice.stripe_payment_link = session.url
        payment_intent = _field(session, 'payment_intent')
        if payment_intent:
            invoice.stripe_payment_intent_id = payment_intent
        self.session.flush()

        self.events.log('invoice', invoice.id, 'PAYMENT_LINK_CREATED',
                        f"Payment link created for invoice #{invoice.id[:8]}",
                        metadata={'checkout_session_id': session.id})
        logger.info(f"Created checkout session {session.id} for invoice {invoice.id}")
        return {'payment_link': session.url, 'invoice': invoice.to_dict()}


# =============================================================================
# WEBHOOKS
# =============================================================================

def construct_event(payload: bytes, signature: str, secret: str = None):
    """
    Verify a webhook signature and parse the event.

    Raises:
        WebhookError: signature missing or invalid, or payload unreadable
    """
    webhook_secret = secret or setting('STRIPE_WEBHOOK_SECRET')
    if not webhook_secret:
        raise WebhookError("Webhook secret is not configured", status_code=503)
    if not signature:
        raise WebhookError("Missing Stripe-Signature header")

    try:
        event = stripe.Webhook.construct_event(
            payload=payload,
            sig_header=signature,
            secret=webhook_secret,
        )
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise WebhookError("Invalid webhook signature")
    except ValueError as e:
        logger.error(f"Webhook payload could not be parsed: {e}")
        raise WebhookError("Invalid webhook payload")

    logger.info(f"Webhook verified: {event.type} ({event.id})")
    return event


class WebhookProcessor:
    """Applies verified Stripe events to invoices."""

    def __init__(self, session):
        self.session = session
        self.handlers = {
            'checkout.session.completed': self._checkout_completed,
            'payment_intent.succeeded': self._payment_succeeded,
            'payment_intent.payment_failed': self._payment_failed,
        }

    def process_event(self, event) -> Dict:
        """
        Route an event to its handler.

        Returns:
            Dict describing what happened; unknown event types are acknowledged
        """
        handler = self.handlers.get(event.type)
        if handler is None:
            logger.info(f"Unhandled webhook event type: {event.type}")
            return {'status': 'ignored', 'event_type': event.type}
        return handler(event.data.object)

    def _find_invoice(self, metadata, **lookup) -> Optional[Invoice]:
        for column, value in lookup.items():
            if value:
                invoice = self.session.query(Invoice).filter(
                    getattr(Invoice, column) == value
                ).first()
                if invoice:
                    return invoice

        invoice_id = _field(metadata, 'invoice_id')
        if invoice_id:
            return self.session.query(Invoice).filter(Invoice.id == invoice_id).first()
        return None

    def _checkout_completed(self, checkout) -> Dict:
        if _field(checkout, 'payment_status') != 'paid':
            logger.info(f"Checkout session {checkout.id} completed without payment")
            return {'status': 'ignored', 'reason': 'not paid'}

        invoice = self._find_invoice(
            _field(checkout, 'metadata'),
            stripe_checkout_session_id=checkout.id
        )
        payment_intent = _field(checkout, 'payment_intent') or checkout.id
        amount = (_field(checkout, 'amount_total') or 0) / 100
        return self._apply(invoice, amount, payment_intent)

    def _payment_succeeded(self, intent) -> Dict:
        invoice = self._find_invoice(
            _field(intent, 'metadata'),
            stripe_payment_intent_id=intent.id
        )
        amount = (_field(intent, 'amount_received') or 0) / 100
        return self._apply(invoice, amount, intent.id)

    def _payment_failed(self, intent) -> Dict:
        invoice = self._find_invoice(
            _field(intent, 'metadata'),
            stripe_payment_intent_id=intent.id
        )
        error = _field(intent, 'last_payment_error')
        message = _field(error, 'message', 'unknown error')
        logger.warning(f"Payment intent {intent.id} failed: {message}")

        if invoice is None:
            return {'status': 'ignored', 'reason': 'invoice not found'}

        EventLogger(self.session, invoice.user_id, actor_type='webhook').log(
            'invoice', invoice.id, 'PAYMENT_FAILED',
            f"Online payment failed: {message}",
            metadata={'payment_intent_id': intent.id}
        )
        return {'status': 'failed', 'invoice_id': invoice.id}

    def _apply(self, invoice: Optional[Invoice], amount: float, payment_intent_id: str) -> Dict:
        """
        Apply a Stripe payment to its invoice, at most up to the balance due.

        Money that cannot be applied (the invoice is cancelled, still a
        draft or already settled, or the payment exceeds the balance) is
        recorded on the payment row as ``refund_amount`` and flagged in the
        event log. Only the applied part can move the invoice to paid.
        """
        if invoice is None:
            logger.warning(f"No invoice found for payment {payment_intent_id}")
            return {'status': 'ignored', 'reason': 'invoice not found'}

        already_applied = self.session.query(InvoicePayment.id).filter(
            InvoicePayment.stripe_payment_intent_id == payment_intent_id
        ).first()
        if already_applied:
            logger.info(f"Payment {payment_intent_id} already applied to invoice {invoice.id}")
            return {'status': 'duplicate', 'invoice_id': invoice.id}

        received = round_money(amount)
        repo = InvoiceRepository(self.session, invoice.user_id, actor_type='webhook')

        if invoice.status not in PAYABLE_STATUSES or invoice.balance_due <= 0:
            repo.record_unapplied_payment(invoice, received, 'stripe', payment_intent_id=payment_intent_id)
            return {'status': 'needs_refund', 'invoice_id': invoice.id, 'refund_amount': received}

        applied = min(received, invoice.balance_due)
        excess = round_money(received - applied)
        repo.apply_payment(invoice, applied, 'stripe', payment_intent_id=payment_intent_id,
                           refund_amount=excess)

        result = {'status': 'applied', 'invoice_id': invoice.id, 'amount': applied}
        if excess > 0:
            result['refund_amount'] = excess
        return result


# =============================================================================
# PUBLIC PAYMENT PAGE
# =============================================================================

def get_public_invoice(session, invoice_id: str) -> Dict:
    """Invoice fields safe to show on the customer's payment page."""
    invoice = session.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFoundError("Invoice not found")

    profile = session.query(Profile).filter(Profile.id == invoice.user_id).first()
    return {
        'id': invoice.id,
        'invoice_number': invoice.id[:8],
        'business_name': profile.business_name if profile else None,
        'customer_name': invoice.customer.name if invoice.customer else None,
        'total_amount': invoice.total_amount,
        'amount_paid': invoice.amount_paid or 0,
        'balance_due': invoice.balance_due,
        'status': invoice.effective_status(),
        'due_date': invoice.due_date.isoformat() if invoice.due_date else None,
        'payment_link': invoice.stripe_payment_link,
        'paid': invoice.status == 'paid',
    }
