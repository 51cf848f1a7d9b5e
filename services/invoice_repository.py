"""
Invoice Repository - Invoices raised from jobs and the payments applied to them.

``apply_payment`` is the single place an invoice balance changes; manual
payments, "mark as paid" and Stripe webhooks all go through it.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Dict, Optional

from database.models import Invoice, InvoicePayment, Job
from services.base_repository import BaseRepository, round_money, setting
from services.errors import ConflictError, ServiceError
from services.stripe_client import expire_checkout_session

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'created_at': Invoice.created_at,
    'due_date': Invoice.due_date,
    'total_amount': Invoice.total_amount,
}


def active_invoice_for(session, job_id: str) -> Optional[Invoice]:
    """The job's invoice that has not been cancelled, if any."""
    return session.query(Invoice).filter(
        Invoice.job_id == job_id,
        Invoice.status != 'cancelled'
    ).first()


def new_invoice(job: Job, due_days: int, payment_terms: str = None, notes: str = None) -> Invoice:
    """Build a draft invoice for the full job total."""
    return Invoice(
        user_id=job.user_id,
        customer=job.customer,
        job=job,
        status='draft',
        total_amount=round_money(job.total_amount),
        amount_paid=0,
        due_date=datetime.utcnow().date() + timedelta(days=due_days),
        payment_terms=payment_terms,
        notes=notes
    )


class InvoiceRepository(BaseRepository):
    """Repository for invoices and invoice payments."""

    def get_invoice_record(self, invoice_id: str) -> Invoice:
        return self._get_owned(Invoice, invoice_id, 'Invoice')

    def list_invoices(self, status: str = None, customer_id: str = None,
                      sort: str = 'created_at', order: str = 'desc') -> List[Dict]:
        """
        List invoices.

        ``status`` filters on the effective status, so 'overdue' also matches
        sent invoices whose due date has passed.
        """
        query = self.session.query(Invoice).filter(Invoice.user_id == self.user_id)
        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)

        column = SORT_FIELDS.get(sort, Invoice.created_at)
        query = query.order_by(column.asc() if order == 'asc' else column.desc())

        today = datetime.utcnow().date()
        invoices = [i.to_dict(today) for i in query.all()]
        if status:
            invoices = [i for i in invoices if i['status'] == status]
        return invoices

    def get_invoice(self, invoice_id: str) -> Dict:
        invoice = self.get_invoice_record(invoice_id)
        data = invoice.to_dict()
        data['job'] = invoice.job.to_dict() if invoice.job else None
        data['payments'] = [p.to_dict() for p in invoice.payments]
        data['history'] = self.events.get_entity_history('invoice', invoice.id)
        return data

    def create_from_job(self, job_id: str, payment_terms: str = 'net_30', notes: str = None) -> Dict:
        """
        Raise an invoice for a job.

        Raises:
            ConflictError: the job already has an invoice that is not cancelled
        """
        job = self._get_owned(Job, job_id, 'Job')

        terms = setting('PAYMENT_TERMS', {'net_15': 15, 'net_30': 30})
        if payment_terms not in terms:
            raise ServiceError(f"payment_terms must be one of: {', '.join(sorted(terms))}")

        if active_invoice_for(self.session, job.id):
            raise ConflictError("This job already has an invoice")

        invoice = new_invoice(job, terms[payment_terms], payment_terms, notes)
        self.session.add(invoice)
        job.payment_status = 'unpaid'
        self.session.flush()

        self.events.log(
            entity_type='invoice',
            entity_id=invoice.id,
            event_type='INVOICE_GENERATED',
            description=f"Invoice for job '{job.title}' created (${invoice.total_amount:.2f})",
            metadata={'job_id': job.id, 'payment_terms': payment_terms}
        )
        logger.info(f"Created invoice {invoice.id} for job {job.id}")
        return invoice.to_dict()

    def record_payment(self, invoice_id: str, amount: float, payment_method: str = 'other',
                       notes: str = None) -> Dict:
        """Record a cash/check/other payment against an invoice."""
        invoice = self.get_invoice_record(invoice_id)
        if invoice.status in ('draft', 'cancelled'):
            raise ConflictError(f"Cannot record a payment on a {invoice.status} invoice")
        if invoice.balance_due <= 0:
            raise ConflictError("Invoice is already paid in full")
        if round_money(amount) > invoice.balance_due:
            raise ServiceError(f"Payment exceeds the balance due (${invoice.balance_due:.2f})")

        payment = self.apply_payment(invoice, amount, payment_method, notes=notes)
        return {'invoice': invoice.to_dict(), 'payment': payment.to_dict()}

    def apply_payment(self, invoice: Invoice, amount: float, payment_method: str,
                      payment_intent_id: str = None, notes: str = None,
                      refund_amount: float = 0.0) -> InvoicePayment:
        """
        Add a payment to an invoice and roll the totals forward.

        Marks the invoice paid once the balance reaches zero and keeps the
        job's payment_status in step. Any payment made outside Stripe
        withdraws the open payment link, since it was priced at the old
        balance.
        """
        amount = round_money(amount)
        refund_amount = round_money(refund_amount)
        payment = InvoicePayment(
            invoice=invoice,
            amount=amount,
            payment_method=payment_method,
            stripe_payment_intent_id=payment_intent_id,
            refund_amount=refund_amount,
            notes=notes
        )
        self.session.add(payment)

        invoice.amount_paid = round_money((invoice.amount_paid or 0) + amount)
        if payment_intent_id:
            invoice.stripe_payment_intent_id = payment_intent_id
        else:
            self.release_payment_link(invoice, f"{payment_method} payment recorded")

        fully_paid = invoice.amount_paid >= round_money(invoice.total_amount)
        if fully_paid and invoice.status != 'paid':
            old_status = invoice.status
            invoice.status = 'paid'
            invoice.paid_at = datetime.utcnow()
            self.events.log_status_change('invoice', invoice.id, old_status, 'paid')

        if invoice.job:
            invoice.job.payment_status = 'paid' if fully_paid else 'partial'

        invoice.updated_at = datetime.utcnow()
        self.session.flush()

        self.events.log(
            entity_type='invoice',
            entity_id=invoice.id,
            event_type='PAYMENT_RECEIVED',
            description=f"Payment of ${amount:.2f} received ({payment_method})",
            metadata={'amount': amount, 'payment_method': payment_method,
                      'payment_intent_id': payment_intent_id}
        )
        if refund_amount > 0:
            self.events.log('invoice', invoice.id, 'PAYMENT_EXCESS',
                            f"${refund_amount:.2f} received over the balance due must be refunded",
                            metadata={'refund_amount': refund_amount,
                                      'payment_intent_id': payment_intent_id})
            logger.warning(f"Payment {payment_intent_id} overpaid invoice {invoice.id} by ${refund_amount:.2f}")

        logger.info(f"Applied ${amount:.2f} {payment_method} payment to invoice {invoice.id}")
        return payment

    def record_unapplied_payment(self, invoice: Invoice, amount: float, payment_method: str,
                                 payment_intent_id: str = None) -> InvoicePayment:
        """
        Record money received for an invoice that cannot take it.

        The row keeps the payment on file for reconciliation with the whole
        amount as ``refund_amount``; the invoice status, balance and job are
        left unchanged.
        """
        amount = round_money(amount)
        payment = InvoicePayment(
            invoice=invoice,
            amount=0.0,
            payment_method=payment_method,
            stripe_payment_intent_id=payment_intent_id,
            refund_amount=amount,
            notes=f"Received while invoice was {invoice.status}; refund required"
        )
        self.session.add(payment)
        self.session.flush()

        self.events.log('invoice', invoice.id, f"PAYMENT_ON_{invoice.status.upper()}_INVOICE",
                        f"Payment of ${amount:.2f} received for a {invoice.status} invoice; refund required",
                        metadata={'refund_amount': amount, 'payment_method': payment_method,
                                  'payment_intent_id': payment_intent_id})
        logger.warning(f"Payment {payment_intent_id} of ${amount:.2f} arrived for {invoice.status} "
                       f"invoice {invoice.id}; refund required")
        return payment

    def release_payment_link(self, invoice: Invoice, reason: str):
        """Expire the invoice's Checkout Session and clear its link."""
        session_id = invoice.stripe_checkout_session_id
        if not session_id and not invoice.stripe_payment_link:
            return

        expired = expire_checkout_session(session_id) if session_id else False
        invoice.stripe_payment_link = None
        invoice.stripe_checkout_session_id = None
        self.session.flush()

        self.events.log('invoice', invoice.id, 'PAYMENT_LINK_RELEASED',
                        f"Payment link withdrawn: {reason}",
                        metadata={'checkout_session_id': session_id, 'expired': expired})
