"""
Workflow Service - Status lifecycle for quotes, jobs and invoices.

Every status change in the app goes through this module. The allowed moves
are listed in the transition tables below; anything else raises
InvalidTransition. A transition does all of its writes (status, timestamps,
follow-on records, event log) in the caller's session, so they commit or
roll back together.

Side effects:
- approving a quote creates a draft job carrying the quote's line items
- completing a job creates a draft invoice unless the job already has one
- marking an invoice paid records the outstanding balance as a payment
"""

import logging
from datetime import datetime
from typing import Dict

from database.models import Quote, Job, JobService, Invoice
from services.base_repository import BaseRepository, setting
from services.email_service import EmailService
from services.errors import InvalidTransition, ServiceError
from services.event_logger import EventLogger
from services.invoice_repository import InvoiceRepository, active_invoice_for, new_invoice

logger = logging.getLogger(__name__)

QUOTE_TRANSITIONS = {
    'draft': {'sent'},
    'sent': {'approved', 'rejected', 'expired'},
    'approved': set(),
    'rejected': set(),
    'expired': set(),
}

JOB_TRANSITIONS = {
    'draft': {'scheduled', 'in_progress', 'cancelled'},
    'scheduled': {'in_progress', 'draft', 'cancelled'},
    'in_progress': {'completed', 'cancelled'},
    'completed': set(),
    'cancelled': set(),
}

INVOICE_TRANSITIONS = {
    'draft': {'sent', 'cancelled'},
    'sent': {'paid', 'overdue', 'cancelled'},
    'overdue': {'paid', 'cancelled'},
    'paid': set(),
    'cancelled': set(),
}

JOB_EVENTS = {
    'scheduled': 'JOB_SCHEDULED',
    'in_progress': 'JOB_STARTED',
    'completed': 'JOB_COMPLETED',
    'cancelled': 'JOB_CANCELLED',
}


def can_transition(table: Dict, current: str, target: str) -> bool:
    return target in table.get(current, set())


def _check(entity_type: str, table: Dict, current: str, target: str):
    if not can_transition(table, current, target):
        raise InvalidTransition(entity_type, current, target)


class WorkflowService(BaseRepository):
    """Applies status transitions for one operator."""

    def __init__(self, session, user_id: str, actor_type: str = 'user', email_service: EmailService = None):
        super().__init__(session, user_id, actor_type=actor_type)
        self.email = email_service or EmailService()

    # =========================================================================
    # QUOTES
    # =========================================================================

    def send_quote(self, quote_id: str) -> Dict:
        """draft -> sent. Emails the customer when mail is configured."""
        quote = self._get_owned(Quote, quote_id, 'Quote')
        _check('quote', QUOTE_TRANSITIONS, quote.status, 'sent')

        quote.status = 'sent'
        quote.sent_at = datetime.utcnow()
        self.session.flush()
        self.events.log('quote', quote.id, 'QUOTE_SENT',
                        f"Quote #{quote.id[:8]} sent to {quote.customer.name}",
                        metadata={'old_status': 'draft', 'new_status': 'sent'})

        email_sent = self.email.send_quote(quote, self.business_name())
        logger.info(f"Quote {quote.id} sent (email delivered: {email_sent})")
        return {'quote': quote.to_dict(), 'email_sent': email_sent}

    def approve_quote(self, quote_id: str) -> Dict:
        """
        sent -> approved, creating a draft job from the quote.

        A quote past its valid_until date cannot be approved even if the
        expiry sweep has not reached it yet.
        """
        quote = self._get_owned(Quote, quote_id, 'Quote')
        _check('quote', QUOTE_TRANSITIONS, quote.status, 'approved')
        if quote.valid_until and quote.valid_until < datetime.utcnow().date():
            raise InvalidTransition('quote', 'expired', 'approved')

        quote.status = 'approved'
        quote.approved_at = datetime.utcnow()

        job = Job(
            user_id=self.user_id,
            customer=quote.customer,
            quote=quote,
            title=f"Job from Quote #{quote.id[:8]}",
            description=quote.notes,
            status='draft',
            payment_status='unpaid',
            total_amount=quote.total_amount,
            services=[
                JobService(
                    service_name=item.service_name,
                    price=item.price,
                    quantity=item.quantity,
                    notes=item.notes
                )
                for item in quote.services
            ]
        )
        self.session.add(job)
        self.session.flush()

        self.events.log('quote', quote.id, 'QUOTE_APPROVED',
                        f"Quote #{quote.id[:8]} approved",
                        metadata={'old_status': 'sent', 'new_status': 'approved', 'job_id': job.id})
        self.events.log('job', job.id, 'CREATED',
                        f"Job '{job.title}' created from approved quote",
                        metadata={'quote_id': quote.id})
        logger.info(f"Quote {quote.id} approved, created job {job.id}")
        return {'quote': quote.to_dict(), 'job': job.to_dict()}

    def reject_quote(self, quote_id: str) -> Dict:
        """sent -> rejected."""
        quote = self._get_owned(Quote, quote_id, 'Quote')
        _check('quote', QUOTE_TRANSITIONS, quote.status, 'rejected')

        quote.status = 'rejected'
        quote.rejected_at = datetime.utcnow()
        self.session.flush()
        self.events.log('quote', quote.id, 'QUOTE_REJECTED',
                        f"Quote #{quote.id[:8]} rejected",
                        metadata={'old_status': 'sent', 'new_status': 'rejected'})
        return {'quote': quote.to_dict()}

    # =========================================================================
    # JOBS
    # =========================================================================

    def update_job_status(self, job_id: str, status: str, scheduled_date=None) -> Dict:
        """
        Move a job to ``status``.

        Args:
            status: scheduled, in_progress, completed, cancelled or draft
            scheduled_date: Optional date to set while scheduling

        Returns:
            Dict with the job and, on completion, the generated invoice
        """
        job = self._get_owned(Job, job_id, 'Job')
        old_status = job.status
        _check('job', JOB_TRANSITIONS, old_status, status)

        if scheduled_date:
            job.scheduled_date = self._parse_datetime(scheduled_date)

        now = datetime.utcnow()
        invoice = None

        if status == 'scheduled' and not job.scheduled_date:
            raise ServiceError("A scheduled date is required to schedule a job")
        if status == 'in_progress':
            job.start_time = now
        if status == 'completed':
            job.end_time = now
            if not active_invoice_for(self.session, job.id):
                invoice = new_invoice(job, setting('INVOICE_DUE_DAYS', 14))
                self.session.add(invoice)

        job.status = status
        job.updated_at = now
        self.session.flush()

        self.events.log_status_change('job', job.id, old_status, status,
                                      event_type=JOB_EVENTS.get(status, 'STATUS_CHANGED'))
        if invoice is not None:
            self.events.log('invoice', invoice.id, 'INVOICE_GENERATED',
                            f"Invoice generated for completed job '{job.title}'",
                            metadata={'job_id': job.id, 'total_amount': invoice.total_amount})
            logger.info(f"Job {job.id} completed, created invoice {invoice.id}")

        return {
            'job': job.to_dict(),
            'invoice': invoice.to_dict() if invoice is not None else None,
        }

    # =========================================================================
    # INVOICES
    # =========================================================================

    def _get_invoice(self, invoice_id: str) -> Invoice:
        return self._get_owned(Invoice, invoice_id, 'Invoice')

    def send_invoice(self, invoice_id: str) -> Dict:
        """draft -> sent. Emails the customer a link to the payment page."""
        invoice = self._get_invoice(invoice_id)
        _check('invoice', INVOICE_TRANSITIONS, invoice.status, 'sent')

        invoice.status = 'sent'
        invoice.sent_at = datetime.utcnow()
        self.session.flush()
        self.events.log('invoice', invoice.id, 'INVOICE_SENT',
                        f"Invoice #{invoice.id[:8]} sent to {invoice.customer.name}",
                        metadata={'old_status': 'draft', 'new_status': 'sent'})

        payment_url = f"{setting('APP_URL', '')}/pay/{invoice.id}"
        email_sent = self.email.send_invoice(invoice, self.business_name(), payment_url)
        return {'invoice': invoice.to_dict(), 'email_sent': email_sent}

    def mark_invoice_paid(self, invoice_id: str, notes: str = None) -> Dict:
        """sent/overdue -> paid, recording the remaining balance as a payment."""
        invoice = self._get_invoice(invoice_id)
        _check('invoice', INVOICE_TRANSITIONS, invoice.status, 'paid')

        invoices = InvoiceRepository(self.session, self.user_id, actor_type=self.events.actor_type)
        if invoice.balance_due > 0:
            invoices.apply_payment(invoice, invoice.balance_due, 'other',
                                   notes=notes or 'Marked as paid')
        else:
            invoices.release_payment_link(invoice, 'invoice marked paid')
            old_status = invoice.status
            invoice.status = 'paid'
            invoice.paid_at = datetime.utcnow()
            if invoice.job:
                invoice.job.payment_status = 'paid'
            self.session.flush()
            self.events.log_status_change('invoice', invoice.id, old_status, 'paid')

        return {'invoice': invoice.to_dict()}

    def mark_invoice_overdue(self, invoice_id: str) -> Dict:
        invoice = self._get_invoice(invoice_id)
        _check('invoice', INVOICE_TRANSITIONS, invoice.status, 'overdue')

        old_status = invoice.status
        invoice.status = 'overdue'
        self.session.flush()
        self.events.log_status_change('invoice', invoice.id, old_status, 'overdue',
                                      event_type='INVOICE_OVERDUE')
        return {'invoice': invoice.to_dict()}

    def cancel_invoice(self, invoice_id: str) -> Dict:
        invoice = self._get_invoice(invoice_id)
        _check('invoice', INVOICE_TRANSITIONS, invoice.status, 'cancelled')

        InvoiceRepository(self.session, self.user_id, actor_type=self.events.actor_type).release_payment_link(
            invoice, 'invoice cancelled'
        )
        old_status = invoice.status
        invoice.status = 'cancelled'
        self.session.flush()
        self.events.log_status_change('invoice', invoice.id, old_status, 'cancelled',
                                      event_type='INVOICE_CANCELLED')
        return {'invoice': invoice.to_dict()}

    def update_invoice_status(self, invoice_id: str, status: str) -> Dict:
        """Dispatch a requested invoice status to its transition."""
        handlers = {
            'sent': self.send_invoice,
            'paid': self.mark_invoice_paid,
            'overdue': self.mark_invoice_overdue,
            'cancelled': self.cancel_invoice,
        }
        if status not in handlers:
            invoice = self._get_invoice(invoice_id)
            raise InvalidTransition('invoice', invoice.status, status)
        return handlers[status](invoice_id)


# =============================================================================
# SCHEDULED SWEEPS (all operators)
# =============================================================================

def expire_quotes(session, today=None) -> int:
    """Move every sent quote whose valid_until has passed to 'expired'."""
    today = today or datetime.utcnow().date()
    quotes = session.query(Quote).filter(
        Quote.status == 'sent',
        Quote.valid_until.isnot(None),
        Quote.valid_until < today
    ).all()

    now = datetime.utcnow()
    for quote in quotes:
        quote.status = 'expired'
        quote.expired_at = now
        EventLogger(session, quote.user_id, actor_type='system').log(
            'quote', quote.id, 'QUOTE_EXPIRED',
            f"Quote #{quote.id[:8]} expired on {quote.valid_until.isoformat()}",
            metadata={'old_status': 'sent', 'new_status': 'expired'}
        )

    session.flush()
    if quotes:
        logger.info(f"Expired {len(quotes)} quotes")
    return len(quotes)


def mark_overdue_invoices(session, today=None) -> int:
    """Move every sent invoice past its due date to 'overdue'."""
    today = today or datetime.utcnow().date()
    invoices = session.query(Invoice).filter(
        Invoice.status == 'sent',
        Invoice.due_date.isnot(None),
        Invoice.due_date < today
    ).all()

    for invoice in invoices:
        invoice.status = 'overdue'
        EventLogger(session, invoice.user_id, actor_type='system').log_status_change(
            'invoice', invoice.id, 'sent', 'overdue', event_type='INVOICE_OVERDUE'
        )

    session.flush()
    if invoices:
        logger.info(f"Marked {len(invoices)} invoices overdue")
    return len(invoices)
