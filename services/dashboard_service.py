"""
Dashboard Service - Headline numbers and the recent-activity feed.
"""

import logging
from datetime import datetime
from typing import Dict, List

from sqlalchemy import func

from database.models import Customer, Quote, Job, Invoice, InvoicePayment
from services.base_repository import BaseRepository, round_money

logger = logging.getLogger(__name__)


class DashboardService(BaseRepository):
    """Aggregates an operator's numbers for the dashboard."""

    def _count(self, model, *criteria) -> int:
        return self.session.query(func.count(model.id)).filter(
            model.user_id == self.user_id, *criteria
        ).scalar() or 0

    def get_stats(self, today=None) -> Dict:
        """
        Returns:
            total_customers, active_quotes (sent), scheduled_jobs,
            monthly_revenue (payments received since the 1st of this month)
            and outstanding_amount (balance on sent and overdue invoices)
        """
        now = datetime.utcnow()
        today = today or now.date()
        month_start = datetime(today.year, today.month, 1)

        monthly_revenue = self.session.query(func.coalesce(func.sum(InvoicePayment.amount), 0)).join(
            Invoice, InvoicePayment.invoice_id == Invoice.id
        ).filter(
            Invoice.user_id == self.user_id,
            InvoicePayment.created_at >= month_start
        ).scalar()

        outstanding = self.session.query(Invoice).filter(
            Invoice.user_id == self.user_id,
            Invoice.status.in_(('sent', 'overdue'))
        ).all()

        return {
            'total_customers': self._count(Customer),
            'active_quotes': self._count(Quote, Quote.status == 'sent'),
            'scheduled_jobs': self._count(Job, Job.status == 'scheduled'),
            'monthly_revenue': round_money(monthly_revenue),
            'outstanding_amount': round_money(sum(i.balance_due for i in outstanding)),
            'overdue_invoices': sum(1 for i in outstanding if i.effective_status(today) == 'overdue'),
        }

    def get_activity(self, limit: int = 20) -> List[Dict]:
        return self.events.get_recent_events(limit=limit)
