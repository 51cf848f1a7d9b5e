"""
Quote Repository - Draft quotes and their line items.

Status changes (send, approve, reject, expire) live in services.workflow;
this module only edits quotes while they are still drafts.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Dict

from database.models import Quote, QuoteService
from services.base_repository import BaseRepository, line_items_total, setting
from services.errors import ConflictError

logger = logging.getLogger(__name__)


class QuoteRepository(BaseRepository):
    """Repository for quotes with event logging."""

    def get_quote_record(self, quote_id: str) -> Quote:
        return self._get_owned(Quote, quote_id, 'Quote')

    def list_quotes(self, status: str = None, customer_id: str = None) -> List[Dict]:
        """List quotes, newest first."""
        query = self.session.query(Quote).filter(Quote.user_id == self.user_id)
        if status:
            query = query.filter(Quote.status == status)
        if customer_id:
            query = query.filter(Quote.customer_id == customer_id)
        quotes = query.order_by(Quote.created_at.desc()).all()
        return [q.to_dict() for q in quotes]

    def get_quote(self, quote_id: str) -> Dict:
        quote = self.get_quote_record(quote_id)
        data = quote.to_dict()
        data['history'] = self.events.get_entity_history('quote', quote.id)
        return data

    def _set_line_items(self, quote: Quote, items: List[Dict]):
        quote.services = [
            QuoteService(
                service_name=item['service_name'].strip(),
                price=float(item['price']),
                quantity=int(item.get('quantity') or 1),
                notes=item.get('notes')
            )
            for item in items
        ]
        quote.total_amount = line_items_total(items)

    def create_quote(self, data: Dict) -> Dict:
        """Create a draft quote for one of the owner's customers."""
        customer = self._get_customer(data.get('customer_id'))

        valid_until = self._parse_date(data.get('valid_until'))
        if valid_until is None:
            days = setting('QUOTE_VALIDITY_DAYS', 30)
            valid_until = datetime.utcnow().date() + timedelta(days=days)

        quote = Quote(
            user_id=self.user_id,
            customer=customer,
            status='draft',
            valid_until=valid_until,
            notes=data.get('notes'),
            customer_notes=data.get('customer_notes')
        )
        self._set_line_items(quote, data['services'])
        self.session.add(quote)
        self.session.flush()

        self.events.log(
            entity_type='quote',
            entity_id=quote.id,
            event_type='CREATED',
            description=f"Quote for {customer.name} created (${quote.total_amount:.2f})",
            metadata={'customer_id': customer.id, 'total_amount': quote.total_amount}
        )
        logger.info(f"Created quote: {quote.id}")
        return quote.to_dict()

    def _get_draft(self, quote_id: str, action: str) -> Quote:
        quote = self.get_quote_record(quote_id)
        if quote.status != 'draft':
            raise ConflictError(f"Only draft quotes can be {action} (status is '{quote.status}')")
        return quote

    def update_quote(self, quote_id: str, data: Dict) -> Dict:
        """Edit a draft quote. A new services list replaces the old line items."""
        quote = self._get_draft(quote_id, 'edited')

        if 'customer_id' in data:
            quote.customer = self._get_customer(data['customer_id'])
        if 'valid_until' in data:
            quote.valid_until = self._parse_date(data['valid_until'])
        for key in ('notes', 'customer_notes'):
            if key in data:
                setattr(quote, key, data[key])
        if 'services' in data:
            self._set_line_items(quote, data['services'])

        quote.updated_at = datetime.utcnow()
        self.session.flush()
        self.events.log('quote', quote.id, 'UPDATED', f"Quote #{quote.id[:8]} was updated")
        return quote.to_dict()

    def delete_quote(self, quote_id: str) -> bool:
        quote = self._get_draft(quote_id, 'deleted')
        self.session.delete(quote)
        self.events.log('quote', quote_id, 'DELETED', f"Quote #{quote_id[:8]} was deleted")
        logger.info(f"Deleted quote: {quote_id}")
        return True

