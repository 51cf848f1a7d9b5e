"""
Customer Repository - CRM access for an operator's customers.
Enforces the free-tier customer limit and refuses to delete customers that
still have quotes, jobs or invoices.
"""

import logging
from datetime import datetime
from typing import List, Optional, Dict

from sqlalchemy import or_, func

from database.models import Customer, Profile, Quote, Job, Invoice
from services.base_repository import BaseRepository, round_money
from services.errors import ConflictError, CustomerLimitReached

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository):
    """Repository for customer records with free-tier limit enforcement."""

    EDITABLE_FIELDS = ('name', 'email', 'phone', 'address', 'notes')

    def _profile(self) -> Optional[Profile]:
        return self.session.query(Profile).filter(Profile.id == self.user_id).first()

    def count_customers(self) -> int:
        return self.session.query(func.count(Customer.id)).filter(
            Customer.user_id == self.user_id
        ).scalar() or 0

    def get_limit_status(self) -> Dict:
        """How many customers the owner has and whether another may be added."""
        profile = self._profile()
        tier = profile.subscription_tier if profile else 'free'
        count = self.count_customers()

        if tier == 'free':
            limit = profile.customer_limit if profile and profile.customer_limit is not None else 10
            can_add = count < limit
        else:
            limit = None
            can_add = True

        return {'count': count, 'limit': limit, 'tier': tier, 'can_add': can_add}

    def list_customers(self, search: str = None) -> List[Dict]:
        """List customers ordered by name, optionally filtered by a search term."""
        query = self.session.query(Customer).filter(Customer.user_id == self.user_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Customer.name.ilike(pattern),
                Customer.email.ilike(pattern),
                Customer.phone.ilike(pattern)
            ))
        return [c.to_dict() for c in query.order_by(Customer.name).all()]

    def get_customer(self, customer_id: str) -> Dict:
        """Customer detail with quote, job and invoice history."""
        customer = self._get_customer(customer_id)
        today = datetime.utcnow().date()

        quotes = self.session.query(Quote).filter(
            Quote.customer_id == customer.id,
            Quote.user_id == self.user_id
        ).order_by(Quote.created_at.desc()).all()
        jobs = self.session.query(Job).filter(
            Job.customer_id == customer.id,
            Job.user_id == self.user_id
        ).order_by(Job.created_at.desc()).all()
        invoices = self.session.query(Invoice).filter(
            Invoice.customer_id == customer.id,
            Invoice.user_id == self.user_id
        ).order_by(Invoice.created_at.desc()).all()

        data = customer.to_dict()
        data['quotes'] = [q.to_dict(include_services=False) for q in quotes]
        data['jobs'] = [j.to_dict(include_services=False) for j in jobs]
        data['invoices'] = [i.to_dict(today) for i in invoices]
        data['total_spent'] = round_money(sum(i.amount_paid or 0 for i in invoices))
        return data

    def create_customer(self, data: Dict) -> Dict:
        """
        Create a customer.

        Raises:
            CustomerLimitReached: free-tier owner already at their limit
        """
        status = self.get_limit_status()
        if not status['can_add']:
            logger.info(f"Customer limit reached for user {self.user_id}")
            raise CustomerLimitReached(status['limit'])

        customer = Customer(
            user_id=self.user_id,
            name=data['name'].strip(),
            email=data.get('email') or None,
            phone=data.get('phone') or None,
            address=data.get('address') or None,
            notes=data.get('notes') or None
        )
        self.session.add(customer)
        self.session.flush()

        self.events.log(
            entity_type='customer',
            entity_id=customer.id,
            event_type='CREATED',
            description=f"Customer '{customer.name}' was added",
            metadata={'customer_name': customer.name}
        )
        logger.info(f"Created customer: {customer.id}")
        return customer.to_dict()

    def update_customer(self, customer_id: str, data: Dict) -> Dict:
        """Update editable customer fields; records which ones changed."""
        customer = self._get_customer(customer_id)

        changes = {}
        for key in self.EDITABLE_FIELDS:
            if key in data:
                new_value = data[key].strip() if isinstance(data[key], str) else data[key]
                if key != 'name':
                    new_value = new_value or None
                if getattr(customer, key) != new_value:
                    changes[key] = {'old': getattr(customer, key), 'new': new_value}
                setattr(customer, key, new_value)

        customer.updated_at = datetime.utcnow()
        self.session.flush()

        if changes:
            self.events.log(
                entity_type='customer',
                entity_id=customer.id,
                event_type='UPDATED',
                description=f"Customer '{customer.name}' was updated",
                metadata={'changes': list(changes.keys())}
            )
        return customer.to_dict()

    def delete_customer(self, customer_id: str) -> bool:
        """
        Delete a customer with no history.

        Raises:
            ConflictError: quotes, jobs or invoices still reference the customer
        """
        customer = self._get_customer(customer_id)

        for model, label in ((Quote, 'quotes'), (Job, 'jobs'), (Invoice, 'invoices')):
            in_use = self.session.query(model.id).filter(
                model.customer_id == customer.id
            ).first()
            if in_use:
                raise ConflictError(
                    f"Customer '{customer.name}' has {label} and cannot be deleted"
                )

        name = customer.name
        self.session.delete(customer)
        self.events.log(
            entity_type='customer',
            entity_id=customer_id,
            event_type='DELETED',
            description=f"Customer '{name}' was deleted"
        )
        logger.info(f"Deleted customer: {customer_id}")
        return True
