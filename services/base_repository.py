"""
Shared plumbing for the owner-scoped repositories.
"""

import logging
from datetime import datetime, date, timezone
from typing import Optional, Dict, List

from flask import current_app, has_app_context
from sqlalchemy.orm import Session

from database.models import Customer, Profile
from services.errors import NotFoundError, ServiceError
from services.event_logger import EventLogger

logger = logging.getLogger(__name__)


def round_money(value) -> float:
    """Round an amount to cents."""
    return round(float(value or 0), 2)


def line_items_total(items: List[Dict]) -> float:
    """Sum of price x quantity over a list of line-item payloads."""
    return round_money(sum(
        float(item.get('price') or 0) * int(item.get('quantity') or 1)
        for item in items
    ))


class BaseRepository:
    """Repository bound to one session and one owning user."""

    def __init__(self, session: Session, user_id: str, actor_type: str = 'user'):
        self.session = session
        self.user_id = user_id
        self.events = EventLogger(session, user_id, actor_type=actor_type)

    def _get_owned(self, model, record_id: str, label: str = None):
        """Fetch a row of ``model`` owned by the current user or raise NotFoundError."""
        record = self.session.query(model).filter(
            model.id == record_id,
            model.user_id == self.user_id
        ).first()
        if not record:
            raise NotFoundError(f"{label or model.__name__} not found")
        return record

    def _get_customer(self, customer_id: str) -> Customer:
        if not customer_id:
            raise ServiceError("customer_id is required")
        return self._get_owned(Customer, customer_id, 'Customer')

    def business_name(self) -> str:
        profile = self.session.query(Profile).filter(Profile.id == self.user_id).first()
        return profile.business_name if profile else ''

    @staticmethod
    def _parse_date(value) -> Optional[date]:
        """Parse a date from string or return None."""
        if not value:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except (ValueError, AttributeError):
            raise ServiceError(f"Invalid date: {value}")

    @staticmethod
    def _parse_datetime(value) -> Optional[datetime]:
        """Parse a datetime from string into naive UTC, or return None."""
        if not value:
            return None
        if not isinstance(value, datetime):
            try:
                value = datetime.fromisoformat(value.replace('Z', '+00:00'))
            except (ValueError, AttributeError):
                raise ServiceError(f"Invalid datetime: {value}")
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


def setting(name: str, default=None):
    """Read an application setting, falling back outside an app context."""
    if has_app_context():
        return current_app.config.get(name, default)
    return default
