"""
Event Logger Service - Records activity on an operator's records.

Every create, status change and payment is written to the event_log table.
The dashboard reads it back as the recent-activity feed.
"""

import logging
from typing import Dict, Optional, List
from datetime import datetime

from database.models import EventLog

logger = logging.getLogger(__name__)

# Event types for different operations
EVENT_TYPES = {
    # CRUD Operations
    'CREATED': 'Entity was created',
    'UPDATED': 'Entity was updated',
    'DELETED': 'Entity was deleted',
    'STATUS_CHANGED': 'Status was changed',

    # Quote lifecycle
    'QUOTE_SENT': 'Quote was sent to customer',
    'QUOTE_APPROVED': 'Quote was approved',
    'QUOTE_REJECTED': 'Quote was rejected',
    'QUOTE_EXPIRED': 'Quote expired',

    # Job lifecycle
    'JOB_SCHEDULED': 'Job was scheduled',
    'JOB_STARTED': 'Job work started',
    'JOB_COMPLETED': 'Job was completed',
    'JOB_CANCELLED': 'Job was cancelled',
    'NOTE_ADDED': 'Note was added',
    'PHOTO_ADDED': 'Photo was added',

    # Invoice and payment events
    'INVOICE_GENERATED': 'Invoice was generated',
    'INVOICE_SENT': 'Invoice was sent to customer',
    'INVOICE_OVERDUE': 'Invoice is overdue',
    'INVOICE_CANCELLED': 'Invoice was cancelled',
    'PAYMENT_LINK_CREATED': 'Online payment link was created',
    'PAYMENT_RECEIVED': 'Payment was received',
    'PAYMENT_FAILED': 'Online payment failed',

    # Account events
    'USER_REGISTERED': 'Account was created',
    'USER_LOGIN': 'User logged in',
    'PASSWORD_RESET': 'Password was reset',
}


class EventLogger:
    """Service for logging activity to the database."""

    def __init__(self, session, user_id: Optional[str], actor_type: str = 'user'):
        """
        Args:
            session: SQLAlchemy database session
            user_id: Owner of the records being changed
            actor_type: Who made the change (user, system, webhook)
        """
        self.session = session
        self.user_id = user_id
        self.actor_type = actor_type

    def log(self, entity_type: str, entity_id: Optional[str], event_type: str,
            description: str = None, metadata: Dict = None) -> EventLog:
        """
        Add an event to the current transaction.

        Args:
            entity_type: Type of entity (customer, quote, job, invoice, ...)
            entity_id: ID of the entity
            event_type: Type of event (CREATED, QUOTE_SENT, ...)
            description: Human-readable description of the event
            metadata: Additional data about the event
        """
        event = EventLog(
            user_id=self.user_id,
            timestamp=datetime.utcnow(),
            actor_type=self.actor_type,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            description=description or EVENT_TYPES.get(event_type, event_type),
            extra_data=metadata or {}
        )
        self.session.add(event)
        logger.debug(f"Event logged: {event_type} on {entity_type}:{entity_id}")
        return event

    def log_create(self, entity_type: str, entity_id: str, description: str = None) -> EventLog:
        """Log a creation event."""
        return self.log(
            entity_type=entity_type,
            entity_id=entity_id,
            event_type='CREATED',
            description=description or f"New {entity_type} created"
        )

    def log_status_change(self, entity_type: str, entity_id: str,
                          old_status: str, new_status: str,
                          event_type: str = 'STATUS_CHANGED') -> EventLog:
        """Log a status change event."""
        return self.log(
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            description=f"{entity_type.capitalize()} status changed from '{old_status}' to '{new_status}'",
            metadata={'old_status': old_status, 'new_status': new_status}
        )

    def get_recent_events(self, limit: int = 20) -> List[Dict]:
        """Most recent events for this user, newest first."""
        events = self.session.query(EventLog).filter(
            EventLog.user_id == self.user_id
        ).order_by(EventLog.timestamp.desc()).limit(limit).all()
        return [e.to_dict() for e in events]

    def get_entity_history(self, entity_type: str, entity_id: str,
                           limit: int = 50) -> List[Dict]:
        """Get the event history for a specific entity."""
        events = self.session.query(EventLog).filter(
            EventLog.user_id == self.user_id,
            EventLog.entity_type == entity_type,
            EventLog.entity_id == entity_id
        ).order_by(EventLog.timestamp.desc()).limit(limit).all()
        return [e.to_dict() for e in events]
