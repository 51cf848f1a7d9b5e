"""
Database package for TradeFlow.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    configure_database,
    get_db_session,
    init_db,
    check_db_connection
)

from database.models import (
    User,
    Profile,
    Customer,
    Service,
    Quote,
    QuoteService,
    Job,
    JobService,
    JobPhoto,
    JobNote,
    TimeEntry,
    Invoice,
    InvoicePayment,
    EventLog
)

__all__ = [
    # Connection
    'Base',
    'configure_database',
    'get_db_session',
    'init_db',
    'check_db_connection',
    # Models
    'User',
    'Profile',
    'Customer',
    'Service',
    'Quote',
    'QuoteService',
    'Job',
    'JobService',
    'JobPhoto',
    'JobNote',
    'TimeEntry',
    'Invoice',
    'InvoicePayment',
    'EventLog'
]
