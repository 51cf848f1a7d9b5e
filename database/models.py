"""
SQLAlchemy models for TradeFlow.
Defines the tables for accounts, CRM, quoting, jobs, invoicing and payments.

Every business table carries ``user_id``; repositories always filter on it so
one operator can never read or write another operator's rows.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime, Date,
    ForeignKey, JSON, Index
)
from sqlalchemy.orm import relationship
from database.connection import Base


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# Status vocabularies
QUOTE_STATUSES = ('draft', 'sent', 'approved', 'rejected', 'expired')
JOB_STATUSES = ('draft', 'scheduled', 'in_progress', 'completed', 'cancelled')
PAYMENT_STATUSES = ('unpaid', 'partial', 'paid')
INVOICE_STATUSES = ('draft', 'sent', 'paid', 'overdue', 'cancelled')
PAYMENT_METHODS = ('stripe', 'cash', 'check', 'other')
PHOTO_TYPES = ('before', 'during', 'after')
SERVICE_TYPES = ('cleaning', 'yard_work', 'handyman', 'laundry')
SUBSCRIPTION_TIERS = ('free', 'professional')


# =============================================================================
# USERS & PROFILES
# =============================================================================

class User(Base):
    """Login account for a business operator."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False,
                           cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_users_email', 'email'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'is_active': self.is_active,
            'last_login': _iso(self.last_login),
            'created_at': _iso(self.created_at),
        }


class Profile(Base):
    """Business profile; shares its primary key with the owning user."""
    __tablename__ = 'profiles'

    id = Column(String(36), ForeignKey('users.id'), primary_key=True)
    business_name = Column(String(255), nullable=False)
    service_types = Column(JSON, default=list)
    phone = Column(String(50))
    subscription_tier = Column(String(20), default='free')
    customer_limit = Column(Integer, default=10)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")

    def to_dict(self):
        return {
            'id': self.id,
            'business_name': self.business_name,
            'service_types': self.service_types or [],
            'phone': self.phone,
            'subscription_tier': self.subscription_tier,
            'customer_limit': self.customer_limit,
            'created_at': _iso(self.created_at),
        }


# =============================================================================
# CRM - CUSTOMERS
# =============================================================================

class Customer(Base):
    """Customer/Client records."""
    __tablename__ = 'customers'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    quotes = relationship("Quote", back_populates="customer")
    jobs = relationship("Job", back_populates="customer")
    invoices = relationship("Invoice", back_populates="customer")

    __table_args__ = (
        Index('ix_customers_user', 'user_id'),
        Index('ix_customers_name', 'name'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def to_summary(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
        }


# =============================================================================
# SERVICE CATALOGUE
# =============================================================================

class Service(Base):
    """A priced service the operator offers."""
    __tablename__ = 'services'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    name = Column(String(255), nullable=False)
    default_price = Column(Float, default=0)
    description = Column(Text)
    is_custom = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_services_user', 'user_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'default_price': self.default_price,
            'description': self.description,
            'is_custom': self.is_custom,
            'created_at': _iso(self.created_at),
        }


# =============================================================================
# QUOTES
# =============================================================================

class Quote(Base):
    """Quote/Estimate sent to a customer for approval."""
    __tablename__ = 'quotes'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    status = Column(String(20), default='draft')
    total_amount = Column(Float, default=0)
    valid_until = Column(Date)
    notes = Column(Text)
    customer_notes = Column(Text)
    sent_at = Column(DateTime)
    approved_at = Column(DateTime)
    rejected_at = Column(DateTime)
    expired_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="quotes")
    services = relationship("QuoteService", back_populates="quote",
                            cascade="all, delete-orphan", order_by="QuoteService.created_at")
    jobs = relationship("Job", back_populates="quote")

    __table_args__ = (
        Index('ix_quotes_user', 'user_id'),
        Index('ix_quotes_customer', 'customer_id'),
        Index('ix_quotes_status', 'status'),
    )

    def to_dict(self, include_services=True):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'customer_id': self.customer_id,
            'status': self.status,
            'total_amount': self.total_amount,
            'valid_until': _iso(self.valid_until),
            'notes': self.notes,
            'customer_notes': self.customer_notes,
            'sent_at': _iso(self.sent_at),
            'approved_at': _iso(self.approved_at),
            'rejected_at': _iso(self.rejected_at),
            'expired_at': _iso(self.expired_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'customer': self.customer.to_summary() if self.customer else None,
        }
        if include_services:
            data['services'] = [s.to_dict() for s in self.services]
        return data


class QuoteService(Base):
    """Line item on a quote."""
    __tablename__ = 'quote_services'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    quote_id = Column(String(36), ForeignKey('quotes.id'), nullable=False)
    service_name = Column(String(255), nullable=False)
    price = Column(Float, default=0)
    quantity = Column(Integer, default=1)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    quote = relationship("Quote", back_populates="services")

    def to_dict(self):
        return {
            'id': self.id,
            'quote_id': self.quote_id,
            'service_name': self.service_name,
            'price': self.price,
            'quantity': self.quantity,
            'notes': self.notes,
            'line_total': round((self.price or 0) * (self.quantity or 0), 2),
        }


# =============================================================================
# JOBS
# =============================================================================

class Job(Base):
    """Scheduled or performed work, optionally originating from a quote."""
    __tablename__ = 'jobs'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    quote_id = Column(String(36), ForeignKey('quotes.id'))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(20), default='draft')
    payment_status = Column(String(20), default='unpaid')
    total_amount = Column(Float, default=0)
    scheduled_date = Column(DateTime)
    start_time = Column(DateTime)
    end_time = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="jobs")
    quote = relationship("Quote", back_populates="jobs")
    services = relationship("JobService", back_populates="job",
                            cascade="all, delete-orphan", order_by="JobService.created_at")
    photos = relationship("JobPhoto", back_populates="job",
                          cascade="all, delete-orphan", order_by="JobPhoto.created_at")
    job_notes = relationship("JobNote", back_populates="job",
                             cascade="all, delete-orphan", order_by="JobNote.created_at.desc()")
    time_entries = relationship("TimeEntry", back_populates="job",
                                cascade="all, delete-orphan", order_by="TimeEntry.start_time")
    invoices = relationship("Invoice", back_populates="job")

    __table_args__ = (
        Index('ix_jobs_user', 'user_id'),
        Index('ix_jobs_customer', 'customer_id'),
        Index('ix_jobs_status', 'status'),
        Index('ix_jobs_scheduled_date', 'scheduled_date'),
    )

    def to_dict(self, include_services=True):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'customer_id': self.customer_id,
            'quote_id': self.quote_id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'payment_status': self.payment_status,
            'total_amount': self.total_amount,
            'scheduled_date': _iso(self.scheduled_date),
            'start_time': _iso(self.start_time),
            'end_time': _iso(self.end_time),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'customer': self.customer.to_summary() if self.customer else None,
        }
        if include_services:
            data['services'] = [s.to_dict() for s in self.services]
        return data


class JobService(Base):
    """Line item on a job."""
    __tablename__ = 'job_services'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    service_name = Column(String(255), nullable=False)
    price = Column(Float, default=0)
    quantity = Column(Integer, default=1)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("Job", back_populates="services")

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'service_name': self.service_name,
            'price': self.price,
            'quantity': self.quantity,
            'notes': self.notes,
            'line_total': round((self.price or 0) * (self.quantity or 0), 2),
        }


class JobPhoto(Base):
    """Before/during/after photo attached to a job."""
    __tablename__ = 'job_photos'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    photo_url = Column(Text, nullable=False)
    storage_path = Column(Text)
    photo_type = Column(String(20), default='during')
    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("Job", back_populates="photos")

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'photo_url': self.photo_url,
            'photo_type': self.photo_type,
            'created_at': _iso(self.created_at),
        }


class JobNote(Base):
    """Free-text note on a job."""
    __tablename__ = 'job_notes'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("Job", back_populates="job_notes")

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'user_id': self.user_id,
            'content': self.content,
            'created_at': _iso(self.created_at),
        }


class TimeEntry(Base):
    """Tracked working time on a job; ``end_time`` is null while running."""
    __tablename__ = 'time_entries'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    start_time = Column(DateTime, nullable=False, default=datetime.utcnow)
    end_time = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("Job", back_populates="time_entries")

    __table_args__ = (
        Index('ix_time_entries_job', 'job_id'),
    )

    @property
    def duration_seconds(self):
        if not self.end_time:
            return 0
        return int((self.end_time - self.start_time).total_seconds())

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'user_id': self.user_id,
            'start_time': _iso(self.start_time),
            'end_time': _iso(self.end_time),
            'duration_seconds': self.duration_seconds,
            'running': self.end_time is None,
        }


# =============================================================================
# INVOICES & PAYMENTS
# =============================================================================

class Invoice(Base):
    """Bill for a job, optionally payable through a Stripe Checkout session."""
    __tablename__ = 'invoices'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=False)
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    status = Column(String(20), default='draft')
    total_amount = Column(Float, default=0)
    amount_paid = Column(Float, default=0)
    due_date = Column(Date)
    payment_terms = Column(String(20))
    notes = Column(Text)
    stripe_payment_link = Column(Text)
    stripe_checkout_session_id = Column(String(255))
    stripe_payment_intent_id = Column(String(255))
    sent_at = Column(DateTime)
    paid_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    customer = relationship("Customer", back_populates="invoices")
    job = relationship("Job", back_populates="invoices")
    payments = relationship("InvoicePayment", back_populates="invoice",
                            cascade="all, delete-orphan", order_by="InvoicePayment.created_at")

    __table_args__ = (
        Index('ix_invoices_user', 'user_id'),
        Index('ix_invoices_customer', 'customer_id'),
        Index('ix_invoices_job', 'job_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_checkout_session', 'stripe_checkout_session_id'),
        Index('ix_invoices_payment_intent', 'stripe_payment_intent_id'),
    )

    @property
    def balance_due(self):
        return round(max((self.total_amount or 0) - (self.amount_paid or 0), 0), 2)

    def effective_status(self, today=None):
        """A sent invoice whose due date has passed reads as overdue."""
        today = today or datetime.utcnow().date()
        if self.status == 'sent' and self.due_date and self.due_date < today:
            return 'overdue'
        return self.status

    def to_dict(self, today=None):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'customer_id': self.customer_id,
            'job_id': self.job_id,
            'status': self.effective_status(today),
            'stored_status': self.status,
            'total_amount': self.total_amount,
            'amount_paid': self.amount_paid or 0,
            'balance_due': self.balance_due,
            'due_date': _iso(self.due_date),
            'payment_terms': self.payment_terms,
            'notes': self.notes,
            'stripe_payment_link': self.stripe_payment_link,
            'sent_at': _iso(self.sent_at),
            'paid_at': _iso(self.paid_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'customer': self.customer.to_summary() if self.customer else None,
        }


class InvoicePayment(Base):
    """A payment applied to an invoice."""
    __tablename__ = 'invoice_payments'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_id = Column(String(36), ForeignKey('invoices.id'), nullable=False)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(20), default='other')
    stripe_payment_intent_id = Column(String(255), unique=True)
    refund_amount = Column(Float, default=0.0)  # received but not applied
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    invoice = relationship("Invoice", back_populates="payments")

    __table_args__ = (
        Index('ix_invoice_payments_invoice', 'invoice_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'invoice_id': self.invoice_id,
            'amount': self.amount,
            'payment_method': self.payment_method,
            'stripe_payment_intent_id': self.stripe_payment_intent_id,
            'refund_amount': self.refund_amount or 0,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
        }


# =============================================================================
# EVENT LOG (activity feed)
# =============================================================================

class EventLog(Base):
    """
    Activity log for everything that happens to an operator's records.
    Feeds the dashboard activity stream.
    """
    __tablename__ = 'event_log'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'))
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    actor_type = Column(String(20), default='user')  # user, system, webhook
    entity_type = Column(String(50), nullable=False)  # customer, quote, job, invoice
    entity_id = Column(String(36))
    event_type = Column(String(50), nullable=False)  # CREATED, QUOTE_SENT, ...
    description = Column(Text)
    extra_data = Column(JSON, default=dict)

    __table_args__ = (
        Index('ix_event_log_user', 'user_id'),
        Index('ix_event_log_timestamp', 'timestamp'),
        Index('ix_event_log_entity', 'entity_type', 'entity_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'timestamp': _iso(self.timestamp),
            'actor_type': self.actor_type,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'event_type': self.event_type,
            'description': self.description,
            'metadata': self.extra_data or {},
        }
