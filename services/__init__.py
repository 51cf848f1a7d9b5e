"""
Services package for TradeFlow.
Contains repository classes for database access and the workflow,
payment, document, email and scheduling services built on them.
"""

from services.errors import (
    ServiceError,
    NotFoundError,
    ConflictError,
    InvalidTransition,
    CustomerLimitReached,
    PaymentError,
    WebhookError,
)
from services.customer_repository import CustomerRepository
from services.catalog_repository import CatalogRepository
from services.quote_repository import QuoteRepository
from services.job_repository import JobRepository
from services.invoice_repository import InvoiceRepository
from services.workflow import WorkflowService
from services.payment_service import PaymentService, WebhookProcessor
from services.dashboard_service import DashboardService

__all__ = [
    'ServiceError',
    'NotFoundError',
    'ConflictError',
    'InvalidTransition',
    'CustomerLimitReached',
    'PaymentError',
    'WebhookError',
    'CustomerRepository',
    'CatalogRepository',
    'QuoteRepository',
    'JobRepository',
    'InvoiceRepository',
    'WorkflowService',
    'PaymentService',
    'WebhookProcessor',
    'DashboardService',
]
