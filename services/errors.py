"""
Domain exceptions raised by the service layer.

Each carries the HTTP status the API should answer with; security.py registers
a single Flask error handler that turns any ServiceError into a JSON response.
"""


class ServiceError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 400

    def __init__(self, message: str, status_code: int = None, **extra):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self):
        payload = {'success': False, 'error': self.message}
        payload.update(self.extra)
        return payload


class NotFoundError(ServiceError):
    """Record missing, or owned by another user."""
    status_code = 404


class ConflictError(ServiceError):
    """Request clashes with the current state of a record."""
    status_code = 409


class InvalidTransition(ConflictError):
    """Status change not allowed from the record's current status."""

    def __init__(self, entity_type: str, current: str, target: str):
        super().__init__(
            f"Cannot change {entity_type} status from '{current}' to '{target}'",
            entity_type=entity_type,
            current_status=current,
            target_status=target
        )


class CustomerLimitReached(ServiceError):
    """Free-tier customer cap hit."""
    status_code = 403

    def __init__(self, limit: int):
        super().__init__(
            f"You've reached the {limit}-customer limit on the free plan. "
            "Upgrade to Professional for unlimited customers.",
            upgrade_required=True,
            limit=limit
        )


class PaymentError(ServiceError):
    """Payment processor rejected or failed a request."""
    status_code = 502


class WebhookError(ServiceError):
    """Incoming webhook could not be verified or parsed."""
    status_code = 400
