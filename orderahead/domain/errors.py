# orderahead/domain/errors.py


class OrderAheadError(Exception):
    """Base class for domain errors raised by services."""


class ValidationError(OrderAheadError, ValueError):
    """Bad caller input (empty name, empty cart, malformed price...)."""


class NotFoundError(OrderAheadError, LookupError):
    """Referenced business, order or product does not exist."""


class InvalidTransitionError(OrderAheadError):
    """Status move not permitted from the current status."""


class ConflictError(OrderAheadError):
    """Compare-and-set lost a race or a unique value is already taken."""


class PersistenceError(OrderAheadError):
    """Store unavailable or write rejected."""


class DeliveryError(OrderAheadError):
    """Push send failed. Never propagated into order placement."""

    def __init__(self, message: str, endpoint: str, permanent: bool = False, status_code: int | None = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.permanent = permanent
        self.status_code = status_code
