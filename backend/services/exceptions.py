"""Custom exceptions for delivery dispatch."""

import functools

from django.db import DatabaseError, IntegrityError


class DispatchError(Exception):
    """Base class for every dispatch-core failure reported to callers."""
    error_code = "dispatch_error"
    status_code = 400
    default_message = "Dispatch operation failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


# ---------------------- Not found ----------------------

class NotFoundError(DispatchError):
    error_code = "not_found"
    status_code = 404


class DeliveryNotFoundError(NotFoundError):
    """Raised when a delivery cannot be found."""
    error_code = "delivery_not_found"
    default_message = "Delivery not found"


class OfferNotFoundError(NotFoundError):
    """Raised when a delivery offer cannot be found."""
    error_code = "offer_not_found"
    default_message = "Offer not found"


class DriverNotFoundError(NotFoundError):
    """Raised when a driver cannot be found."""
    error_code = "driver_not_found"
    default_message = "Driver not found"


# ---------------------- Conflict ----------------------

class ConflictError(DispatchError):
    """State precondition no longer holds: a stale request or a lost race."""
    error_code = "conflict"
    status_code = 409


class DeliveryNotAvailableError(ConflictError):
    """Raised when a delivery is not in a state the operation accepts."""
    error_code = "delivery_not_available"
    default_message = "Delivery is not available for this operation"


class OfferNotPendingError(ConflictError):
    """Raised when responding to an offer that already reached a terminal status."""
    error_code = "offer_not_pending"
    default_message = "Offer is no longer pending"


class DriverNotAvailableError(ConflictError):
    """Raised when the driver already holds a delivery."""
    error_code = "driver_not_available"
    default_message = "Driver is already on a delivery"


class ConcurrentUpdateError(ConflictError):
    """Raised when the store rejects a write because another operation won."""
    error_code = "concurrent_update"
    default_message = "Delivery was modified concurrently, please retry"


# ---------------------- Unauthorized ----------------------

class UnauthorizedError(DispatchError):
    error_code = "unauthorized"
    status_code = 403


class CallerMismatchError(UnauthorizedError):
    """Raised when the caller acts on behalf of another driver."""
    error_code = "caller_mismatch"
    default_message = "You can only act on your own offers"


class NoDeclinedOfferError(UnauthorizedError):
    """Raised when reclaiming a delivery the driver never declined."""
    error_code = "no_declined_offer"
    default_message = "No previous declined offer found"


# ---------------------- Transient ----------------------

class TransientStoreError(DispatchError):
    """Store failure; nothing was committed and the call can be retried."""
    error_code = "transient_error"
    status_code = 503
    default_message = "Temporary storage failure, please retry"


def guard_store_errors(func):
    """
    Translate database failures escaping ``func`` into dispatch errors.

    Apply outside ``transaction.atomic`` so the rollback has happened by the
    time the error is translated.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError as exc:
            raise ConcurrentUpdateError() from exc
        except DatabaseError as exc:
            raise TransientStoreError(f"{func.__name__} failed: {exc}") from exc
    return wrapper
