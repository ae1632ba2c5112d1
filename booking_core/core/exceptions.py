"""
Reservation error taxonomy.

Every failure the reservation core reports is a ``ReservationError``
subclass carrying a caller-safe message and a classification that the
HTTP layer turns into a status code. Diagnostic detail (SQL, driver
messages) goes to the logs, never into ``message``.

``CacheFailure`` is deliberately outside that hierarchy: the dedup cache
returns it inside a ``CacheResult`` and it is never raised to callers.
"""

from enum import Enum
from typing import Optional


class ErrorClass(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSIENT = "transient"
    INTERNAL = "internal"


STATUS_BY_CLASS = {
    ErrorClass.VALIDATION: 400,
    ErrorClass.NOT_FOUND: 404,
    ErrorClass.CONFLICT: 409,
    ErrorClass.TRANSIENT: 503,
    ErrorClass.INTERNAL: 500,
}


class ReservationError(Exception):
    """Base class for failures reported by the reservation core."""

    kind = "reservation_error"
    classification = ErrorClass.INTERNAL
    default_message = "Reservation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_CLASS[self.classification]

    @property
    def retryable(self) -> bool:
        return self.classification is ErrorClass.TRANSIENT


class InvalidInputError(ReservationError):
    kind = "invalid_input"
    classification = ErrorClass.VALIDATION
    default_message = "Invalid input"


class EventNotFoundError(ReservationError):
    kind = "event_not_found"
    classification = ErrorClass.NOT_FOUND
    default_message = "Event not found"

    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__()


class CapacityExceededError(ReservationError):
    kind = "capacity_exceeded"
    classification = ErrorClass.CONFLICT
    default_message = "No available seats for this event"

    def __init__(self, event_id: int, total_seats: int):
        self.event_id = event_id
        self.total_seats = total_seats
        super().__init__()


class DuplicateBookingError(ReservationError):
    """
    The user already holds a booking for the event.

    ``source`` records who noticed: ``cache`` (fast path), ``store``
    (in-transaction lookup) or ``constraint`` (unique index on insert).
    """

    kind = "duplicate_booking"
    classification = ErrorClass.CONFLICT
    default_message = "User has already booked this event"

    def __init__(self, event_id: int, user_id: str, source: str = "store"):
        self.event_id = event_id
        self.user_id = user_id
        self.source = source
        super().__init__()


class TransientStoreError(ReservationError):
    kind = "transient_store_failure"
    classification = ErrorClass.TRANSIENT
    default_message = "Booking temporarily unavailable, please retry"


class InternalReservationError(ReservationError):
    kind = "internal_error"
    classification = ErrorClass.INTERNAL
    default_message = "Internal server error"


class CacheFailure(Exception):
    """A dedup cache read or write that did not complete."""

    def __init__(self, operation: str, key: str, reason: str):
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f"{operation} {key}: {reason}")
