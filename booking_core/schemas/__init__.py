from booking_core.schemas.booking import (
    ReserveRequest,
    BookingRecord,
    UserBooking,
    ReserveResponse,
    UserBookingsResponse,
)

__all__ = [
    "ReserveRequest", "BookingRecord", "UserBooking",
    "ReserveResponse", "UserBookingsResponse",
]
