from booking_core.models.event import Event
from booking_core.models.booking import Booking

__all__ = ["Event", "Booking"]
