"""
Read-only booking queries.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.core.exceptions import InvalidInputError
from booking_core.models.booking import Booking
from booking_core.models.event import Event
from booking_core.schemas.booking import UserBooking


async def list_bookings_by_user(db: AsyncSession, user_id: str) -> list[UserBooking]:
    """All bookings held by a user, newest first, with the event name attached."""
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidInputError("Invalid user_id")

    result = await db.execute(
        select(
            Booking.id,
            Booking.event_id,
            Booking.user_id,
            Booking.created_at,
            Event.name.label("event_name"),
        )
        .join(Event, Booking.event_id == Event.id)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return [UserBooking.model_validate(row) for row in result.all()]
