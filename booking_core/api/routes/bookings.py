"""
Booking endpoints: reserve a seat, list a user's bookings.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.api.dependencies import get_reservation_engine
from booking_core.db.session import get_db
from booking_core.schemas.booking import ReserveRequest, ReserveResponse, UserBookingsResponse
from booking_core.services.booking_query_service import list_bookings_by_user
from booking_core.services.reservation_service import ReservationEngine

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/reserve", response_model=ReserveResponse, status_code=status.HTTP_201_CREATED)
async def reserve_booking(
    reserve_data: ReserveRequest,
    engine: ReservationEngine = Depends(get_reservation_engine),
):
    """
    Reserve one seat at an event.

    409 if the user already holds a seat at the event or the event is full,
    404 if the event does not exist, 503 if the store is temporarily
    unavailable (safe to retry).
    """
    record = await engine.reserve(reserve_data.event_id, reserve_data.user_id)
    return ReserveResponse(data=record)


@router.get("/user/{user_id}", response_model=UserBookingsResponse)
async def list_user_bookings(
    user_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for a user, newest first."""
    bookings = await list_bookings_by_user(db, user_id)
    return UserBookingsResponse(data=bookings)
