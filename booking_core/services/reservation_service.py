"""
Reservation engine: capacity-checked, duplicate-free single-seat bookings.

CONCURRENCY STRATEGY: Event Row Lock + Unique Constraint
========================================================

Problem:
  Two requests read booked_seats = total_seats - 1 for the same event,
  both pass the capacity check, both insert. Result: overbooking by one.

Solution:
  1. Lock the event row (SELECT ... FOR UPDATE) before counting. Every
     reservation for the same event now queues on that lock, so the count
     each transaction reads already includes every committed booking.
  2. Count bookings with one aggregate query joined to the event.
  3. Look up an existing booking for (event_id, user_id); reject duplicates.
  4. Insert. The UNIQUE(event_id, user_id) constraint is the final safety
     net: a violation here is reported as a duplicate, not a server error.

  Reservations for different events never contend. On SQLite the whole
  database is locked by BEGIN IMMEDIATE instead, which gives the same
  guarantee with less throughput.

Dedup cache:
  Checked before the transaction opens, written after it closes, so no
  transaction ever waits on Redis. A hit rejects; a miss proves nothing.
"""

import asyncio
import time
from typing import Optional

from sqlalchemy import Select, select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_core.core.config import Settings, get_settings
from booking_core.core.exceptions import (
    CapacityExceededError,
    DuplicateBookingError,
    EventNotFoundError,
    InternalReservationError,
    InvalidInputError,
    ReservationError,
    TransientStoreError,
)
from booking_core.core.logging import get_logger
from booking_core.core.metrics import record_reservation, unique_violation_races
from booking_core.db.errors import is_transient, is_unique_violation
from booking_core.models.booking import Booking
from booking_core.models.event import Event
from booking_core.schemas.booking import USER_ID_MAX_LENGTH, BookingRecord
from booking_core.services.interfaces.dedup_cache import DedupCache

logger = get_logger(__name__)


def validate_reservation_input(event_id: int, user_id: str) -> None:
    """Reject malformed arguments before any cache or store I/O.

    Booleans are refused as event ids even though they are ints.
    """
    if isinstance(event_id, bool) or not isinstance(event_id, int) or event_id <= 0:
        raise InvalidInputError("Invalid event_id")
    if not isinstance(user_id, str) or not user_id.strip() or len(user_id) > USER_ID_MAX_LENGTH:
        raise InvalidInputError("Invalid user_id")


def event_lock_statement(event_id: int) -> Select:
    """Row lock on the event, taken before its bookings are counted."""
    return select(Event.id).where(Event.id == event_id).with_for_update()


class ReservationEngine:
    """
    Orchestrates one reservation: cache check, locked count, insert, cache write.

    The engine owns no connections. It borrows a session from the injected
    factory for each call and returns it before ``reserve`` returns.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: DedupCache,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.cache = cache
        self.settings = settings or get_settings()

    async def reserve(self, event_id: int, user_id: str) -> BookingRecord:
        """
        Reserve one seat at ``event_id`` for ``user_id``.

        Raises:
            InvalidInputError: malformed arguments
            EventNotFoundError: no such event
            CapacityExceededError: every seat is taken
            DuplicateBookingError: the user already holds a seat at this event
            TransientStoreError: timeout, lost connection or lock conflict; retry
            InternalReservationError: anything unclassified
        """
        started = time.perf_counter()
        try:
            validate_reservation_input(event_id, user_id)
            record = await self._reserve(event_id, user_id)
        except ReservationError as exc:
            record_reservation(exc.kind, time.perf_counter() - started)
            logger.info(
                "reservation_rejected",
                event_id=event_id,
                user_id=user_id,
                kind=exc.kind,
                source=getattr(exc, "source", None),
            )
            raise

        record_reservation("success", time.perf_counter() - started)
        return record

    async def _reserve(self, event_id: int, user_id: str) -> BookingRecord:
        cached = await self.cache.is_booked(event_id, user_id)
        if not cached.ok:
            logger.warning(
                "dedup_cache_read_failed",
                event_id=event_id,
                user_id=user_id,
                error=str(cached.error),
            )
        elif cached.hit:
            raise DuplicateBookingError(event_id, user_id, source="cache")

        try:
            record = await asyncio.wait_for(
                self._reserve_in_transaction(event_id, user_id),
                timeout=self.settings.RESERVATION_TIMEOUT,
            )
        except DuplicateBookingError:
            self.cache.mark_booked_in_background(event_id, user_id)
            raise
        except ReservationError:
            raise
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                logger.exception("reservation_integrity_error", event_id=event_id, user_id=user_id)
                raise InternalReservationError() from exc
            # Another transaction inserted the same pair between our lookup and insert
            unique_violation_races.inc()
            logger.info("reservation_unique_violation", event_id=event_id, user_id=user_id)
            self.cache.mark_booked_in_background(event_id, user_id)
            raise DuplicateBookingError(event_id, user_id, source="constraint") from exc
        except Exception as exc:
            if is_transient(exc):
                logger.warning(
                    "reservation_transient_failure",
                    event_id=event_id,
                    user_id=user_id,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise TransientStoreError() from exc
            logger.exception("reservation_failed", event_id=event_id, user_id=user_id)
            raise InternalReservationError() from exc

        written = await self.cache.mark_booked(event_id, user_id)
        if not written.ok:
            logger.warning(
                "dedup_cache_write_failed",
                event_id=event_id,
                user_id=user_id,
                error=str(written.error),
            )
        return record

    async def _reserve_in_transaction(self, event_id: int, user_id: str) -> BookingRecord:
        # Leaving session.begin() with an exception rolls the transaction back
        async with self.session_factory() as session:
            async with session.begin():
                await self._lock_event(session, event_id)

                total_seats, booked_seats = await self._count_seats(session, event_id)

                # A holder of one of the seats hears "duplicate", even on a full event
                if await self._find_existing_booking(session, event_id, user_id) is not None:
                    raise DuplicateBookingError(event_id, user_id, source="store")

                if booked_seats >= total_seats:
                    logger.warning(
                        "reservation_no_seats",
                        event_id=event_id,
                        total_seats=total_seats,
                        booked_seats=booked_seats,
                    )
                    raise CapacityExceededError(event_id, total_seats)

                booking = Booking(event_id=event_id, user_id=user_id)
                session.add(booking)
                await session.flush()
                await session.refresh(booking)

                record = BookingRecord(
                    booking_id=booking.id,
                    event_id=booking.event_id,
                    user_id=booking.user_id,
                    created_at=booking.created_at,
                )

        logger.info(
            "booking_created",
            booking_id=record.booking_id,
            event_id=event_id,
            user_id=user_id,
            seats_taken=booked_seats + 1,
            total_seats=total_seats,
        )
        return record

    async def _lock_event(self, session: AsyncSession, event_id: int) -> None:
        result = await session.execute(event_lock_statement(event_id))
        if result.scalar_one_or_none() is None:
            raise EventNotFoundError(event_id)

    async def _count_seats(self, session: AsyncSession, event_id: int) -> tuple[int, int]:
        result = await session.execute(
            select(Event.total_seats, func.count(Booking.id).label("booked_seats"))
            .outerjoin(Booking, Booking.event_id == Event.id)
            .where(Event.id == event_id)
            .group_by(Event.id, Event.total_seats)
        )
        # The event row is already locked, so the join always yields one row
        row = result.one()
        return row.total_seats, row.booked_seats

    async def _find_existing_booking(self, session: AsyncSession, event_id: int, user_id: str):
        result = await session.execute(
            select(Booking.id).where(
                Booking.event_id == event_id,
                Booking.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()
