"""
Event model: a named happening with a fixed seat capacity.

Key design decisions:
- No denormalized `available_seats` column. Occupancy is always the live
  COUNT of bookings, read inside the reserving transaction.
- `total_seats` is immutable once provisioned; the reservation core never
  writes to this table, it only locks the row while counting.
"""

from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from booking_core.db.base import Base, CreatedAtMixin


class Event(Base, CreatedAtMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    total_seats = Column(Integer, nullable=False)

    bookings = relationship("Booking", back_populates="event", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, seats={self.total_seats})>"
