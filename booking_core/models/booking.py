"""
Booking model: one seat held by one user at one event.

Key design decisions:
- Unique constraint on (event_id, user_id) is the final arbiter of
  duplicates, whatever the cache or the in-transaction lookup said
- user_id is an opaque string owned by an external identity system
- Rows are never updated; they disappear only by cascade with their event
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from booking_core.db.base import Base, CreatedAtMixin


class Booking(Base, CreatedAtMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(255), nullable=False, index=True)

    event = relationship("Event", back_populates="bookings")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_user_booking"),
        Index("idx_bookings_event_user", "event_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, event={self.event_id}, user={self.user_id})>"
