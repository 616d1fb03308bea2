"""
Event model with ticket inventory tracking.

Key design decisions:
- `price` is the authoritative per-ticket price; bookings never take a price
  from the client
- `available_tickets` is denormalized so a booking can reserve tickets with a
  single conditional UPDATE instead of counting bookings
- `version` column enables optimistic locking for concurrent booking
"""

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String,
)

from eventzen.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=False, index=True)
    capacity = Column(Integer, nullable=False)
    available_tickets = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100), nullable=False)
    image = Column(String(1000), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    live_status = Column(Boolean, nullable=False, default=True)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("available_tickets >= 0", name="check_available_tickets_non_negative"),
        CheckConstraint("capacity > 0", name="check_event_capacity_positive"),
        CheckConstraint("available_tickets <= capacity", name="check_available_lte_capacity"),
        CheckConstraint("price >= 0", name="check_event_price_non_negative"),
        Index("ix_events_date", "date"),
        Index("ix_events_category_date", "category", "date"),
    )

    @property
    def tickets_sold(self) -> int:
        return self.capacity - self.available_tickets

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, available={self.available_tickets}/{self.capacity})>"
