"""
Booking model: one user's reservation of either an event or a venue.

Key design decisions:
- Exactly one of event_id / venue_id is set, enforced by a CHECK constraint
- total_amount is computed server-side from the target's stored price
- Status field allows cancellation without deleting records
- Allowed status transitions are listed in BOOKING_TRANSITIONS; services
  consult `can_transition` before changing status
"""

from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String,
)

from eventzen.db.base import Base, TimestampMixin

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"

BOOKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_COMPLETED)

PAYMENT_PENDING = "pending"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"
PAYMENT_REFUNDED = "refunded"

PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_COMPLETED, PAYMENT_FAILED, PAYMENT_REFUNDED)

BOOKING_TRANSITIONS = {
    STATUS_PENDING: frozenset({STATUS_CONFIRMED, STATUS_CANCELLED}),
    STATUS_CONFIRMED: frozenset({STATUS_COMPLETED, STATUS_CANCELLED}),
    STATUS_CANCELLED: frozenset(),
    STATUS_COMPLETED: frozenset(),
}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in BOOKING_TRANSITIONS.get(from_status, frozenset())


def _in_list(column: str, values: tuple) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=True, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=True, index=True)

    # Event bookings
    ticket_count = Column(Integer, nullable=True)

    # Venue bookings
    booking_date = Column(DateTime(timezone=True), nullable=True)
    booking_duration = Column(Integer, nullable=True)  # hours
    attendee_count = Column(Integer, nullable=True)

    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_PENDING)
    payment_status = Column(String(20), nullable=False, default=PAYMENT_PENDING)

    __table_args__ = (
        CheckConstraint(
            "(event_id IS NULL) <> (venue_id IS NULL)",
            name="check_booking_single_target",
        ),
        CheckConstraint("ticket_count IS NULL OR ticket_count > 0", name="check_booking_ticket_count_positive"),
        CheckConstraint("total_amount >= 0", name="check_booking_total_non_negative"),
        CheckConstraint(_in_list("status", BOOKING_STATUSES), name="check_booking_status"),
        CheckConstraint(_in_list("payment_status", PAYMENT_STATUSES), name="check_booking_payment_status"),
    )

    @property
    def is_venue_booking(self) -> bool:
        return self.venue_id is not None

    def __repr__(self) -> str:
        target = f"venue={self.venue_id}" if self.is_venue_booking else f"event={self.event_id}"
        return f"<Booking(id={self.id}, user={self.user_id}, {target}, status={self.status})>"
