"""
Payment model: the single settled charge for a booking.

booking_id and stripe_payment_id are both unique, so a replayed or racing
confirmation cannot record a second charge.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint, CheckConstraint

from eventzen.db.base import Base, TimestampMixin


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    stripe_payment_id = Column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_payment_booking"),
        UniqueConstraint("stripe_payment_id", name="uq_payment_stripe_reference"),
        CheckConstraint("amount >= 0", name="check_payment_amount_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'refunded')",
            name="check_payment_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, booking={self.booking_id}, amount={self.amount}, status={self.status})>"
