"""
Venue model. Venues are booked by the hour; `price` is the hourly rate.
"""

from sqlalchemy import Column, Integer, String, Numeric, JSON, CheckConstraint

from eventzen.db.base import Base, TimestampMixin


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    capacity = Column(Integer, nullable=False)
    amenities = Column(JSON, nullable=False, default=list)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(1000), nullable=True)
    description = Column(String(2000), nullable=True)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_venue_capacity_positive"),
        CheckConstraint("price >= 0", name="check_venue_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name}, capacity={self.capacity})>"
