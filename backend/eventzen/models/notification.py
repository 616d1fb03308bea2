"""
Notification model: a persisted, user-targeted message.

entity_type / entity_id optionally point at the record that triggered it
("booking", "payment", "event").
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String

from eventzen.db.base import Base, TimestampMixin


class Notification(Base, TimestampMixin):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(String(1000), nullable=False)
    type = Column(String(50), nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user={self.user_id}, type={self.type}, read={self.read})>"
