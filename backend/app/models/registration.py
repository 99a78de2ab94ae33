"""
Registration model binding one user email to one event.

Key design decisions:
- Unique constraint on (event_id, user_email, instance) is the last line of
  defence against duplicate registrations from concurrent requests
- user_email is stored trimmed and lower-cased; every lookup uses that form
- payment_status is derived once from the event cost and never recomputed
"""

import enum

from sqlalchemy import Column, Integer, String, ForeignKey, JSON, UniqueConstraint, CheckConstraint

from app.db.base import Base, TimestampMixin


class RegistrationStatus(str, enum.Enum):
    CONFIRMED = "confirmed"


class PaymentStatus(str, enum.Enum):
    PAID = "paid"
    PENDING = "pending"


class Registration(Base, TimestampMixin):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    # Reserved for multi-ticket registrations; always 0 today
    instance = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=RegistrationStatus.CONFIRMED.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    details = Column(JSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("event_id", "user_email", "instance", name="uq_registration_event_user_instance"),
        CheckConstraint("instance >= 0", name="check_registration_instance_non_negative"),
        CheckConstraint("status IN ('confirmed')", name="check_registration_status"),
        CheckConstraint("payment_status IN ('paid', 'pending')", name="check_registration_payment_status"),
    )

    def __repr__(self) -> str:
        return f"<Registration(id={self.id}, event={self.event_id}, email={self.user_email})>"
