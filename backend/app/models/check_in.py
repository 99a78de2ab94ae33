"""
Check-in record, created the first time a registration is admitted at the door.

The primary key on registration_id turns "check and set" into a single insert:
of two simultaneous scans, exactly one insert commits.
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, ForeignKey

from app.db.base import Base, utcnow


class CheckInMethod(str, enum.Enum):
    QR = "qr"
    MANUAL = "manual"


class CheckIn(Base):
    __tablename__ = "check_ins"

    registration_id = Column(
        Integer, ForeignKey("registrations.id", ondelete="CASCADE"), primary_key=True
    )
    checked_in = Column(Boolean, nullable=False, default=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    method = Column(String(20), nullable=False, default=CheckInMethod.QR.value)

    def __repr__(self) -> str:
        return f"<CheckIn(registration={self.registration_id}, at={self.checked_in_at})>"
