"""
Event model, owned by the admin side of the platform.

Key design decisions:
- `capacity` of 0 means unlimited; the number of seats taken is always derived
  from the registrations table, never stored as a counter
- `version` is a concurrency token: every capacity-bounded registration bumps
  it, so two registrations racing for the last seat cannot both commit
- Index on `start_time` for the upcoming/past listing order
"""

import enum

from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, Index, CheckConstraint

from app.db.base import Base, TimestampMixin


class EventStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    cost = Column(Integer, nullable=False, default=0)
    is_public = Column(Boolean, nullable=False, default=True)
    status = Column(String(50), nullable=False, default=EventStatus.SCHEDULED.value)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="check_event_capacity_non_negative"),
        CheckConstraint("cost >= 0", name="check_event_cost_non_negative"),
        CheckConstraint(
            "status IN ('scheduled', 'ongoing', 'completed', 'cancelled')",
            name="check_event_status",
        ),
        Index("ix_events_start_time", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, capacity={self.capacity})>"
