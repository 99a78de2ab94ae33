"""
Ticket model: the rendered QR code for a registration.

The identity fields are stored next to the image so scans and listings never
have to decode the PNG. registration_id doubles as the primary key, which
makes a second ticket for the same registration impossible.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, LargeBinary, Index

from app.db.base import Base, TimestampMixin


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    registration_id = Column(
        Integer, ForeignKey("registrations.id", ondelete="CASCADE"), primary_key=True
    )
    event_id = Column(Integer, nullable=False)
    user_email = Column(String(255), nullable=False)
    instance = Column(Integer, nullable=False, default=0)
    # Exact text inside the QR code
    payload = Column(String(512), nullable=False, unique=True)
    image = Column(LargeBinary, nullable=False)

    __table_args__ = (
        Index("ix_tickets_event_user", "event_id", "user_email"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(registration={self.registration_id}, event={self.event_id})>"
