"""
Ticket issuer: turns a confirmed registration into a QR code ticket.

Issuing is idempotent. A registration has at most one ticket (the ticket's
primary key is the registration id), and asking again returns the ticket
that already exists instead of rendering a second one.
"""

import asyncio
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.registration import Registration, RegistrationStatus
from app.models.ticket import Ticket
from app.schemas.registration import normalize_email
from app.services.errors import InvalidRequest, RegistrationNotConfirmed, RegistrationNotFound
from app.services.ticket_codec import TicketPayload, render_ticket_image
from app.core.logging import get_logger
from app.core.metrics import record_ticket_issued

logger = get_logger(__name__)


async def _get_ticket(db: AsyncSession, registration_id: int) -> Optional[Ticket]:
    result = await db.execute(select(Ticket).where(Ticket.registration_id == registration_id))
    return result.scalar_one_or_none()


async def issue_ticket(db: AsyncSession, event_id: int, registration_id: int) -> Ticket:
    """
    Issue (or return the already issued) ticket for a registration of this event.
    Raises RegistrationNotFound or RegistrationNotConfirmed.
    """
    result = await db.execute(select(Registration).where(Registration.id == registration_id))
    registration = result.scalar_one_or_none()
    if registration is None or registration.event_id != event_id:
        raise RegistrationNotFound(f"Registration {registration_id} not found for event {event_id}")
    if registration.status != RegistrationStatus.CONFIRMED.value:
        raise RegistrationNotConfirmed()

    existing = await _get_ticket(db, registration_id)
    if existing:
        record_ticket_issued(created=False)
        return existing

    payload = TicketPayload.for_registration(registration).encode()
    # PNG encoding is CPU work; keep it off the event loop
    image = await asyncio.to_thread(render_ticket_image, payload)

    ticket = Ticket(
        registration_id=registration.id,
        event_id=registration.event_id,
        user_email=registration.user_email,
        instance=registration.instance or 0,
        payload=payload,
        image=image,
    )
    db.add(ticket)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent request issued it first; hand out that one
        await db.rollback()
        existing = await _get_ticket(db, registration_id)
        if existing is None:
            raise
        record_ticket_issued(created=False)
        return existing

    logger.info(
        "ticket_issued",
        registration_id=ticket.registration_id,
        event_id=ticket.event_id,
        image_bytes=len(image),
    )
    record_ticket_issued(created=True)
    return ticket


async def list_tickets(db: AsyncSession, event_id: int, user_email: str) -> list[Ticket]:
    email = normalize_email(user_email or "")
    if not email:
        raise InvalidRequest("userEmail query parameter is required")

    result = await db.execute(
        select(Ticket)
        .where(Ticket.event_id == event_id, Ticket.user_email == email)
        .order_by(Ticket.instance.asc(), Ticket.registration_id.asc())
    )
    return list(result.scalars().all())


async def find_ticket_by_payload(db: AsyncSession, event_id: int, payload: str) -> Optional[Ticket]:
    """Look up an issued ticket by its scanned text without checking anyone in."""
    text = (payload or "").strip()
    if not text:
        raise InvalidRequest("registrationHash query parameter is required")

    result = await db.execute(
        select(Ticket).where(Ticket.payload == text, Ticket.event_id == event_id)
    )
    return result.scalar_one_or_none()
