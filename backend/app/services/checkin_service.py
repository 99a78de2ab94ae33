"""
Check-in verifier used by door scanners.

A registration is checked in at most once. The CheckIn row is keyed by the
registration id, so the check-and-set is a single INSERT: when two scanners
read the same ticket at the same moment, one insert commits and the other
hits the primary key and is reported as AlreadyCheckedIn with the winner's
timestamp.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import as_utc
from app.models.check_in import CheckIn, CheckInMethod
from app.models.registration import Registration
from app.services.errors import (
    AlreadyCheckedIn,
    RegistrationError,
    RegistrationNotFound,
    UnknownTicket,
    WrongEvent,
)
from app.services.event_service import get_event
from app.services.ticket_codec import TicketPayload
from app.core.logging import get_logger
from app.core.metrics import record_check_in

logger = get_logger(__name__)


@dataclass(frozen=True)
class AttendeeInfo:
    user_email: str
    registration_id: int
    checked_in_at: datetime


async def _get_check_in(db: AsyncSession, registration_id: int) -> Optional[CheckIn]:
    result = await db.execute(
        select(CheckIn)
        .where(CheckIn.registration_id == registration_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_registration(db: AsyncSession, registration_id: int) -> Optional[Registration]:
    result = await db.execute(select(Registration).where(Registration.id == registration_id))
    return result.scalar_one_or_none()


async def check_in(db: AsyncSession, event_id: int, scanned_payload: str) -> AttendeeInfo:
    """
    Verify a scanned ticket at the door of `event_id` and consume it.

    Raises EventNotFound, MalformedTicket, UnknownTicket, WrongEvent or
    AlreadyCheckedIn (carrying the original check-in time).
    """
    try:
        await get_event(db, event_id)
        payload = TicketPayload.parse(scanned_payload)

        registration = await _get_registration(db, payload.registration_id)
        if registration is None:
            raise UnknownTicket()

        # The payload must describe the registration it points at
        if (
            registration.event_id != payload.event_id
            or registration.user_email != payload.user_email
            or (registration.instance or 0) != payload.instance
        ):
            raise UnknownTicket()

        if registration.event_id != event_id:
            raise WrongEvent(ticket_event_id=registration.event_id)

        return await _consume(db, registration, CheckInMethod.QR)
    except RegistrationError as e:
        await _reject(db, event_id, e)
        raise


async def check_in_registration(db: AsyncSession, event_id: int, registration_id: int) -> AttendeeInfo:
    """Manual check-in from the registration list, same at-most-once rule."""
    try:
        await get_event(db, event_id)
        registration = await _get_registration(db, registration_id)
        if registration is None or registration.event_id != event_id:
            raise RegistrationNotFound(f"Registration {registration_id} not found for event {event_id}")

        return await _consume(db, registration, CheckInMethod.MANUAL)
    except RegistrationError as e:
        await _reject(db, event_id, e)
        raise


async def _reject(db: AsyncSession, event_id: int, error: RegistrationError) -> None:
    await db.rollback()
    record_check_in(error.code.lower())
    logger.info("check_in_rejected", event_id=event_id, reason=error.code)


async def _consume(db: AsyncSession, registration: Registration, method: CheckInMethod) -> AttendeeInfo:
    registration_id = registration.id
    user_email = registration.user_email

    existing = await _get_check_in(db, registration_id)
    if existing:
        raise AlreadyCheckedIn(registration_id, user_email, as_utc(existing.checked_in_at))

    checked_in_at = datetime.now(timezone.utc)
    db.add(CheckIn(
        registration_id=registration_id,
        checked_in=True,
        checked_in_at=checked_in_at,
        method=method.value,
    ))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await _get_check_in(db, registration_id)
        if existing is None:
            raise
        raise AlreadyCheckedIn(registration_id, user_email, as_utc(existing.checked_in_at))

    logger.info(
        "check_in_recorded",
        registration_id=registration_id,
        event_id=registration.event_id,
        method=method.value,
    )
    record_check_in("checked_in")
    return AttendeeInfo(
        user_email=user_email,
        registration_id=registration_id,
        checked_in_at=checked_in_at,
    )
