"""
Registration service with concurrency-safe capacity enforcement.

CONCURRENCY STRATEGY: Optimistic Locking with Retry
====================================================

Problem:
  Two users register for the last seat simultaneously.
  Both count registrations, both see count < capacity, both insert.
  Result: the event is over capacity.

Solution:
  The seat count is always derived from the registrations table. What makes
  the check-and-insert atomic is the `version` column on the event row:

  1. Read the event (capacity, version)
  2. Count confirmed registrations; reject if count >= capacity
  3. UPDATE events SET version = version + 1
     WHERE id = :event_id AND version = :read_version
  4. If rows_affected == 0, another registration committed since step 1 ->
     roll back and retry from step 1 with fresh data
  5. Insert the registration and commit in the same transaction as step 3

  The UPDATE in step 3 takes the event row lock until commit, so a concurrent
  registration for the same event either waits and then fails its version
  check, or reads the bumped version and the new count. Registrations for
  other events never touch this row.

  Events with capacity 0 (unlimited) skip steps 2-4 entirely.

  There is no fixed retry limit. A lost round in step 4 means some other
  registration for this event committed, so a registrant loses at most
  `capacity` rounds before it either wins a seat or sees the event full.
  The HTTP layer bounds the total wait with the request deadline.

  The unique constraint on (event_id, user_email, instance) is the final
  safety net for duplicate registrations by the same user.
"""

import time
from typing import Any, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.check_in import CheckIn
from app.models.event import Event
from app.models.registration import Registration, RegistrationStatus, PaymentStatus
from app.schemas.registration import normalize_email
from app.services.errors import (
    AlreadyRegistered,
    CapacityExceeded,
    EventNotFound,
    InvalidRequest,
)
from app.services.event_service import get_event
from app.core.logging import get_logger
from app.core.metrics import record_registration, record_registration_retry, registration_latency

logger = get_logger(__name__)


async def _find_registration(db: AsyncSession, event_id: int, user_email: str) -> Optional[Registration]:
    result = await db.execute(
        select(Registration).where(
            Registration.event_id == event_id,
            Registration.user_email == user_email,
            Registration.instance == 0,
        )
    )
    return result.scalar_one_or_none()


async def count_confirmed(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.count(Registration.id)).where(
            Registration.event_id == event_id,
            Registration.status == RegistrationStatus.CONFIRMED.value,
        )
    )
    return result.scalar_one()


async def register_for_event(
    db: AsyncSession,
    event_id: int,
    user_email: str,
    details: Any = None,
) -> Registration:
    """
    Register a user for an event.

    Raises EventNotFound, AlreadyRegistered or CapacityExceeded for the
    expected outcomes. Version conflicts are retried until one of those
    outcomes or success.
    """
    email = normalize_email(user_email or "")
    if not email:
        raise InvalidRequest("userEmail is required")

    start = time.perf_counter()
    try:
        registration = await _register(db, event_id, email, details)
    except (AlreadyRegistered, CapacityExceeded, EventNotFound) as e:
        record_registration(e.code.lower())
        logger.info("registration_rejected", event_id=event_id, user_email=email, reason=e.code)
        raise
    finally:
        registration_latency.observe(time.perf_counter() - start)

    record_registration("created")
    return registration


async def _register(db: AsyncSession, event_id: int, email: str, details: Any) -> Registration:
    attempt = 0
    while True:
        attempt += 1

        # Step 1: Read current event state
        result = await db.execute(select(Event).where(Event.id == event_id))
        event = result.scalar_one_or_none()
        if not event:
            await db.rollback()
            raise EventNotFound(f"Event {event_id} not found")

        if await _find_registration(db, event_id, email):
            await db.rollback()
            raise AlreadyRegistered()

        capacity = event.capacity or 0
        if capacity > 0:
            # Step 2: Derived seat count
            taken = await count_confirmed(db, event_id)
            if taken >= capacity:
                await db.rollback()
                raise CapacityExceeded()

            # Step 3: Optimistic lock - claim the event row only if unchanged
            update_result = await db.execute(
                update(Event)
                .where(Event.id == event_id, Event.version == event.version)
                .values(version=Event.version + 1)
                .execution_options(synchronize_session=False)
            )
            if update_result.rowcount == 0:
                logger.info(
                    "registration_retry",
                    event_id=event_id,
                    attempt=attempt,
                    reason="version_conflict",
                )
                record_registration_retry()
                await db.rollback()
                continue

        # Step 4: Create the registration in the same transaction
        cost = event.cost or 0
        registration = Registration(
            event_id=event_id,
            user_email=email,
            instance=0,
            status=RegistrationStatus.CONFIRMED.value,
            payment_status=(PaymentStatus.PENDING if cost > 0 else PaymentStatus.PAID).value,
            details=details,
        )
        db.add(registration)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race against the same user's other request
            await db.rollback()
            raise AlreadyRegistered()

        logger.info(
            "registration_created",
            registration_id=registration.id,
            event_id=event_id,
            user_email=email,
            payment_status=registration.payment_status,
            attempt=attempt,
        )
        return registration


async def get_registration(db: AsyncSession, event_id: int, user_email: str) -> Optional[Registration]:
    """Look up a user's registration for an event. Lock-free read."""
    email = normalize_email(user_email or "")
    if not email:
        raise InvalidRequest("userEmail query parameter is required")
    return await _find_registration(db, event_id, email)


async def list_registrations(db: AsyncSession, event_id: int) -> list[tuple[Registration, Optional[CheckIn]]]:
    """All registrations for an event with their check-in record, oldest first."""
    await get_event(db, event_id)
    result = await db.execute(
        select(Registration, CheckIn)
        .outerjoin(CheckIn, CheckIn.registration_id == Registration.id)
        .where(Registration.event_id == event_id)
        .order_by(Registration.created_at.asc(), Registration.id.asc())
    )
    return [(registration, check_in) for registration, check_in in result.all()]
