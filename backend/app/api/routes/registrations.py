"""
Registration endpoints: sign up for an event and look registrations up.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_request_timeout, resolve_registrant_email, within_timeout
from app.db.base import as_utc
from app.db.session import get_db
from app.schemas.registration import (
    RegistrationCreate,
    RegistrationListItem,
    RegistrationResponse,
    RegistrationStatusResponse,
)
from app.services.registration_service import register_for_event, get_registration, list_registrations
from app.core.security import get_optional_user_email

router = APIRouter(prefix="/events", tags=["Registrations"])


@router.post(
    "/{event_id}/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_endpoint(
    event_id: int,
    payload: RegistrationCreate,
    caller_email: Optional[str] = Depends(get_optional_user_email),
    timeout: float = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """
    Register for an event.

    The capacity check and the insert commit together, so concurrent
    registrations can never push an event past its capacity. Already being
    registered and a full event are reported as 400 with distinct codes.
    """
    user_email = resolve_registrant_email(payload.user_email, caller_email)
    registration = await within_timeout(
        register_for_event(db, event_id, user_email, payload.details),
        timeout,
    )
    return registration


@router.get("/{event_id}/registration", response_model=RegistrationStatusResponse)
async def registration_status_endpoint(
    event_id: int,
    user_email: str = Query(..., alias="userEmail"),
    db: AsyncSession = Depends(get_db),
):
    registration = await get_registration(db, event_id, user_email)
    return RegistrationStatusResponse(
        is_registered=registration is not None,
        data=RegistrationResponse.model_validate(registration) if registration else None,
    )


@router.get("/{event_id}/registrationlist", response_model=list[RegistrationListItem])
async def registration_list_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Everyone registered for the event, with their check-in state."""
    rows = await list_registrations(db, event_id)
    items = []
    for registration, check_in in rows:
        item = RegistrationListItem.model_validate(registration)
        if check_in is not None:
            item.checked_in = True
            item.checked_in_at = as_utc(check_in.checked_in_at)
        items.append(item)
    return items
