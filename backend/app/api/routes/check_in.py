"""
Door check-in endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_request_timeout, within_timeout
from app.db.session import get_db
from app.schemas.check_in import CheckInResponse, ManualCheckInRequest, QRCheckInRequest
from app.services.checkin_service import AttendeeInfo, check_in, check_in_registration

router = APIRouter(prefix="/events", tags=["Check-in"])


def _to_response(attendee: AttendeeInfo) -> CheckInResponse:
    return CheckInResponse(
        user_email=attendee.user_email,
        registration_id=attendee.registration_id,
        checked_in_at=attendee.checked_in_at,
    )


@router.patch("/{event_id}/qr-check-in", response_model=CheckInResponse)
async def qr_check_in_endpoint(
    event_id: int,
    payload: QRCheckInRequest,
    timeout: float = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """
    Check an attendee in from a scanned ticket.

    A second scan of the same ticket answers 409 ALREADY_CHECKED_IN with the
    original checkedInAt, so door staff see when the ticket was used.
    """
    attendee = await within_timeout(check_in(db, event_id, payload.registration_hash), timeout)
    return _to_response(attendee)


@router.patch("/{event_id}/check-in", response_model=CheckInResponse)
async def manual_check_in_endpoint(
    event_id: int,
    payload: ManualCheckInRequest,
    timeout: float = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """Check an attendee in by registration id, for when the ticket cannot be scanned."""
    attendee = await within_timeout(
        check_in_registration(db, event_id, payload.registration_id),
        timeout,
    )
    return _to_response(attendee)
