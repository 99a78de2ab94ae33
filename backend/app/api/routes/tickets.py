"""
Ticket endpoints: issue QR code tickets and fetch them back.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_request_timeout, within_timeout
from app.db.session import get_db
from app.schemas.ticket import TicketCreate, TicketLookupResponse, TicketResponse
from app.services.ticket_service import issue_ticket, list_tickets, find_ticket_by_payload

router = APIRouter(prefix="/events", tags=["Tickets"])


@router.post("/{event_id}/generateQR", response_model=TicketResponse)
async def generate_ticket_endpoint(
    event_id: int,
    payload: TicketCreate,
    timeout: float = Depends(get_request_timeout),
    db: AsyncSession = Depends(get_db),
):
    """
    Issue the QR code ticket for a registration.
    Calling it again for the same registration returns the same ticket.
    """
    ticket = await within_timeout(issue_ticket(db, event_id, payload.registration_id), timeout)
    return TicketResponse.from_ticket(ticket)


@router.get("/{event_id}/event-qrcodes", response_model=list[TicketResponse])
async def list_tickets_endpoint(
    event_id: int,
    user_email: str = Query(..., alias="userEmail"),
    db: AsyncSession = Depends(get_db),
):
    tickets = await list_tickets(db, event_id, user_email)
    return [TicketResponse.from_ticket(t) for t in tickets]


@router.get("/{event_id}/qr-registration", response_model=TicketLookupResponse)
async def ticket_lookup_endpoint(
    event_id: int,
    registration_hash: str = Query(..., alias="registrationHash"),
    db: AsyncSession = Depends(get_db),
):
    """Is this scanned code an issued ticket for the event? Does not check anyone in."""
    ticket = await find_ticket_by_payload(db, event_id, registration_hash)
    return TicketLookupResponse(
        is_registered=ticket is not None,
        data=TicketResponse.from_ticket(ticket) if ticket else None,
    )
