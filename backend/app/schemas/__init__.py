from app.schemas.event import EventCreate, EventResponse, EventListResponse
from app.schemas.registration import (
    RegistrationCreate, RegistrationResponse, RegistrationStatusResponse, RegistrationListItem,
)
from app.schemas.ticket import TicketCreate, TicketResponse, TicketLookupResponse
from app.schemas.check_in import QRCheckInRequest, ManualCheckInRequest, CheckInResponse

__all__ = [
    "EventCreate", "EventResponse", "EventListResponse",
    "RegistrationCreate", "RegistrationResponse", "RegistrationStatusResponse", "RegistrationListItem",
    "TicketCreate", "TicketResponse", "TicketLookupResponse",
    "QRCheckInRequest", "ManualCheckInRequest", "CheckInResponse",
]
