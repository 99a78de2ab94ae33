"""
Expected outcomes of registration, ticketing and check-in.

None of these are faults: each one is something the registrant or the door
staff needs to see and react to. Services raise them, and a single exception
handler in app.main renders them as structured JSON using `code`,
`status_code` and `extra()`.
"""

from datetime import datetime
from typing import Any, Optional

from fastapi import status


class RegistrationError(Exception):
    code = "REGISTRATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def extra(self) -> dict[str, Any]:
        return {}


class InvalidRequest(RegistrationError):
    code = "INVALID_REQUEST"
    message = "Invalid request"


class NotFound(RegistrationError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class EventNotFound(NotFound):
    code = "EVENT_NOT_FOUND"
    message = "Event not found"


class RegistrationNotFound(NotFound):
    code = "REGISTRATION_NOT_FOUND"
    message = "Registration not found"


class AlreadyRegistered(RegistrationError):
    code = "ALREADY_REGISTERED"
    message = "User is already registered for this event"


class CapacityExceeded(RegistrationError):
    code = "CAPACITY_EXCEEDED"
    message = "Event is at full capacity"


class RegistrationNotConfirmed(RegistrationError):
    code = "REGISTRATION_NOT_CONFIRMED"
    message = "Tickets are only issued for confirmed registrations"


class MalformedTicket(RegistrationError):
    code = "MALFORMED_TICKET"
    message = "Scanned code is not a valid ticket"


class UnknownTicket(RegistrationError):
    code = "UNKNOWN_TICKET"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Ticket does not match any registration"


class WrongEvent(RegistrationError):
    code = "WRONG_EVENT"
    status_code = status.HTTP_409_CONFLICT
    message = "Ticket is for a different event"

    def __init__(self, ticket_event_id: int, message: Optional[str] = None):
        super().__init__(message)
        self.ticket_event_id = ticket_event_id

    def extra(self) -> dict[str, Any]:
        return {"ticketEventId": self.ticket_event_id}


class AlreadyCheckedIn(RegistrationError):
    code = "ALREADY_CHECKED_IN"
    status_code = status.HTTP_409_CONFLICT
    message = "Attendee is already checked in"

    def __init__(self, registration_id: int, user_email: str, checked_in_at: datetime):
        super().__init__(f"Attendee already checked in at {checked_in_at.isoformat()}")
        self.registration_id = registration_id
        self.user_email = user_email
        self.checked_in_at = checked_in_at

    def extra(self) -> dict[str, Any]:
        return {
            "registrationId": self.registration_id,
            "userEmail": self.user_email,
            "checkedInAt": self.checked_in_at.isoformat(),
        }


class RequestTimeout(RegistrationError):
    code = "REQUEST_TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    message = "Request timed out"


class TicketRenderError(RegistrationError):
    code = "TICKET_RENDER_FAILED"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Failed to generate ticket"
