from app.models.event import Event, EventStatus
from app.models.registration import Registration, RegistrationStatus, PaymentStatus
from app.models.ticket import Ticket
from app.models.check_in import CheckIn, CheckInMethod

__all__ = [
    "Event", "EventStatus",
    "Registration", "RegistrationStatus", "PaymentStatus",
    "Ticket",
    "CheckIn", "CheckInMethod",
]
