"""
Pydantic schemas for ticket issuance and listing.
"""

import base64
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.db.base import as_utc
from app.models.ticket import Ticket


class TicketCreate(BaseModel):
    registration_id: int = Field(..., gt=0)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class TicketResponse(BaseModel):
    registration_id: int
    event_id: int
    user_email: str
    instance: int
    payload: str
    image_base64: str
    created_at: datetime

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            registration_id=ticket.registration_id,
            event_id=ticket.event_id,
            user_email=ticket.user_email,
            instance=ticket.instance,
            payload=ticket.payload,
            image_base64=base64.b64encode(ticket.image).decode("ascii"),
            created_at=as_utc(ticket.created_at),
        )


class TicketLookupResponse(BaseModel):
    is_registered: bool
    data: Optional[TicketResponse] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
