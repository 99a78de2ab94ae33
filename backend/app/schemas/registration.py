"""
Pydantic schemas for registration requests and responses.
"""

from datetime import datetime
from typing import Annotated, Any, Optional
from pydantic import BaseModel, BeforeValidator, EmailStr
from pydantic.alias_generators import to_camel


def normalize_email(value: Any) -> Any:
    """Trim and lower-case an email; every comparison and write uses this form."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(normalize_email)]


class RegistrationCreate(BaseModel):
    # Falls back to the caller's token when omitted
    user_email: Optional[NormalizedEmail] = None
    details: Optional[Any] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class RegistrationResponse(BaseModel):
    id: int
    event_id: int
    user_email: str
    instance: int
    status: str
    payment_status: str
    details: Optional[Any] = None
    created_at: datetime

    model_config = {"from_attributes": True, "alias_generator": to_camel, "populate_by_name": True}


class RegistrationStatusResponse(BaseModel):
    is_registered: bool
    data: Optional[RegistrationResponse] = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class RegistrationListItem(RegistrationResponse):
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None
