"""
Pydantic schemas for door check-in.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class QRCheckInRequest(BaseModel):
    # Raw text decoded from the scanned QR code
    registration_hash: str

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ManualCheckInRequest(BaseModel):
    registration_id: int = Field(..., gt=0)

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class CheckInResponse(BaseModel):
    user_email: str
    registration_id: int
    checked_in_at: datetime

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
