"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from app.models.event import EventStatus


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    start_time: datetime
    end_time: datetime
    capacity: int = Field(default=0, ge=0, le=1000000)
    cost: int = Field(default=0, ge=0)
    is_public: bool = True
    status: EventStatus = EventStatus.SCHEDULED

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @model_validator(mode="after")
    def check_time_window(self) -> "EventCreate":
        if self.end_time < self.start_time:
            raise ValueError("endTime must not be before startTime")
        return self


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    location: Optional[str]
    start_time: datetime
    end_time: datetime
    capacity: int
    cost: int
    is_public: bool
    status: str
    created_at: datetime

    model_config = {"from_attributes": True, "alias_generator": to_camel, "populate_by_name": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
