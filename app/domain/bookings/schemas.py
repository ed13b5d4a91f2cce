"""Booking domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import parse_slot_date, validate_slot_time

EventType = Literal["estimate", "measurement", "site_visit", "junk_pickup"]


def _parse_date(v: Any) -> Any:
    if isinstance(v, dt.date):
        return v
    return parse_slot_date(v)


class BookingCreate(BaseModel):
    """New appointment. Callers may only create pending or confirmed bookings."""

    lead_id: Optional[int] = None
    slot_date: dt.date
    slot_time: str
    status: Literal["pending", "confirmed"] = "pending"

    @field_validator("slot_date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return _parse_date(v)

    @field_validator("slot_time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return validate_slot_time(v)


class AvailabilityQuery(BaseModel):
    date: dt.date
    time: str

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return _parse_date(v)

    @field_validator("time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return validate_slot_time(v)


class DayAvailabilityRequest(BaseModel):
    date: dt.date
    eventType: EventType = "estimate"
    duration: Optional[int] = Field(default=None, ge=30, le=240)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return _parse_date(v)
