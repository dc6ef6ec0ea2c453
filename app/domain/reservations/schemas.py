"""Reservation domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_group_id, validate_name, validate_notes
from ...utils.dates import parse_datetime
from ..slots.schemas import SlotResponse


class ReservationCreate(BaseModel):
    """Booking form plus the answer to the human verification challenge"""

    slot_id: str
    name: str
    email: str
    group_id: Optional[str] = None
    notes: Optional[str] = None
    challenge_token: Optional[str] = None
    challenge_answer: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_name(v)

    @field_validator("group_id")
    @classmethod
    def check_group_id(cls, v):
        return validate_group_id(v)

    @field_validator("notes")
    @classmethod
    def check_notes(cls, v):
        return validate_notes(v)


class ReservationStatusUpdate(BaseModel):
    status: Literal["confirmed", "cancelled", "pending"]
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        return validate_notes(v)


class ReservationResponse(BaseModel):
    id: str
    slot_id: Optional[str] = None
    user_name: str
    user_email: str
    group_id: Optional[str] = None
    notes: Optional[str] = None
    reference: str
    status: str
    status_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    slot: Optional[SlotResponse] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v):
        if v is None:
            return v
        return parse_datetime(v)

    class Config:
        from_attributes = True


class CalendarLinks(BaseModel):
    google: str
    outlook: str


class BookingConfirmation(BaseModel):
    """Everything the confirmation screen needs"""

    reservation: ReservationResponse
    reference: str
    token: str
    calendar_links: CalendarLinks
    warnings: list[str] = []
