"""Slot domain schemas - Pydantic models for validation"""

import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...utils.dates import parse_datetime

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


class SlotCreate(BaseModel):
    """Single slot, or an hourly range when split_hourly is set"""

    start_time: datetime
    end_time: datetime
    split_hourly: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, v):
        return parse_datetime(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class SlotUpdate(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_available: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, v):
        if v is None:
            return v
        return parse_datetime(v)


class WeeklyScheduleCreate(BaseModel):
    """Repeat the same daily hours on selected weekdays (0 = Sunday)"""

    start_date: date
    end_date: date
    start_time: str
    end_time: str
    days: list[int]
    slot_duration: int = 1

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        if not TIME_PATTERN.match(v.strip()):
            raise ValueError("Time must be in HH:MM format")
        return v.strip()

    @field_validator("days")
    @classmethod
    def validate_days(cls, v):
        if not v:
            raise ValueError("Select at least one day")
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Days must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))

    @field_validator("slot_duration")
    @classmethod
    def validate_duration(cls, v):
        if v < 1 or v > 24:
            raise ValueError("Slot duration must be between 1 and 24 hours")
        return v


class SlotResponse(BaseModel):
    id: str
    start_time: datetime
    end_time: datetime
    is_available: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, v):
        if v is None:
            return v
        return parse_datetime(v)

    class Config:
        from_attributes = True


class BatchCreateResponse(BaseModel):
    created: int
    skipped: int
    slots: list[SlotResponse]


class SlotAvailabilityResponse(BaseModel):
    slot_id: str
    available: bool
    disabled: bool


class CalendarEvent(BaseModel):
    """Event shape consumed by the booking calendar widget"""

    id: str
    title: str
    start: str
    end: str
    backgroundColor: str
    borderColor: str
    textColor: str
    extendedProps: dict
