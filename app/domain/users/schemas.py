"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_group_id, validate_name, validate_notes


class UserRegister(BaseModel):
    email: str
    name: str
    group_id: Optional[str] = None

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


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    group_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSession(BaseModel):
    """Profile plus the bearer token the client keeps for later calls"""

    user: UserResponse
    token: str


class CancelReservationRequest(BaseModel):
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        return validate_notes(v)
