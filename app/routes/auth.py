"""
Admin authentication routes
Single shared admin password stored as a hash in the settings table
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..config import ADMIN_TOKEN_EXPIRE_MINUTES
from ..database import get_admin_db
from ..domain.settings.repository import ADMIN_PASSWORD_HASH_KEY, SettingsRepository
from ..security_utils import create_admin_token, hash_password_bcrypt, verify_admin_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/admin", tags=["Admin Authentication"])

MIN_PASSWORD_LENGTH = 8


class AdminPasswordRequest(BaseModel):
    password: str


class AdminSetupRequest(BaseModel):
    password: str

    @field_validator("password")
    @classmethod
    def check_length(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class AdminTokenResponse(BaseModel):
    success: bool = True
    token: str
    expires_in: int


class AdminStatusResponse(BaseModel):
    setup_required: bool


def get_stored_hash(db: Session) -> Optional[str]:
    return SettingsRepository.get_value(db, ADMIN_PASSWORD_HASH_KEY)


@router.get("/status", response_model=AdminStatusResponse)
async def admin_status(db: Session = Depends(get_admin_db)):
    """Whether an admin password still has to be set"""
    return AdminStatusResponse(setup_required=not get_stored_hash(db))


@router.post("/setup", response_model=AdminTokenResponse, status_code=201)
async def setup_admin_password(data: AdminSetupRequest, db: Session = Depends(get_admin_db)):
    """First-time setup only; afterwards the password cannot be replaced through this route"""
    if get_stored_hash(db):
        logger.warning("⚠️ Admin setup attempted after a password was already set")
        raise HTTPException(status_code=409, detail="Admin password is already set")

    SettingsRepository.set_value(db, ADMIN_PASSWORD_HASH_KEY, hash_password_bcrypt(data.password))
    logger.info("🔐 Admin password configured")
    return AdminTokenResponse(token=create_admin_token(), expires_in=ADMIN_TOKEN_EXPIRE_MINUTES * 60)


@router.post("/login", response_model=AdminTokenResponse)
async def login_admin(data: AdminPasswordRequest, db: Session = Depends(get_admin_db)):
    stored_hash = get_stored_hash(db)
    if not stored_hash:
        raise HTTPException(status_code=409, detail="Admin password has not been set up yet")

    if not verify_admin_password(data.password, stored_hash):
        logger.warning("🚫 Failed admin login attempt")
        raise HTTPException(status_code=401, detail="Invalid password")

    logger.info("✅ Admin logged in")
    return AdminTokenResponse(token=create_admin_token(), expires_in=ADMIN_TOKEN_EXPIRE_MINUTES * 60)


@router.get("/verify")
async def verify_admin_session(claims: dict = Depends(require_admin)):
    return {"valid": True, "expires_at": claims.get("exp")}
