"""User router - FastAPI endpoints for user sessions and their reservations"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user_claims
from ...database import get_db, get_optional_admin_db
from ...shared.validators import validate_email
from ..reservations.schemas import ReservationResponse
from ..reservations.service import ReservationService
from .schemas import CancelReservationRequest, UserRegister, UserResponse, UserSession
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(
    db: Session = Depends(get_db), admin_db: Optional[Session] = Depends(get_optional_admin_db)
) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db, admin_db)


def get_reservation_service(
    db: Session = Depends(get_db), admin_db: Optional[Session] = Depends(get_optional_admin_db)
) -> ReservationService:
    return ReservationService(db, admin_db)


@router.post("/register", response_model=UserSession)
async def register_user(data: UserRegister, service: UserService = Depends(get_user_service)):
    """Create or refresh a profile and return a 30-day session token"""
    user, token = service.register(data)
    return UserSession(user=UserResponse.model_validate(user), token=token)


@router.get("/me", response_model=UserResponse)
async def get_me(
    claims: dict = Depends(get_current_user_claims),
    service: UserService = Depends(get_user_service),
):
    return service.get_current_user(claims)


@router.get("/me/reservations", response_model=list[ReservationResponse])
async def get_my_reservations(
    claims: dict = Depends(get_current_user_claims),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.get_user_reservations(claims["email"])


@router.post("/me/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_my_reservation(
    reservation_id: str,
    background_tasks: BackgroundTasks,
    data: Optional[CancelReservationRequest] = None,
    claims: dict = Depends(get_current_user_claims),
    service: ReservationService = Depends(get_reservation_service),
):
    reason = data.reason if data else None
    return service.cancel_reservation(reservation_id, claims["email"], reason, background_tasks)


@router.get("/reservation-count")
async def get_reservation_count(
    email: str = Query(...),
    service: ReservationService = Depends(get_reservation_service),
):
    """Active upcoming reservations held by an email address"""
    try:
        email = validate_email(email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"email": email, "count": service.get_active_reservation_count(email)}
