"""Reservation router - FastAPI endpoints for booking and reservation management"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...auth import get_current_user_claims, require_admin
from ...database import get_db, get_optional_admin_db
from ...rate_limiter import get_booking_rate_limiter
from ...shared.validators import validate_email
from .schemas import BookingConfirmation, ReservationCreate, ReservationResponse, ReservationStatusUpdate
from .service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])
admin_router = APIRouter(prefix="/admin", tags=["Admin Reservations"], dependencies=[Depends(require_admin)])


def get_reservation_service(
    db: Session = Depends(get_db), admin_db: Optional[Session] = Depends(get_optional_admin_db)
) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db, admin_db)


# ============================================================================
# BOOKING
# ============================================================================


@router.post("", response_model=BookingConfirmation, status_code=201)
async def create_reservation(
    data: ReservationCreate,
    background_tasks: BackgroundTasks,
    service: ReservationService = Depends(get_reservation_service),
):
    """Book a slot; the confirmation email is sent after the response"""
    return service.create_reservation(data, background_tasks)


@router.get("/{reservation_id}/calendar.ics")
async def download_reservation_calendar(
    reservation_id: str,
    claims: dict = Depends(get_current_user_claims),
    service: ReservationService = Depends(get_reservation_service),
):
    filename, body = service.get_reservation_calendar(reservation_id, claims["email"])
    return Response(
        content=body,
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("/reservations", response_model=list[ReservationResponse])
async def get_reservations(service: ReservationService = Depends(get_reservation_service)):
    """All reservations with their slot, newest first"""
    return service.get_reservations()


@admin_router.patch("/reservations/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status(
    reservation_id: str,
    data: ReservationStatusUpdate,
    background_tasks: BackgroundTasks,
    service: ReservationService = Depends(get_reservation_service),
):
    return service.update_reservation_status(reservation_id, data, background_tasks)


@admin_router.delete("/reservations/{reservation_id}")
async def delete_reservation(reservation_id: str, service: ReservationService = Depends(get_reservation_service)):
    return service.delete_reservation(reservation_id)


@admin_router.delete("/rate-limits/{email}")
async def clear_rate_limit(email: str):
    """Let a locked-out user book again before the window expires"""
    try:
        email = validate_email(email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    get_booking_rate_limiter().clear_rate_limit(email)
    return {"message": f"Booking attempts cleared for {email}"}
