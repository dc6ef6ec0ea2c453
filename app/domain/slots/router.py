"""Slot router - FastAPI endpoints for the public calendar and admin inventory"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_admin_db, get_db
from .schemas import (
    BatchCreateResponse,
    CalendarEvent,
    SlotAvailabilityResponse,
    SlotCreate,
    SlotResponse,
    SlotUpdate,
    WeeklyScheduleCreate,
)
from .service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slots", tags=["Slots"])
admin_router = APIRouter(prefix="/admin/slots", tags=["Admin Slots"], dependencies=[Depends(require_admin)])


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    """Dependency injection for SlotService (public credential)"""
    return SlotService(db)


def get_admin_slot_service(db: Session = Depends(get_admin_db)) -> SlotService:
    """Dependency injection for SlotService (privileged credential)"""
    return SlotService(db)


def batch_response(created, skipped: int) -> BatchCreateResponse:
    return BatchCreateResponse(
        created=len(created),
        skipped=skipped,
        slots=[SlotResponse.model_validate(slot) for slot in created],
    )


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("", response_model=list[SlotResponse])
async def get_available_slots(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    service: SlotService = Depends(get_slot_service),
):
    """Available slots inside the window, ordered by start time"""
    return service.get_available_slots(start, end)


@router.get("/events", response_model=list[CalendarEvent])
async def get_calendar_events(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    service: SlotService = Depends(get_slot_service),
):
    return service.get_calendar_events(start, end)


@router.get("/closest", response_model=Optional[SlotResponse])
async def get_closest_available_slot(service: SlotService = Depends(get_slot_service)):
    """First available slot within the next month, or null"""
    return service.get_closest_available_slot()


@router.get("/exists")
async def check_slots_exist(service: SlotService = Depends(get_slot_service)):
    return {"exists": service.check_slots_exist()}


@router.get("/{slot_id}/availability", response_model=SlotAvailabilityResponse)
async def verify_slot_availability(slot_id: str, service: SlotService = Depends(get_slot_service)):
    """Re-check a selected slot right before the booking form is submitted"""
    return service.verify_slot_availability(slot_id)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=list[SlotResponse])
async def get_all_slots(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    service: SlotService = Depends(get_admin_slot_service),
):
    """Every slot in the window, booked or not"""
    return service.get_all_slots(start, end)


@admin_router.post("", response_model=BatchCreateResponse, status_code=201)
async def create_slots(data: SlotCreate, service: SlotService = Depends(get_admin_slot_service)):
    """Create a single slot, or one-hour slots across the range when split_hourly is set"""
    if data.split_hourly:
        created, skipped = service.create_hourly_slots(data.start_time, data.end_time)
        return batch_response(created, skipped)

    return batch_response([service.create_slot(data.start_time, data.end_time)], 0)


@admin_router.post("/weekly", response_model=BatchCreateResponse, status_code=201)
async def create_weekly_schedule(
    data: WeeklyScheduleCreate, service: SlotService = Depends(get_admin_slot_service)
):
    created, skipped = service.create_weekly_schedule(data)
    return batch_response(created, skipped)


@admin_router.post("/test", response_model=BatchCreateResponse, status_code=201)
async def create_test_slots(service: SlotService = Depends(get_admin_slot_service)):
    created, skipped = service.create_test_slots()
    return batch_response(created, skipped)


@admin_router.patch("/{slot_id}", response_model=SlotResponse)
async def update_slot(slot_id: str, data: SlotUpdate, service: SlotService = Depends(get_admin_slot_service)):
    return service.update_slot(slot_id, data)


@admin_router.post("/{slot_id}/toggle", response_model=SlotResponse)
async def toggle_slot_availability(slot_id: str, service: SlotService = Depends(get_admin_slot_service)):
    return service.toggle_slot_availability(slot_id)


@admin_router.post("/{slot_id}/reset", response_model=SlotResponse)
async def reset_slot_availability(slot_id: str, service: SlotService = Depends(get_admin_slot_service)):
    return service.reset_slot_availability(slot_id)


@admin_router.delete("/{slot_id}")
async def delete_slot(slot_id: str, service: SlotService = Depends(get_admin_slot_service)):
    return service.delete_slot(slot_id)


@admin_router.delete("")
async def delete_available_slots(service: SlotService = Depends(get_admin_slot_service)):
    """Delete every available slot; booked slots are left alone"""
    return service.delete_available_slots()
