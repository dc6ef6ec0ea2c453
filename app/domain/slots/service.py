"""Slot service - Business logic for slot inventory"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Slot
from ...utils.dates import (
    business_tz,
    ceil_to_hour,
    ensure_utc,
    floor_to_hour,
    is_slot_disabled,
    to_iso_string,
    utcnow,
)
from .repository import SlotRepository
from .schemas import SlotUpdate, WeeklyScheduleCreate

logger = logging.getLogger(__name__)

AVAILABLE_COLORS = ("#10B981", "#059669")
BOOKED_COLORS = ("#EF4444", "#DC2626")
EVENT_TEXT_COLOR = "#FFFFFF"

TEST_SLOT_DAYS = 7
TEST_SLOT_HOUR = 9


def slot_to_calendar_event(slot: Slot) -> dict:
    """Render a slot as a booking-calendar event"""
    background, border = AVAILABLE_COLORS if slot.is_available else BOOKED_COLORS
    return {
        "id": slot.id,
        "title": "Available" if slot.is_available else "Booked",
        "start": to_iso_string(slot.start_time),
        "end": to_iso_string(slot.end_time),
        "backgroundColor": background,
        "borderColor": border,
        "textColor": EVENT_TEXT_COLOR,
        "extendedProps": {"is_available": slot.is_available},
    }


def clamp_to_local_day(start: datetime, end: datetime) -> datetime:
    """A slot may not cross local midnight; its end is clamped to 23:59:59.999 of its start day"""
    tz = business_tz()
    local_start = start.astimezone(tz)
    day_end = datetime.combine(local_start.date(), time(23, 59, 59, 999000), tzinfo=tz)
    if end.astimezone(tz) > day_end:
        return day_end.astimezone(timezone.utc)
    return end


def hourly_ranges(start: datetime, end: datetime) -> list[tuple[datetime, datetime]]:
    """Split [start, end] into one-hour slots; start floors and end ceils to the local hour"""
    tz = business_tz()
    current = floor_to_hour(ensure_utc(start).astimezone(tz)).astimezone(timezone.utc)
    last = ceil_to_hour(ensure_utc(end).astimezone(tz)).astimezone(timezone.utc)

    ranges = []
    while current < last:
        slot_end = current + timedelta(hours=1)
        ranges.append((current, clamp_to_local_day(current, slot_end)))
        current = slot_end
    return ranges


def weekday_sunday_first(day: date) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return (day.weekday() + 1) % 7


def weekly_ranges(data: WeeklyScheduleCreate) -> list[tuple[datetime, datetime]]:
    if data.end_date < data.start_date:
        raise ValueError("End date must be after start date")

    start_hour, _ = (int(p) for p in data.start_time.split(":")[:2])
    end_hour, end_minute = (int(p) for p in data.end_time.split(":")[:2])
    # Round the end hour up when minutes are given
    if end_minute > 0:
        end_hour += 1

    hours_per_day = end_hour - start_hour
    if hours_per_day <= 0:
        raise ValueError("End time must be after start time")

    slots_per_day = hours_per_day // data.slot_duration
    tz = business_tz()
    ranges = []

    current = data.start_date
    while current <= data.end_date:
        if weekday_sunday_first(current) in data.days:
            day_start = datetime.combine(current, time(0), tzinfo=tz)
            for index in range(slots_per_day):
                local_start = day_start + timedelta(hours=start_hour + index * data.slot_duration)
                local_end = local_start + timedelta(hours=data.slot_duration)
                ranges.append((local_start.astimezone(timezone.utc), local_end.astimezone(timezone.utc)))
        current += timedelta(days=1)

    return ranges


def _utc_window(start: Optional[datetime], end: Optional[datetime]) -> tuple[Optional[datetime], Optional[datetime]]:
    return (ensure_utc(start) if start else None, ensure_utc(end) if end else None)


class SlotService:
    """Service layer for slot business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SlotRepository()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_available_slots(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[Slot]:
        """Public view: only available slots are visible"""
        return self.repo.get_slots(self.db, *_utc_window(start, end), available_only=True)

    def get_all_slots(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[Slot]:
        return self.repo.get_slots(self.db, *_utc_window(start, end), available_only=False)

    def get_slot(self, slot_id: str) -> Slot:
        slot = self.repo.get_slot_by_id(self.db, slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Slot not found")
        return slot

    def verify_slot_availability(self, slot_id: str, now: Optional[datetime] = None) -> dict:
        """Fresh availability for a selected slot, plus whether it starts too soon to book"""
        slot = self.get_slot(slot_id)
        return {
            "slot_id": slot.id,
            "available": bool(slot.is_available),
            "disabled": is_slot_disabled(slot.start_time, now),
        }

    def get_closest_available_slot(self, now: Optional[datetime] = None) -> Optional[Slot]:
        """First available slot between now and one month from now"""
        now = ensure_utc(now) if now else utcnow()
        return self.repo.get_first_available_between(self.db, now, now + relativedelta(months=1))

    def check_slots_exist(self, now: Optional[datetime] = None) -> bool:
        return self.repo.any_available_after(self.db, ensure_utc(now) if now else utcnow())

    def get_calendar_events(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict]:
        return [slot_to_calendar_event(slot) for slot in self.get_available_slots(start, end)]

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _create_ranges(self, ranges: list[tuple[datetime, datetime]]) -> tuple[list[Slot], int]:
        """Insert ranges whose start is not taken yet. Returns (created, skipped)"""
        existing = self.repo.get_existing_start_times(self.db, [start for start, _ in ranges])
        fresh = [(start, end) for start, end in ranges if start not in existing]
        skipped = len(ranges) - len(fresh)

        if skipped:
            logger.info(f"⏭️ Skipping {skipped} slot(s) that already exist")
        if not fresh:
            return [], skipped

        created = self.repo.create_slots(self.db, fresh)
        logger.info(f"✅ Created {len(created)} slot(s)")
        return created, skipped

    def create_slot(self, start: datetime, end: datetime) -> Slot:
        start, end = ensure_utc(start), ensure_utc(end)
        if end <= start:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        created, _ = self._create_ranges([(start, end)])
        if not created:
            raise HTTPException(status_code=409, detail="A slot already exists at this start time")
        return created[0]

    def create_hourly_slots(self, start: datetime, end: datetime) -> tuple[list[Slot], int]:
        start, end = ensure_utc(start), ensure_utc(end)
        if end <= start:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        logger.info(f"📅 Creating hourly slots from {to_iso_string(start)} to {to_iso_string(end)}")
        return self._create_ranges(hourly_ranges(start, end))

    def create_weekly_schedule(self, data: WeeklyScheduleCreate) -> tuple[list[Slot], int]:
        try:
            ranges = weekly_ranges(data)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        logger.info(f"📅 Weekly schedule {data.start_date} to {data.end_date} produced {len(ranges)} slot(s)")
        return self._create_ranges(ranges)

    def create_test_slots(self, today: Optional[date] = None) -> tuple[list[Slot], int]:
        """One 09:00 to 10:00 local slot per day for the next week, starting today"""
        tz = business_tz()
        today = today or utcnow().astimezone(tz).date()

        ranges = []
        for offset in range(TEST_SLOT_DAYS):
            local_start = datetime.combine(today + timedelta(days=offset), time(TEST_SLOT_HOUR), tzinfo=tz)
            ranges.append(
                (local_start.astimezone(timezone.utc), (local_start + timedelta(hours=1)).astimezone(timezone.utc))
            )
        return self._create_ranges(ranges)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def _ensure_no_active_reservation(self, slot_id: str, action: str) -> None:
        if self.repo.has_active_reservation(self.db, slot_id):
            logger.warning(f"⚠️ Refusing to {action} slot {slot_id} with an active reservation")
            raise HTTPException(
                status_code=409,
                detail=f"This slot has an active reservation. Cancel the reservation before you {action} the slot.",
            )

    def update_slot(self, slot_id: str, data: SlotUpdate) -> Slot:
        slot = self.get_slot(slot_id)

        start = data.start_time or ensure_utc(slot.start_time)
        end = data.end_time or ensure_utc(slot.end_time)
        if end <= start:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        if data.is_available and not slot.is_available:
            self._ensure_no_active_reservation(slot_id, "free")

        return self.repo.update_slot(
            self.db, slot, start_time=data.start_time, end_time=data.end_time, is_available=data.is_available
        )

    def toggle_slot_availability(self, slot_id: str) -> Slot:
        slot = self.get_slot(slot_id)
        logger.info(f"🔁 Toggling slot {slot_id} availability (currently {slot.is_available})")
        if not slot.is_available:
            self._ensure_no_active_reservation(slot_id, "free")
        return self.repo.update_slot(self.db, slot, is_available=not slot.is_available)

    def reset_slot_availability(self, slot_id: str) -> Slot:
        slot = self.get_slot(slot_id)
        if not slot.is_available:
            self._ensure_no_active_reservation(slot_id, "free")
        return self.repo.update_slot(self.db, slot, is_available=True)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_slot(self, slot_id: str) -> dict:
        slot = self.get_slot(slot_id)
        self._ensure_no_active_reservation(slot_id, "delete")

        self.repo.delete_slot(self.db, slot)
        logger.info(f"🗑️ Deleted slot {slot_id}")
        return {"message": "Slot deleted", "id": slot_id}

    def delete_available_slots(self) -> dict:
        deleted = self.repo.delete_available_slots(self.db)
        if deleted == 0:
            return {"message": "No available slots to delete", "deleted": 0}

        logger.info(f"🗑️ Deleted {deleted} available slot(s)")
        return {"message": f"Successfully deleted {deleted} slots", "deleted": deleted}

