"""Slot repository - Database operations for slots"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ...models import ACTIVE_STATUSES, Reservation, Slot
from ...realtime import serialize_slot, slot_changes
from ...utils.dates import ensure_utc


class SlotRepository:
    """Repository for slot database operations"""

    @staticmethod
    def get_slots(
        db: Session,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        available_only: bool = True,
    ) -> list[Slot]:
        """Slots inside [start, end], ordered by start time"""
        query = db.query(Slot)
        if available_only:
            query = query.filter(Slot.is_available.is_(True))
        if start is not None:
            query = query.filter(Slot.start_time >= start)
        if end is not None:
            query = query.filter(Slot.end_time <= end)
        return query.order_by(Slot.start_time.asc()).all()

    @staticmethod
    def get_slot_by_id(db: Session, slot_id: str) -> Optional[Slot]:
        return db.query(Slot).filter(Slot.id == slot_id).first()

    @staticmethod
    def get_first_available_between(db: Session, start: datetime, end: datetime) -> Optional[Slot]:
        return (
            db.query(Slot)
            .filter(Slot.is_available.is_(True), Slot.start_time >= start, Slot.start_time <= end)
            .order_by(Slot.start_time.asc())
            .first()
        )

    @staticmethod
    def any_available_after(db: Session, start: datetime) -> bool:
        return (
            db.query(Slot.id).filter(Slot.is_available.is_(True), Slot.start_time >= start).first()
            is not None
        )

    @staticmethod
    def get_existing_start_times(db: Session, start_times: list[datetime]) -> set[datetime]:
        if not start_times:
            return set()
        rows = db.query(Slot.start_time).filter(Slot.start_time.in_(start_times)).all()
        return {ensure_utc(row[0]) for row in rows}

    @staticmethod
    def create_slots(db: Session, ranges: list[tuple[datetime, datetime]]) -> list[Slot]:
        """Insert slots in one commit, then publish an INSERT per slot"""
        slots = [Slot(start_time=start, end_time=end, is_available=True) for start, end in ranges]
        db.add_all(slots)
        db.commit()

        for slot in slots:
            db.refresh(slot)
            slot_changes.slot_inserted(slot)
        return slots

    @staticmethod
    def update_slot(db: Session, slot: Slot, **updates) -> Slot:
        """Update a slot with provided fields"""
        old = serialize_slot(slot)
        for key, value in updates.items():
            if value is not None and hasattr(slot, key):
                setattr(slot, key, value)

        db.commit()
        db.refresh(slot)
        slot_changes.slot_updated(slot, old)
        return slot

    @staticmethod
    def claim_slot(db: Session, slot_id: str) -> bool:
        """
        Guarded flip to unavailable; only succeeds while the slot is still free.
        Does not commit, so the caller can tie it to the reservation insert.
        """
        result = db.execute(
            update(Slot)
            .where(Slot.id == slot_id, Slot.is_available.is_(True))
            .values(is_available=False, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def release_slot(db: Session, slot_id: str) -> None:
        """Flip back to available; does not commit"""
        db.execute(
            update(Slot)
            .where(Slot.id == slot_id)
            .values(is_available=True, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def has_active_reservation(db: Session, slot_id: str) -> bool:
        return (
            db.query(Reservation.id)
            .filter(Reservation.slot_id == slot_id, Reservation.status.in_(ACTIVE_STATUSES))
            .first()
            is not None
        )

    @staticmethod
    def delete_slot(db: Session, slot: Slot) -> None:
        """Delete a slot, detaching any cancelled reservations that still point at it"""
        old = serialize_slot(slot)
        db.query(Reservation).filter(Reservation.slot_id == slot.id).update(
            {Reservation.slot_id: None}, synchronize_session="fetch"
        )
        db.delete(slot)
        db.commit()
        slot_changes.slot_deleted(old)

    @staticmethod
    def delete_available_slots(db: Session) -> int:
        """Delete every available slot not held by an active reservation. Returns the number deleted"""
        held = select(Reservation.slot_id).where(
            Reservation.slot_id.isnot(None), Reservation.status.in_(ACTIVE_STATUSES)
        )
        slots = db.query(Slot).filter(Slot.is_available.is_(True), Slot.id.notin_(held)).all()
        if not slots:
            return 0

        old_rows = [serialize_slot(slot) for slot in slots]
        slot_ids = [slot.id for slot in slots]
        db.query(Reservation).filter(Reservation.slot_id.in_(slot_ids)).update(
            {Reservation.slot_id: None}, synchronize_session="fetch"
        )
        for slot in slots:
            db.delete(slot)
        db.commit()

        for old in old_rows:
            slot_changes.slot_deleted(old)
        return len(old_rows)
