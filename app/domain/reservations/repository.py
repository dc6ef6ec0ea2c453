"""Reservation repository - Database operations for reservations"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_STATUSES, Reservation, Slot
from ...realtime import slot_changes
from ..slots.repository import SlotRepository


class ReservationRepository:
    """Repository for reservation database operations"""

    @staticmethod
    def get_reservations(db: Session) -> list[Reservation]:
        """All reservations with their slot, newest first"""
        return (
            db.query(Reservation)
            .options(joinedload(Reservation.slot))
            .order_by(Reservation.created_at.desc())
            .all()
        )

    @staticmethod
    def get_reservations_by_email(db: Session, email: str) -> list[Reservation]:
        return (
            db.query(Reservation)
            .options(joinedload(Reservation.slot))
            .filter(Reservation.user_email == email.lower())
            .order_by(Reservation.created_at.desc())
            .all()
        )

    @staticmethod
    def get_reservation_by_id(db: Session, reservation_id: str) -> Optional[Reservation]:
        return (
            db.query(Reservation)
            .options(joinedload(Reservation.slot))
            .filter(Reservation.id == reservation_id)
            .first()
        )

    @staticmethod
    def count_active_reservations(db: Session, email: str, now: datetime) -> int:
        """Active reservations whose slot has not started yet"""
        return (
            db.query(Reservation)
            .join(Slot, Reservation.slot_id == Slot.id)
            .filter(
                Reservation.user_email == email.lower(),
                Reservation.status.in_(ACTIVE_STATUSES),
                Slot.start_time >= now,
            )
            .count()
        )

    @staticmethod
    def reference_exists(db: Session, reference: str) -> bool:
        return db.query(Reservation.id).filter(Reservation.reference == reference).first() is not None

    @staticmethod
    def create_reservation(db: Session, slot_id: str, **reservation_data) -> Optional[Reservation]:
        """
        Insert the reservation and claim its slot in one transaction.
        Returns None (and rolls back) when the slot was taken in the meantime.
        """
        reservation = Reservation(slot_id=slot_id, **reservation_data)
        db.add(reservation)
        db.flush()

        if not SlotRepository.claim_slot(db, slot_id):
            db.rollback()
            return None

        db.commit()
        db.refresh(reservation)

        slot = SlotRepository.get_slot_by_id(db, slot_id)
        db.refresh(slot)
        slot_changes.slot_updated(slot)
        return reservation

    @staticmethod
    def set_status(
        db: Session,
        reservation: Reservation,
        status: str,
        reason: Optional[str] = None,
        release_slot: bool = False,
        claim_slot: bool = False,
    ) -> Optional[Reservation]:
        """
        Change the status and, in the same transaction, free or re-claim the slot.
        Returns None (and rolls back) when a re-claim finds the slot taken.
        """
        slot_id = reservation.slot_id
        reservation.status = status
        reservation.status_reason = reason

        if release_slot and slot_id:
            SlotRepository.release_slot(db, slot_id)
        if claim_slot and slot_id and not SlotRepository.claim_slot(db, slot_id):
            db.rollback()
            return None

        db.commit()
        db.refresh(reservation)

        if (release_slot or claim_slot) and slot_id:
            slot = SlotRepository.get_slot_by_id(db, slot_id)
            if slot:
                db.refresh(slot)
                slot_changes.slot_updated(slot)
        return reservation

    @staticmethod
    def delete_reservation(db: Session, reservation: Reservation, release_slot: bool = False) -> None:
        slot_id = reservation.slot_id
        db.delete(reservation)
        if release_slot and slot_id:
            SlotRepository.release_slot(db, slot_id)
        db.commit()

        if release_slot and slot_id:
            slot = SlotRepository.get_slot_by_id(db, slot_id)
            if slot:
                db.refresh(slot)
                slot_changes.slot_updated(slot)
