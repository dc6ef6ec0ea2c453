"""Reservation service - Booking flow and reservation lifecycle"""

import logging
import secrets
import string
from datetime import datetime
from typing import Optional

from fastapi import BackgroundTasks, HTTPException
from sqlalchemy.orm import Session

from ...config import MAX_ACTIVE_RESERVATIONS
from ...database import require_admin_session
from ...email_service import (
    build_cancellation_params,
    build_confirmation_params,
    build_status_update_params,
    is_email_configured,
    send_booking_confirmation_email,
    send_cancellation_email,
    send_status_update_email,
)
from ...models import ACTIVE_STATUSES, Reservation
from ...rate_limiter import format_time_until_reset, get_booking_rate_limiter
from ...security_utils import create_user_token
from ...services.calendar_export import generate_calendar_links, generate_ical_event
from ...utils.dates import is_slot_disabled, utcnow
from ...verification import verify_challenge_token
from ..slots.repository import SlotRepository
from ..users.repository import UserRepository
from .repository import ReservationRepository
from .schemas import ReservationCreate, ReservationStatusUpdate

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "ADR"
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_SUFFIX_LENGTH = 4
REFERENCE_MAX_TRIES = 10

MSG_SLOT_TAKEN = "This slot has just been booked by someone else. Please select another time slot."
MSG_SLOT_TOO_SOON = "This slot starts too soon to be booked. Please select another time slot."
MSG_EMAIL_NOT_CONFIGURED = (
    "Email service is not configured. Your reservation is confirmed but no confirmation email was sent."
)


def generate_reference(now: Optional[datetime] = None) -> str:
    """ADR-YYYYMMDD-XXXX with a UTC date and four characters from A-Z0-9"""
    now = now or utcnow()
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_SUFFIX_LENGTH))
    return f"{REFERENCE_PREFIX}-{now:%Y%m%d}-{suffix}"


def slot_unavailable(message: str = MSG_SLOT_TAKEN) -> HTTPException:
    """409 that tells the client to drop its current slot selection"""
    return HTTPException(status_code=409, detail={"message": message, "selection_cleared": True})


class ReservationService:
    """Service layer for reservation business logic"""

    def __init__(self, db: Session, admin_db: Optional[Session] = None):
        self.db = db
        self.admin_db = admin_db
        self.repo = ReservationRepository()

    @property
    def writer(self) -> Session:
        """Privileged session; 503 when the service credential is missing"""
        return require_admin_session(self.admin_db)

    @property
    def reader(self) -> Session:
        """Privileged session when configured, otherwise the public one"""
        return self.admin_db if self.admin_db is not None else self.db

    def generate_unique_reference(self, db: Session) -> str:
        for _ in range(REFERENCE_MAX_TRIES):
            reference = generate_reference()
            if not self.repo.reference_exists(db, reference):
                return reference
        logger.error("❌ Could not generate a unique booking reference")
        raise HTTPException(status_code=500, detail="Could not generate a booking reference. Please try again.")

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def create_reservation(self, data: ReservationCreate, background_tasks: BackgroundTasks) -> dict:
        """Verify, rate limit, check availability, then insert and claim the slot atomically"""
        logger.info(f"📥 Booking request for slot {data.slot_id} from {data.email}")

        verification = verify_challenge_token(data.challenge_token, data.challenge_answer)
        if not verification["success"]:
            raise HTTPException(status_code=400, detail=verification["error"])

        limiter = get_booking_rate_limiter()
        rate = limiter.check_rate_limit(data.email)
        if rate["limited"]:
            wait = format_time_until_reset(rate["time_until_reset"])
            raise HTTPException(
                status_code=429,
                detail=f"You've reached the maximum number of booking attempts. Please try again in {wait}.",
                headers={"Retry-After": str(rate["time_until_reset"])},
            )

        now = utcnow()
        active = self.repo.count_active_reservations(self.db, data.email, now)
        if active >= MAX_ACTIVE_RESERVATIONS:
            logger.warning(f"⚠️ {data.email} already holds {active} active reservation(s)")
            raise HTTPException(
                status_code=409,
                detail=(
                    "You already have an active reservation. Please cancel your existing reservation "
                    "before making a new one."
                ),
            )

        slot = SlotRepository.get_slot_by_id(self.db, data.slot_id)
        if not slot:
            raise HTTPException(status_code=404, detail="Slot not found")
        if not slot.is_available:
            logger.info(f"🔒 Slot {data.slot_id} was taken before submission")
            raise slot_unavailable()
        if is_slot_disabled(slot.start_time, now):
            raise slot_unavailable(MSG_SLOT_TOO_SOON)

        limiter.record_attempt(data.email)

        writer = self.writer
        user = UserRepository.upsert_user(writer, data.email, data.name, data.group_id)
        token = create_user_token(user.id, user.email, user.name)

        reservation = self.repo.create_reservation(
            writer,
            data.slot_id,
            user_name=data.name,
            user_email=data.email,
            group_id=data.group_id,
            notes=data.notes,
            reference=self.generate_unique_reference(writer),
            status="confirmed",
        )
        if reservation is None:
            logger.warning(f"🔒 Slot {data.slot_id} was claimed concurrently, booking rolled back")
            raise slot_unavailable()

        logger.info(f"✅ Reservation {reservation.reference} created for slot {data.slot_id}")

        warnings = []
        if is_email_configured():
            background_tasks.add_task(
                send_booking_confirmation_email, build_confirmation_params(reservation, reservation.slot)
            )
        else:
            warnings.append(MSG_EMAIL_NOT_CONFIGURED)

        return {
            "reservation": reservation,
            "reference": reservation.reference,
            "token": token,
            "calendar_links": generate_calendar_links(reservation.slot, reservation),
            "warnings": warnings,
        }

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_reservations(self) -> list[Reservation]:
        return self.repo.get_reservations(self.writer)

    def get_user_reservations(self, email: str) -> list[Reservation]:
        return self.repo.get_reservations_by_email(self.reader, email)

    def get_active_reservation_count(self, email: str) -> int:
        return self.repo.count_active_reservations(self.db, email, utcnow())

    def get_reservation(self, reservation_id: str, db: Optional[Session] = None) -> Reservation:
        reservation = self.repo.get_reservation_by_id(db or self.writer, reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return reservation

    def get_owned_reservation(self, reservation_id: str, email: str, db: Optional[Session] = None) -> Reservation:
        reservation = self.get_reservation(reservation_id, db)
        if reservation.user_email != email.lower():
            # Same answer as a missing reservation
            raise HTTPException(status_code=404, detail="Reservation not found")
        return reservation

    def get_reservation_calendar(self, reservation_id: str, email: str) -> tuple[str, str]:
        """Returns (filename, ics body)"""
        reservation = self.get_owned_reservation(reservation_id, email, self.reader)
        if reservation.slot is None:
            raise HTTPException(status_code=404, detail="The slot for this reservation no longer exists")
        return f"reservation-{reservation.reference}.ics", generate_ical_event(reservation.slot, reservation)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def cancel_reservation(
        self, reservation_id: str, email: str, reason: Optional[str], background_tasks: BackgroundTasks
    ) -> Reservation:
        """User cancels their own reservation; the slot becomes bookable again"""
        reservation = self.get_owned_reservation(reservation_id, email)
        if reservation.status == "cancelled":
            raise HTTPException(status_code=400, detail="Reservation is already cancelled")

        updated = self.repo.set_status(self.writer, reservation, "cancelled", reason, release_slot=True)
        logger.info(f"🚫 Reservation {updated.reference} cancelled by {email}")

        background_tasks.add_task(send_cancellation_email, build_cancellation_params(updated, updated.slot, reason))
        return updated

    def update_reservation_status(
        self, reservation_id: str, data: ReservationStatusUpdate, background_tasks: BackgroundTasks
    ) -> Reservation:
        """Admin status change; cancelling frees the slot, re-activating claims it again"""
        reservation = self.get_reservation(reservation_id)
        if reservation.status == data.status:
            raise HTTPException(status_code=400, detail=f"Reservation is already {data.status}")

        was_active = reservation.is_active
        will_be_active = data.status in ACTIVE_STATUSES

        release = was_active and not will_be_active
        claim = not was_active and will_be_active
        if claim and not reservation.slot_id:
            raise HTTPException(status_code=409, detail="The slot for this reservation no longer exists")

        updated = self.repo.set_status(
            self.writer, reservation, data.status, data.reason, release_slot=release, claim_slot=claim
        )
        if updated is None:
            raise slot_unavailable("This slot has been booked by someone else since the reservation was cancelled.")

        logger.info(f"🔄 Reservation {updated.reference} status changed to {data.status}")

        if data.status == "cancelled":
            params = build_cancellation_params(updated, updated.slot, data.reason)
            background_tasks.add_task(send_cancellation_email, params)
        else:
            params = build_status_update_params(updated, updated.slot, data.status, data.reason)
            background_tasks.add_task(send_status_update_email, params)
        return updated

    def delete_reservation(self, reservation_id: str) -> dict:
        reservation = self.get_reservation(reservation_id)
        reference = reservation.reference
        self.repo.delete_reservation(self.writer, reservation, release_slot=reservation.is_active)
        logger.info(f"🗑️ Reservation {reference} deleted")
        return {"message": "Reservation deleted", "id": reservation_id}
