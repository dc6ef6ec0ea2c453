"""Seeding helpers shared by the API tests."""

from datetime import datetime, timedelta, timezone

from app.domain.reservations.service import generate_reference
from app.models import Reservation, Slot
from app.security_utils import create_user_token
from app.verification import issue_challenge


def user_headers(email: str, name: str = "Ada Lovelace", user_id: str = "user-1") -> dict:
    return {"Authorization": f"Bearer {create_user_token(user_id, email, name)}"}


def next_hour(hours_ahead: int) -> datetime:
    now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    return now + timedelta(hours=hours_ahead)


def make_slot(db, hours_ahead: int = 48, available: bool = True) -> Slot:
    start = next_hour(hours_ahead)
    slot = Slot(start_time=start, end_time=start + timedelta(hours=1), is_available=available)
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


def make_reservation(db, slot: Slot, email: str = "ada@example.com", status: str = "confirmed") -> Reservation:
    reservation = Reservation(
        slot_id=slot.id,
        user_name="Ada Lovelace",
        user_email=email,
        reference=generate_reference(),
        status=status,
    )
    db.add(reservation)
    if status != "cancelled":
        slot.is_available = False
    db.commit()
    db.refresh(reservation)
    return reservation


def solved_challenge() -> dict:
    """Token and answer for a known math challenge"""
    challenge = {"kind": "math", "question": "What is 2 + 3?", "answer": "5", "timestamp": 0}
    return {"challenge_token": issue_challenge(challenge)["token"], "challenge_answer": "5"}


def booking_payload(slot_id: str, email: str = "ada@example.com", **overrides) -> dict:
    payload = {
        "slot_id": slot_id,
        "name": "Ada Lovelace",
        "email": email,
        "group_id": "team-7",
        "notes": "Bringing a laptop",
        **solved_challenge(),
    }
    payload.update(overrides)
    return payload
