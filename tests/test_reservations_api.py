import re
from types import SimpleNamespace

from app.domain.reservations.repository import ReservationRepository
from app.domain.reservations.service import generate_reference
from app.domain.slots.repository import SlotRepository
from app.models import Reservation, Slot, User
from app.rate_limiter import get_booking_rate_limiter
from app.realtime import slot_changes
from app.security_utils import verify_jwt_token
from tests.helpers import booking_payload, make_reservation, make_slot, user_headers

REFERENCE_PATTERN = re.compile(r"^ADR-\d{8}-[A-Z0-9]{4}$")


def test_generated_reference_matches_pattern():
    for _ in range(50):
        assert REFERENCE_PATTERN.match(generate_reference())


def test_successful_booking(client, db):
    slot = make_slot(db, hours_ahead=24)

    response = client.post("/reservations", json=booking_payload(slot.id))

    assert response.status_code == 201
    body = response.json()
    assert REFERENCE_PATTERN.match(body["reference"])
    assert body["reservation"]["status"] == "confirmed"
    assert body["reservation"]["reference"] == body["reference"]
    assert body["calendar_links"]["google"].startswith("https://calendar.google.com/")
    assert body["calendar_links"]["outlook"].startswith("https://outlook.live.com/")
    # No email provider in tests
    assert len(body["warnings"]) == 1

    claims = verify_jwt_token(body["token"])
    assert claims["role"] == "user"
    assert claims["email"] == "ada@example.com"

    db.expire_all()
    assert db.get(Slot, slot.id).is_available is False
    assert db.query(User).filter(User.email == "ada@example.com").one().name == "Ada Lovelace"


def test_booking_a_slot_taken_since_selection_is_rejected(client, db):
    slot = make_slot(db, hours_ahead=24)
    # Someone else books between selection and submission
    make_reservation(db, slot, email="grace@example.com")

    response = client.post("/reservations", json=booking_payload(slot.id))

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["selection_cleared"] is True
    assert detail["message"] == (
        "This slot has just been booked by someone else. Please select another time slot."
    )
    assert db.query(Reservation).count() == 1


def test_second_booking_for_the_same_slot_loses(client, db):
    slot = make_slot(db, hours_ahead=24)

    first = client.post("/reservations", json=booking_payload(slot.id, email="ada@example.com"))
    second = client.post("/reservations", json=booking_payload(slot.id, email="grace@example.com"))

    assert first.status_code == 201
    assert second.status_code == 409
    assert db.query(Reservation).count() == 1


def test_slot_starting_within_the_hour_cannot_be_booked(client, db):
    slot = make_slot(db, hours_ahead=1)

    response = client.post("/reservations", json=booking_payload(slot.id))

    assert response.status_code == 409
    assert response.json()["detail"]["selection_cleared"] is True


def test_unknown_slot(client):
    response = client.post("/reservations", json=booking_payload("no-such-slot"))
    assert response.status_code == 404


def test_invalid_form_reports_first_field(client, db):
    slot = make_slot(db, hours_ahead=24)

    response = client.post("/reservations", json=booking_payload(slot.id, name="X"))

    assert response.status_code == 422
    assert response.json()["field"] == "name"
    assert response.json()["message"] == "Name must be at least 2 characters"


def test_wrong_challenge_answer(client, db):
    slot = make_slot(db, hours_ahead=24)

    response = client.post("/reservations", json=booking_payload(slot.id, challenge_answer="6"))

    assert response.status_code == 400
    assert response.json()["detail"] == "Incorrect answer. Please try again."


def test_missing_challenge(client, db):
    slot = make_slot(db, hours_ahead=24)

    response = client.post("/reservations", json=booking_payload(slot.id, challenge_token=None))

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid challenge or answer"


def test_one_active_reservation_per_user(client, db):
    first = make_slot(db, hours_ahead=24)
    second = make_slot(db, hours_ahead=48)

    assert client.post("/reservations", json=booking_payload(first.id)).status_code == 201
    response = client.post("/reservations", json=booking_payload(second.id))

    assert response.status_code == 409
    assert "already have an active reservation" in response.json()["detail"]


def test_rate_limit_blocks_sixth_attempt(client, db):
    slot = make_slot(db, hours_ahead=24)
    limiter = get_booking_rate_limiter()
    for _ in range(5):
        limiter.record_attempt("ada@example.com")

    response = client.post("/reservations", json=booking_payload(slot.id))
    assert response.status_code == 429
    assert response.json()["detail"].startswith("You've reached the maximum number of booking attempts.")
    assert "Retry-After" in response.headers

    # A different email is unaffected
    assert client.post("/reservations", json=booking_payload(slot.id, email="alan@example.com")).status_code == 201


def test_successful_booking_counts_as_an_attempt(client, db):
    slot = make_slot(db, hours_ahead=24)

    client.post("/reservations", json=booking_payload(slot.id))

    assert get_booking_rate_limiter().check_rate_limit("ada@example.com")["remaining_attempts"] == 4


def test_admin_can_clear_rate_limit(client, db, admin_headers):
    slot = make_slot(db, hours_ahead=24)
    limiter = get_booking_rate_limiter()
    for _ in range(5):
        limiter.record_attempt("ada@example.com")

    cleared = client.delete("/admin/rate-limits/ada@example.com", headers=admin_headers)
    assert cleared.status_code == 200
    assert client.post("/reservations", json=booking_payload(slot.id)).status_code == 201


def test_booking_without_service_key(client_without_service_key, db):
    slot = make_slot(db, hours_ahead=24)

    response = client_without_service_key.post("/reservations", json=booking_payload(slot.id))

    assert response.status_code == 503
    assert "Service key not configured" in response.json()["detail"]


def test_booking_publishes_slot_update(client, db):
    slot = make_slot(db, hours_ahead=24)
    received = []
    slot_changes.subscribe(received.append)

    client.post("/reservations", json=booking_payload(slot.id))

    assert received[-1]["eventType"] == "UPDATE"
    assert received[-1]["new"]["id"] == slot.id
    assert received[-1]["new"]["is_available"] is False


def test_user_cancellation_frees_the_slot(client, db):
    slot = make_slot(db, hours_ahead=24)
    booking = client.post("/reservations", json=booking_payload(slot.id)).json()
    headers = {"Authorization": f"Bearer {booking['token']}"}
    reservation_id = booking["reservation"]["id"]

    response = client.post(
        f"/users/me/reservations/{reservation_id}/cancel",
        json={"reason": "Schedule conflict"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["status_reason"] == "Schedule conflict"

    db.expire_all()
    assert db.get(Slot, slot.id).is_available is True

    again = client.post(f"/users/me/reservations/{reservation_id}/cancel", headers=headers)
    assert again.status_code == 400


def test_users_cannot_cancel_someone_elses_reservation(client, db):
    slot = make_slot(db, hours_ahead=24)
    reservation = make_reservation(db, slot, email="grace@example.com")

    response = client.post(
        f"/users/me/reservations/{reservation.id}/cancel", headers=user_headers("ada@example.com")
    )

    assert response.status_code == 404


def test_admin_cancel_and_reactivate(client, db, admin_headers):
    slot = make_slot(db, hours_ahead=24)
    reservation = make_reservation(db, slot)

    cancelled = client.patch(
        f"/admin/reservations/{reservation.id}/status",
        json={"status": "cancelled", "reason": "Room closed"},
        headers=admin_headers,
    )
    assert cancelled.status_code == 200
    db.expire_all()
    assert db.get(Slot, slot.id).is_available is True

    restored = client.patch(
        f"/admin/reservations/{reservation.id}/status", json={"status": "confirmed"}, headers=admin_headers
    )
    assert restored.status_code == 200
    db.expire_all()
    assert db.get(Slot, slot.id).is_available is False


def test_reactivation_fails_when_slot_was_rebooked(client, db, admin_headers):
    slot = make_slot(db, hours_ahead=24)
    old = make_reservation(db, slot, status="cancelled")
    make_reservation(db, db.get(Slot, slot.id), email="grace@example.com")

    response = client.patch(
        f"/admin/reservations/{old.id}/status", json={"status": "confirmed"}, headers=admin_headers
    )

    assert response.status_code == 409
    db.expire_all()
    assert db.get(Reservation, old.id).status == "cancelled"


def test_admin_delete_frees_slot(client, db, admin_headers):
    slot = make_slot(db, hours_ahead=24)
    reservation = make_reservation(db, slot)

    response = client.delete(f"/admin/reservations/{reservation.id}", headers=admin_headers)

    assert response.status_code == 200
    db.expire_all()
    assert db.query(Reservation).count() == 0
    assert db.get(Slot, slot.id).is_available is True


def test_admin_lists_reservations_with_slots(client, db, admin_headers):
    slot = make_slot(db, hours_ahead=24)
    make_reservation(db, slot)

    body = client.get("/admin/reservations", headers=admin_headers).json()

    assert len(body) == 1
    assert body[0]["slot"]["id"] == slot.id


def test_user_reservations_and_count(client, db):
    slot = make_slot(db, hours_ahead=24)
    make_reservation(db, slot)
    past_or_cancelled = make_slot(db, hours_ahead=30)
    make_reservation(db, past_or_cancelled, status="cancelled")

    mine = client.get("/users/me/reservations", headers=user_headers("ada@example.com")).json()
    assert len(mine) == 2

    count = client.get("/users/reservation-count", params={"email": "ADA@example.com"}).json()
    assert count == {"email": "ada@example.com", "count": 1}


def test_calendar_download_for_owner(client, db):
    slot = make_slot(db, hours_ahead=24)
    reservation = make_reservation(db, slot)

    response = client.get(
        f"/reservations/{reservation.id}/calendar.ics", headers=user_headers("ada@example.com")
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert "BEGIN:VEVENT" in response.text

    other = client.get(
        f"/reservations/{reservation.id}/calendar.ics", headers=user_headers("grace@example.com")
    )
    assert other.status_code == 404


def test_concurrent_claim_rolls_back_the_booking(client, db, monkeypatch):
    slot = make_slot(db, hours_ahead=24)
    make_reservation(db, slot, email="grace@example.com")
    # The booking request still sees the slot as it was when it was selected
    stale = SimpleNamespace(id=slot.id, is_available=True, start_time=slot.start_time)
    monkeypatch.setattr(SlotRepository, "get_slot_by_id", staticmethod(lambda db, slot_id: stale))

    response = client.post("/reservations", json=booking_payload(slot.id))

    assert response.status_code == 409
    assert response.json()["detail"]["selection_cleared"] is True
    db.expire_all()
    assert db.query(Reservation).count() == 1
    assert db.query(Reservation).filter(Reservation.user_email == "ada@example.com").count() == 0
    assert db.get(Slot, slot.id).is_available is False


def test_create_reservation_on_claimed_slot_returns_none(db):
    slot = make_slot(db, hours_ahead=24, available=False)

    reservation = ReservationRepository.create_reservation(
        db,
        slot.id,
        user_name="Ada Lovelace",
        user_email="ada@example.com",
        reference=generate_reference(),
        status="confirmed",
    )

    assert reservation is None
    assert db.query(Reservation).count() == 0


def test_status_change_to_same_status_is_rejected(client, db, admin_headers):
    slot = make_slot(db, hours_ahead=24)
    reservation = make_reservation(db, slot, status="cancelled")

    response = client.patch(
        f"/admin/reservations/{reservation.id}/status",
        json={"status": "cancelled", "reason": "Again"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    db.expire_all()
    assert db.get(Reservation, reservation.id).status_reason is None


def test_user_reads_without_service_key(client_without_service_key, db):
    slot = make_slot(db, hours_ahead=24)
    reservation = make_reservation(db, slot)
    db.add(User(email="ada@example.com", name="Ada Lovelace"))
    db.commit()
    headers = user_headers("ada@example.com")

    mine = client_without_service_key.get("/users/me/reservations", headers=headers)
    assert mine.status_code == 200
    assert [r["id"] for r in mine.json()] == [reservation.id]

    assert client_without_service_key.get("/users/me", headers=headers).json()["name"] == "Ada Lovelace"

    ics = client_without_service_key.get(f"/reservations/{reservation.id}/calendar.ics", headers=headers)
    assert ics.status_code == 200
