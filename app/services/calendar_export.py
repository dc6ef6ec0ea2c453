"""
Calendar Export Service
Builds an iCalendar document and Google/Outlook deep links for a reservation
"""

import logging
from datetime import datetime
from urllib.parse import quote

from icalendar import Calendar, Event, vCalAddress, vText

from ..config import FRONTEND_URL, ORGANIZATION_NAME, ORGANIZER_EMAIL
from ..models import Reservation, Slot
from ..utils.dates import ensure_utc, to_iso_string, utcnow

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
OUTLOOK_CALENDAR_URL = "https://outlook.live.com/calendar/0/deeplink/compose"


def event_title() -> str:
    return f"{ORGANIZATION_NAME} Reservation"


def event_description(reservation: Reservation) -> str:
    lines = [f"Reservation for {reservation.user_name}", f"Group: {reservation.group_id or 'Not specified'}"]
    if reservation.notes:
        lines.append(f"Notes: {reservation.notes}")
    if reservation.reference:
        lines.append(f"Reference: {reservation.reference}")
    return "\n".join(lines)


def format_date_for_url(value: datetime) -> str:
    """20240325T140000Z"""
    return ensure_utc(value).strftime("%Y%m%dT%H%M%SZ")


def generate_ical_event(slot: Slot, reservation: Reservation) -> str:
    calendar = Calendar()
    calendar.add("prodid", f"-//{ORGANIZATION_NAME}//Slot Reservations//EN")
    calendar.add("version", "2.0")
    calendar.add("x-wr-calname", event_title())

    event = Event()
    event.add("uid", f"{reservation.id}@{ORGANIZATION_NAME.lower().replace(' ', '-')}")
    event.add("dtstamp", utcnow())
    event.add("dtstart", ensure_utc(slot.start_time))
    event.add("dtend", ensure_utc(slot.end_time))
    event.add("summary", event_title())
    event.add("description", event_description(reservation))
    event.add("location", ORGANIZATION_NAME)
    event.add("url", FRONTEND_URL)

    organizer = vCalAddress(f"MAILTO:{ORGANIZER_EMAIL}")
    organizer.params["cn"] = vText(ORGANIZATION_NAME)
    event["organizer"] = organizer

    calendar.add_component(event)
    return calendar.to_ical().decode("utf-8")


def generate_calendar_links(slot: Slot, reservation: Reservation) -> dict[str, str]:
    title = quote(event_title(), safe="")
    details = quote(event_description(reservation), safe="")
    location = quote(ORGANIZATION_NAME, safe="")

    start = format_date_for_url(slot.start_time)
    end = format_date_for_url(slot.end_time)

    return {
        "google": (
            f"{GOOGLE_CALENDAR_URL}?action=TEMPLATE&text={title}&dates={start}/{end}"
            f"&details={details}&location={location}"
        ),
        "outlook": (
            f"{OUTLOOK_CALENDAR_URL}?subject={title}&startdt={to_iso_string(slot.start_time)}"
            f"&enddt={to_iso_string(slot.end_time)}&body={details}&location={location}"
        ),
    }
