from datetime import datetime, timedelta, timezone

from app.utils import dates


def test_parse_datetime_treats_naive_values_as_utc():
    parsed = dates.parse_datetime("2024-03-25T14:00:00")
    assert parsed == datetime(2024, 3, 25, 14, 0, tzinfo=timezone.utc)


def test_parse_datetime_converts_offsets_to_utc():
    parsed = dates.parse_datetime("2024-03-25T16:00:00+02:00")
    assert parsed == datetime(2024, 3, 25, 14, 0, tzinfo=timezone.utc)


def test_to_iso_string_uses_milliseconds_and_z_suffix():
    value = datetime(2024, 3, 25, 14, 0, 5, 123456, tzinfo=timezone.utc)
    assert dates.to_iso_string(value) == "2024-03-25T14:00:05.123Z"


def test_format_date_default_pattern():
    assert dates.format_date("2024-03-25T14:00:00Z") == "Monday, March 25, 2024"


def test_format_date_invalid_input():
    assert dates.format_date("not a date") == "Invalid date"


def test_format_time_trims_seconds():
    assert dates.format_time("14:30:00") == "14:30"
    assert dates.format_time("9:05") == "09:05"


def test_format_time_returns_input_when_unparseable():
    assert dates.format_time("later") == "later"


def test_format_datetime():
    assert dates.format_datetime("2024-03-25T14:00:00Z") == "Mon, Mar 25, 14:00"
    assert dates.format_datetime("garbage") == "Invalid date/time"


def test_calculate_duration_in_minutes():
    assert dates.calculate_duration("09:00", "10:30") == 90
    assert dates.calculate_duration("09:00", "nope") == 0


def test_floor_and_ceil_to_hour():
    value = datetime(2024, 3, 25, 14, 25, tzinfo=timezone.utc)
    assert dates.floor_to_hour(value) == datetime(2024, 3, 25, 14, 0, tzinfo=timezone.utc)
    assert dates.ceil_to_hour(value) == datetime(2024, 3, 25, 15, 0, tzinfo=timezone.utc)

    on_the_hour = datetime(2024, 3, 25, 14, 0, tzinfo=timezone.utc)
    assert dates.ceil_to_hour(on_the_hour) == on_the_hour


def test_add_hours():
    value = datetime(2024, 3, 25, 23, 0, tzinfo=timezone.utc)
    assert dates.add_hours(value, 2) == datetime(2024, 3, 26, 1, 0, tzinfo=timezone.utc)


def test_is_slot_disabled_up_to_the_next_full_hour():
    now = datetime(2024, 3, 25, 14, 20, tzinfo=timezone.utc)

    assert dates.is_slot_disabled(datetime(2024, 3, 25, 14, 0, tzinfo=timezone.utc), now)
    assert dates.is_slot_disabled(datetime(2024, 3, 25, 15, 0, tzinfo=timezone.utc), now)
    assert not dates.is_slot_disabled(datetime(2024, 3, 25, 16, 0, tzinfo=timezone.utc), now)


def test_is_slot_disabled_accepts_strings():
    now = datetime.now(timezone.utc)
    later = (now + timedelta(days=1)).isoformat()
    assert not dates.is_slot_disabled(later)
