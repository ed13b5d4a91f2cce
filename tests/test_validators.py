"""Tests for shared validators, client context and calendar invites."""

import datetime as dt

import pytest
from icalendar import Calendar
from starlette.requests import Request

from app.request_context import extract_utm_params, get_client_ip
from app.services.calendar_invite import booking_start, generate_booking_invite
from app.shared.validators import (
    format_us_phone,
    mask_phone,
    normalize_phone_digits,
    parse_slot_date,
    to_e164,
    validate_slot_time,
)


def _request(headers=None, client=("10.0.0.1", 1234)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


# --- Phone numbers ---


def test_normalize_phone_strips_formatting():
    assert normalize_phone_digits("+1 (801) 555-0123") == "18015550123"


def test_normalize_phone_is_idempotent():
    once = normalize_phone_digits("(801) 555-0123")
    assert normalize_phone_digits(once) == once


@pytest.mark.parametrize("phone", ["555-0123", "1234567890123456", ""])
def test_normalize_phone_rejects_bad_lengths(phone):
    with pytest.raises(ValueError):
        normalize_phone_digits(phone)


def test_to_e164():
    assert to_e164("8015550123") == "+18015550123"
    assert to_e164("18015550123") == "+18015550123"
    assert to_e164("447911123456") == "+447911123456"


def test_phone_display_and_masking():
    assert format_us_phone("18015550123") == "(801) 555-0123"
    assert format_us_phone(None) == "Not provided"
    assert mask_phone("+18015550123") == "***-***-0123"


# --- Dates and times ---


def test_parse_slot_date():
    assert parse_slot_date("2030-01-08") == dt.date(2030, 1, 8)


@pytest.mark.parametrize(
    "value,message",
    [
        ("2025-13-40", "Date is not a valid calendar date"),
        ("2030-02-30", "Date is not a valid calendar date"),
        ("01/08/2030", "Date must be in YYYY-MM-DD format"),
    ],
)
def test_parse_slot_date_rejects(value, message):
    with pytest.raises(ValueError, match=message):
        parse_slot_date(value)


@pytest.mark.parametrize("value", ["24:00", "12:60", "9:00", "noon"])
def test_validate_slot_time_rejects(value):
    with pytest.raises(ValueError):
        validate_slot_time(value)


# --- Client context ---


def test_client_ip_prefers_proxy_headers():
    assert get_client_ip(_request({"CF-Connecting-IP": "203.0.113.1"})) == "203.0.113.1"
    assert get_client_ip(_request({"X-Real-IP": "203.0.113.2"})) == "203.0.113.2"
    assert (
        get_client_ip(_request({"X-Forwarded-For": "203.0.113.3, 10.0.0.2"})) == "203.0.113.3"
    )
    assert get_client_ip(_request()) == "10.0.0.1"
    assert get_client_ip(_request(client=None)) == "unknown"


def test_extract_utm_params_keeps_known_keys():
    raw = {"utm_source": "google", "utm_medium": "", "fbclid": "x", "utm_campaign": "spring"}
    assert extract_utm_params(raw) == {"utm_source": "google", "utm_campaign": "spring"}
    assert extract_utm_params(None) == {}


# --- Calendar invites ---


def test_booking_invite_contents():
    booking = {"id": 42, "slot_date": "2030-01-08", "slot_time": "10:00", "status": "confirmed"}
    lead = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "mobile": "8015550123",
        "address": "123 Main St",
    }

    ics = generate_booking_invite(booking, lead)

    cal = Calendar.from_ical(ics)
    assert str(cal["method"]) == "REQUEST"
    event = next(c for c in cal.walk() if c.name == "VEVENT")
    # 10:00 Mountain Standard Time
    assert event.decoded("dtstart") == dt.datetime(2030, 1, 8, 17, 0, tzinfo=dt.timezone.utc)
    assert event.decoded("dtend") - event.decoded("dtstart") == dt.timedelta(hours=1)
    assert str(event["location"]) == "123 Main St"
    assert "jane@example.com" in str(event["attendee"]).lower()
    assert "booking-42@" in str(event["uid"])


def test_booking_invite_without_lead():
    booking = {"id": 7, "slot_date": "2030-07-08", "slot_time": "08:30", "status": "pending"}

    ics = generate_booking_invite(booking, None)

    event = next(c for c in Calendar.from_ical(ics).walk() if c.name == "VEVENT")
    assert str(event["location"]) == "TBD"
    assert "attendee" not in event


def test_booking_invite_failure_returns_none():
    assert generate_booking_invite({"id": 1, "slot_date": "bad", "slot_time": "10:00"}) is None


def test_booking_start_is_business_local():
    start = booking_start("2030-07-08", "08:30")
    assert start.utcoffset() == dt.timedelta(hours=-6)
