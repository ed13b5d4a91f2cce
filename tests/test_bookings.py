"""Tests for booking creation, slot availability and cancellation."""

from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import OperationalError

from app.domain.bookings.repository import BookingRepository
from app.models import Booking, Lead

# Tuesday after the frozen clock in conftest
NEXT_BUSINESS_DAY = "2030-01-08"


def _book(client, slot_time="10:00", **extra):
    payload = {"slot_date": NEXT_BUSINESS_DAY, "slot_time": slot_time, **extra}
    return client.post("/api/bookings", json=payload)


def test_create_booking_returns_appointment(client):
    resp = _book(client)

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert isinstance(data["bookingId"], int)
    assert data["appointment"] == {"date": NEXT_BUSINESS_DAY, "time": "10:00", "status": "pending"}
    assert data["confirmationSent"] is False
    assert data["calendarInvite"] is True


def test_second_booking_for_same_slot_conflicts(client, db):
    assert _book(client).status_code == 201

    resp = _book(client, status="confirmed")

    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "SLOT_UNAVAILABLE"
    assert body["error"] == "The selected time slot is no longer available"
    assert db.query(Booking).count() == 1


def test_unique_index_catches_race_past_availability_check(client, db):
    """Both requests pass the read check; the index turns the loser into a 409."""
    assert _book(client).status_code == 201

    with patch.object(BookingRepository, "is_slot_available", return_value=True):
        resp = _book(client)

    assert resp.status_code == 409
    assert resp.json()["code"] == "SLOT_UNAVAILABLE"
    db.expire_all()
    assert db.query(Booking).count() == 1


def test_cancel_releases_slot(client):
    booking_id = _book(client).json()["data"]["bookingId"]

    resp = client.post(f"/api/bookings/{booking_id}/cancel")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelled"

    check = client.get("/api/bookings", params={"date": NEXT_BUSINESS_DAY, "time": "10:00"})
    assert check.json()["data"]["available"] is True

    assert _book(client).status_code == 201


def test_cancel_is_idempotent(client):
    booking_id = _book(client).json()["data"]["bookingId"]

    first = client.post(f"/api/bookings/{booking_id}/cancel")
    second = client.post(f"/api/bookings/{booking_id}/cancel")

    assert first.status_code == second.status_code == 200
    assert second.json()["data"]["status"] == "cancelled"


def test_cancel_unknown_booking_is_not_found(client):
    resp = client.post("/api/bookings/9999/cancel")

    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_booking_in_the_past_rejected(client):
    # 09:00 today is before the frozen 09:15
    resp = client.post("/api/bookings", json={"slot_date": "2030-01-07", "slot_time": "09:00"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["error"] == "Cannot book appointments in the past"
    assert body["errors"][0]["field"] == "slot_date"


def test_booking_status_cannot_be_cancelled_on_create(client):
    resp = _book(client, status="cancelled")

    assert resp.status_code == 400
    fields = [e["field"] for e in resp.json()["errors"]]
    assert "status" in fields


def test_booking_rejects_bad_date_and_time_together(client):
    resp = client.post("/api/bookings", json={"slot_date": "2030-02-30", "slot_time": "25:00"})

    assert resp.status_code == 400
    errors = {e["field"]: e["message"] for e in resp.json()["errors"]}
    assert errors["slot_date"] == "Date is not a valid calendar date"
    assert errors["slot_time"] == "Time is not a valid time of day"


def test_slot_availability_requires_both_parameters(client):
    resp = client.get("/api/bookings", params={"date": NEXT_BUSINESS_DAY})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Date and time parameters are required"


def test_slot_availability_rejects_impossible_date(client):
    resp = client.get("/api/bookings", params={"date": "2025-13-40", "time": "10:00"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["errors"] == [{"field": "date", "message": "Date is not a valid calendar date"}]


def test_slot_availability_reports_taken_slot(client):
    _book(client)

    resp = client.get("/api/bookings", params={"date": NEXT_BUSINESS_DAY, "time": "10:00"})

    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "date": NEXT_BUSINESS_DAY,
        "time": "10:00",
        "available": False,
        "message": "Slot is not available",
    }


def test_booking_notifications_with_lead_email(client, db):
    lead = Lead(name="Jane Doe", email="jane@example.com", mobile="8015550123")
    db.add(lead)
    db.commit()
    lead_id = lead.id

    with patch(
        "app.domain.bookings.service.send_booking_confirmation", new_callable=AsyncMock
    ) as mock_email, patch(
        "app.services.slack_service.notify_new_booking", new_callable=AsyncMock
    ) as mock_slack, patch(
        "app.services.analytics_service.track_booking", new_callable=AsyncMock
    ) as mock_track:
        resp = _book(client, lead_id=lead_id)

    assert resp.status_code == 201
    assert resp.json()["data"]["confirmationSent"] is True

    booking, lead_data, ics = mock_email.call_args.args
    assert booking["lead_id"] == lead_id
    assert lead_data["email"] == "jane@example.com"
    assert "BEGIN:VCALENDAR" in ics
    mock_slack.assert_called_once()
    assert mock_track.call_args.kwargs["booking_id"] == booking["id"]


def test_booking_with_missing_lead_still_succeeds(client):
    with patch(
        "app.domain.bookings.service.send_booking_confirmation", new_callable=AsyncMock
    ) as mock_email:
        resp = _book(client, lead_id=4242)

    assert resp.status_code == 201
    assert resp.json()["data"]["confirmationSent"] is False
    mock_email.assert_not_called()


def test_malformed_json_body(client):
    resp = client.post(
        "/api/bookings", content="{not json", headers={"Content-Type": "application/json"}
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "INVALID_JSON"


def test_options_returns_ok(client):
    resp = client.options("/api/bookings")

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "data": {"message": "OK"}}


def test_storage_failure_on_create_hides_detail(client, db):
    failure = OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))
    with patch.object(BookingRepository, "create_booking", side_effect=failure), patch(
        "app.services.slack_service.notify_new_booking", new_callable=AsyncMock
    ) as mock_slack, patch(
        "app.services.analytics_service.track_booking", new_callable=AsyncMock
    ) as mock_track:
        resp = _book(client)

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": "Database operation failed",
        "code": "DATABASE_ERROR",
    }
    mock_slack.assert_not_called()
    mock_track.assert_not_called()
    assert db.query(Booking).count() == 0


def test_booking_conversion_carries_lead_attribution(client, db):
    lead = Lead(
        name="Jane Doe",
        mobile="8015550123",
        utm_params={"utm_source": "google", "utm_medium": "cpc", "utm_campaign": "spring"},
    )
    db.add(lead)
    db.commit()
    lead_id = lead.id

    with patch(
        "app.services.analytics_service.send_event", new=AsyncMock(return_value=True)
    ) as mock_send:
        resp = _book(client, lead_id=lead_id)

    assert resp.status_code == 201
    conversion = next(c for c in mock_send.call_args_list if c.args[0] == "book_appointment")
    params = conversion.args[1]
    assert params["source"] == "google"
    assert params["medium"] == "cpc"
    assert params["campaign"] == "spring"
