"""Tests for lead intake, attachments and notification fan-out."""

from unittest.mock import AsyncMock, MagicMock, patch

from app.models import Attachment, Lead
from app.services.storage_service import StorageError

PNG_DATA = "data:image/png;base64,aGVsbG8gd29ybGQ="


def test_create_lead_normalizes_and_stores(client, db, lead_payload):
    resp = client.post("/api/leads", json=lead_payload)

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["message"] == "Lead submitted successfully"
    assert body["data"]["confirmationSent"] is True
    assert "attachments" not in body["data"]

    lead = db.query(Lead).filter(Lead.id == body["data"]["leadId"]).one()
    assert lead.mobile == "18015550123"
    assert lead.email == "jane@example.com"
    assert lead.utm_params == {"utm_source": "google", "utm_medium": "cpc"}


def test_create_lead_requires_name_and_mobile(client):
    resp = client.post("/api/leads", json={"email": "not-an-email", "mobile": "555"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in body["errors"]}
    assert fields == {"name", "email", "mobile"}
    assert body["error"].startswith("Validation failed: ")


def test_blank_email_is_treated_as_missing(client, lead_payload):
    lead_payload["email"] = "   "

    resp = client.post("/api/leads", json=lead_payload)

    assert resp.status_code == 201
    assert resp.json()["data"]["confirmationSent"] is False


def test_attachment_failure_does_not_stop_the_rest(client, db, lead_payload):
    lead_payload["attachments"] = [
        {"filename": f"photo{i}.png", "contentType": "image/png", "data": PNG_DATA}
        for i in range(1, 4)
    ]
    uploads = [
        "https://files.example.com/leads/1/a.png",
        StorageError("R2 unavailable"),
        "https://files.example.com/leads/1/c.png",
    ]

    with patch("app.services.storage_service.upload_attachment", side_effect=uploads) as mock_upload:
        resp = client.post("/api/leads", json=lead_payload)

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["attachments"] == [
        "https://files.example.com/leads/1/a.png",
        "https://files.example.com/leads/1/c.png",
    ]
    assert mock_upload.call_count == 3
    assert mock_upload.call_args_list[0].args[0] == b"hello world"

    rows = db.query(Attachment).filter(Attachment.lead_id == data["leadId"]).all()
    assert len(rows) == 2
    assert {row.type for row in rows} == {"photo"}


def test_incomplete_attachment_skipped(client, lead_payload):
    lead_payload["attachments"] = [{"filename": "photo.png", "contentType": "image/png"}]

    with patch("app.services.storage_service.upload_attachment") as mock_upload:
        resp = client.post("/api/leads", json=lead_payload)

    assert resp.status_code == 201
    assert "attachments" not in resp.json()["data"]
    mock_upload.assert_not_called()


def test_slack_raising_synchronously_does_not_block_other_channels(client, lead_payload):
    with patch(
        "app.services.slack_service.notify_new_lead",
        new=MagicMock(side_effect=RuntimeError("slack exploded")),
    ), patch(
        "app.domain.leads.service.send_lead_confirmation", new_callable=AsyncMock
    ) as mock_email, patch(
        "app.services.analytics_service.track_lead", new_callable=AsyncMock
    ) as mock_track_lead, patch(
        "app.services.analytics_service.track_form_submission", new_callable=AsyncMock
    ) as mock_track_form:
        resp = client.post("/api/leads", json=lead_payload)

    assert resp.status_code == 201
    mock_email.assert_awaited_once()
    mock_track_lead.assert_awaited_once()
    mock_track_form.assert_awaited_once()


def test_lead_notifications_receive_names_and_attribution(client, lead_payload):
    with patch(
        "app.services.slack_service.notify_new_lead", new_callable=AsyncMock
    ) as mock_slack, patch(
        "app.services.analytics_service.track_lead", new_callable=AsyncMock
    ) as mock_track_lead:
        resp = client.post("/api/leads", json=lead_payload, headers={"X-Client-Id": "ga-123"})

    assert resp.status_code == 201
    lead_data, metadata = mock_slack.call_args.args
    assert lead_data["name"] == "Jane Doe"
    assert metadata["service_name"] == "Kitchen Remodeling"
    assert metadata["city_name"] == "Salt Lake City"

    kwargs = mock_track_lead.call_args.kwargs
    assert kwargs["client_id"] == "ga-123"
    assert kwargs["utm_params"] == {"utm_source": "google", "utm_medium": "cpc"}


def test_unknown_service_name_falls_back(client, lead_payload):
    lead_payload.pop("service_id")
    lead_payload.pop("city_id")

    with patch("app.services.slack_service.notify_new_lead", new_callable=AsyncMock) as mock_slack:
        client.post("/api/leads", json=lead_payload)

    metadata = mock_slack.call_args.args[1]
    assert metadata["service_name"] == "Unknown Service"
    assert metadata["city_name"] == "Unknown City"


def test_lead_body_must_be_an_object(client):
    resp = client.post("/api/leads", json=["Jane Doe"])

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_JSON"


def test_empty_body_rejected(client):
    resp = client.post("/api/leads", content=b"", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Request body is required"


def test_stale_city_and_service_ids_fall_back_to_unknown(client, db, lead_payload):
    lead_payload["city_id"] = 999
    lead_payload["service_id"] = 998

    with patch("app.services.slack_service.notify_new_lead", new_callable=AsyncMock) as mock_slack:
        resp = client.post("/api/leads", json=lead_payload)

    assert resp.status_code == 201
    lead = db.query(Lead).filter(Lead.id == resp.json()["data"]["leadId"]).one()
    assert lead.city_id == 999
    metadata = mock_slack.call_args.args[1]
    assert metadata["city_name"] == "Unknown City"
    assert metadata["service_name"] == "Unknown Service"
