"""Tests for the notification fan-out and error telemetry."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.errors import DatabaseError
from app.services.error_reporter import report_api_error
from app.services.notification_service import NotificationBatch


@pytest.mark.asyncio
async def test_batch_isolates_every_kind_of_failure():
    ok = AsyncMock(return_value=True)
    batch = NotificationBatch("test")
    batch.add("sync_raise", MagicMock(side_effect=RuntimeError("boom")))
    batch.add("async_raise", AsyncMock(side_effect=ValueError("bad payload")))
    batch.add("rejected", AsyncMock(return_value=False))
    batch.add("sync_ok", MagicMock(return_value=None))
    batch.add("ok", ok, "lead", metadata={"ip": "1.2.3.4"})

    results = await batch.run()

    assert results == {
        "sync_raise": False,
        "async_raise": False,
        "rejected": False,
        "sync_ok": True,
        "ok": True,
    }
    ok.assert_awaited_once_with("lead", metadata={"ip": "1.2.3.4"})


@pytest.mark.asyncio
async def test_empty_batch():
    assert await NotificationBatch("empty").run() == {}


def test_schedule_skips_empty_batch():
    background_tasks = MagicMock()

    NotificationBatch("empty").schedule(background_tasks)
    background_tasks.add_task.assert_not_called()

    batch = NotificationBatch("one").add("slack", AsyncMock())
    batch.schedule(background_tasks)
    background_tasks.add_task.assert_called_once_with(batch.run)


@pytest.mark.asyncio
async def test_error_report_goes_to_analytics_and_slack():
    with patch(
        "app.services.analytics_service.track_api_error", new_callable=AsyncMock
    ) as mock_track, patch(
        "app.services.slack_service.notify_error", new_callable=AsyncMock
    ) as mock_slack:
        results = await report_api_error(
            "/api/leads",
            DatabaseError("connection refused"),
            ip="203.0.113.7",
            user_agent="pytest",
            detail="connection refused",
        )

    assert results == {"analytics": True, "slack": True}
    assert mock_track.call_args.args == (
        "/api/leads",
        "DatabaseError",
        "Database operation failed",
    )
    context = mock_slack.call_args.args[1]
    assert context["detail"] == "connection refused"
    assert context["ip"] == "203.0.113.7"


@pytest.mark.asyncio
async def test_error_report_survives_slack_outage():
    with patch(
        "app.services.analytics_service.track_api_error", new_callable=AsyncMock
    ) as mock_track, patch(
        "app.services.slack_service.notify_error",
        new=AsyncMock(side_effect=RuntimeError("webhook down")),
    ):
        results = await report_api_error("/api/sms", ValueError("bad"))

    assert results == {"analytics": True, "slack": False}
    mock_track.assert_awaited_once()


def test_validation_error_response_carries_telemetry(client):
    with patch(
        "app.services.analytics_service.track_api_error", new_callable=AsyncMock
    ) as mock_track:
        resp = client.post("/api/leads", json={"name": "Jane"})

    assert resp.status_code == 400
    endpoint, error_type = mock_track.call_args.args[:2]
    assert endpoint == "/api/leads"
    assert error_type == "ValidationError"


def test_database_failure_hides_detail(client, lead_payload):
    from sqlalchemy.exc import OperationalError

    from app.domain.leads.repository import LeadRepository

    failure = OperationalError("INSERT INTO leads", {}, Exception("disk I/O error"))
    with patch.object(LeadRepository, "create_lead", side_effect=failure), patch(
        "app.services.slack_service.notify_error", new_callable=AsyncMock
    ) as mock_slack:
        resp = client.post("/api/leads", json=lead_payload)

    assert resp.status_code == 500
    body = resp.json()
    assert body == {"success": False, "error": "Database operation failed", "code": "DATABASE_ERROR"}
    assert "disk I/O error" in mock_slack.call_args.args[1]["detail"]


def test_lead_confirmation_compiles_to_html():
    from app.email_service import compile_mjml_to_html
    from app.email_templates import lead_confirmation_template

    lead = {"id": 7, "name": "Jane Doe", "mobile": "8015550123"}

    html = compile_mjml_to_html(lead_confirmation_template(lead))

    assert "<html" in html.lower()
    assert "Jane Doe" in html
    assert "<mj-" not in html
