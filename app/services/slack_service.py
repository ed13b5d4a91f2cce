"""
Slack Notification Service
Posts lead, booking and engagement alerts to a Slack incoming webhook.
"""

import json
import logging
import time
from typing import Any, Optional

import httpx

from ..config import (
    BUSINESS_NAME,
    SLACK_ALERTS_CHANNEL,
    SLACK_BOT_USERNAME,
    SLACK_DEFAULT_CHANNEL,
    SLACK_WEBHOOK_URL,
)
from ..shared.validators import format_us_phone, mask_phone

logger = logging.getLogger(__name__)

BOOKING_STATUS_COLORS = {
    "pending": "#ff9f40",
    "confirmed": "#36a64f",
    "cancelled": "#ff6384",
}

if not SLACK_WEBHOOK_URL:
    logger.warning("⚠️ SLACK_WEBHOOK_URL not configured - Slack notifications disabled")


def _field(title: str, value: Any, short: bool = True) -> dict:
    return {"title": title, "value": str(value), "short": short}


def _utm_lines(utm_params: Optional[dict]) -> str:
    if not utm_params or not isinstance(utm_params, dict):
        return ""
    return "\n".join(f"{key}: {value}" for key, value in utm_params.items())


def _truncate(value: Optional[str], limit: int = 100) -> str:
    if not value:
        return ""
    return value[:limit] + ("..." if len(value) > limit else "")


async def send_to_slack(
    text: str,
    attachments: list[dict],
    channel: Optional[str] = None,
    icon_emoji: str = ":construction:",
) -> bool:
    """Post one message to the webhook. Returns False when disabled or rejected."""
    if not SLACK_WEBHOOK_URL:
        logger.debug("Slack notification skipped - webhook not configured")
        return False

    payload = {
        "channel": channel or SLACK_DEFAULT_CHANNEL,
        "username": SLACK_BOT_USERNAME,
        "icon_emoji": icon_emoji,
        "text": text,
        "attachments": attachments,
    }

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(SLACK_WEBHOOK_URL, json=payload, timeout=10.0)
        if response.status_code >= 400:
            logger.error(f"❌ Slack webhook error: {response.status_code} {response.text[:200]}")
            return False
    except httpx.HTTPError as e:
        logger.error(f"❌ Failed to send Slack notification: {e}")
        return False

    logger.info(f"💬 Slack notification sent: {text}")
    return True


async def notify_new_lead(lead: dict, metadata: Optional[dict] = None) -> bool:
    metadata = metadata or {}
    fields = [
        _field("Name", lead["name"]),
        _field("Phone", format_us_phone(lead.get("mobile"))),
    ]

    if lead.get("email"):
        fields.append(_field("Email", lead["email"]))
    if metadata.get("service_name"):
        fields.append(_field("Service", metadata["service_name"]))
    if metadata.get("city_name"):
        fields.append(_field("City", metadata["city_name"]))
    if lead.get("address"):
        fields.append(_field("Address", lead["address"], short=False))
    if lead.get("preferred_date") and lead.get("preferred_time"):
        fields.append(
            _field("Preferred Date/Time", f"{lead['preferred_date']} at {lead['preferred_time']}")
        )
    if lead.get("details"):
        fields.append(_field("Details", lead["details"], short=False))

    consent = []
    if lead.get("sms_consent"):
        consent.append("SMS")
    if lead.get("whatsapp_consent"):
        consent.append("WhatsApp")
    if consent:
        fields.append(_field("Consent Given", ", ".join(consent)))

    utm_info = _utm_lines(lead.get("utm_params"))
    if utm_info:
        fields.append(_field("Source", utm_info, short=False))
    if lead.get("page_path"):
        fields.append(_field("Page", lead["page_path"]))
    if metadata.get("attachment_count"):
        fields.append(_field("Attachments", metadata["attachment_count"]))

    return await send_to_slack(
        text=":bell: New Lead Received!",
        icon_emoji=":construction_worker:",
        attachments=[
            {
                "color": "#36a64f",
                "title": f"Lead #{lead['id']}",
                "fields": fields,
                "footer": BUSINESS_NAME,
                "ts": int(time.time()),
            }
        ],
    )


async def notify_new_booking(
    booking: dict, lead: Optional[dict] = None, metadata: Optional[dict] = None
) -> bool:
    metadata = metadata or {}
    fields = [
        _field("Booking Date", booking["slot_date"]),
        _field("Time Slot", booking["slot_time"]),
        _field("Status", booking["status"].upper()),
    ]

    if booking.get("lead_id"):
        fields.append(_field("Lead ID", f"#{booking['lead_id']}"))
    if lead:
        fields.append(_field("Customer", lead.get("name") or "Unknown"))
        fields.append(_field("Phone", format_us_phone(lead.get("mobile"))))
        if lead.get("email"):
            fields.append(_field("Email", lead["email"]))
        if lead.get("address"):
            fields.append(_field("Address", lead["address"], short=False))
    if metadata.get("ip"):
        fields.append(_field("IP Address", metadata["ip"]))
    if metadata.get("user_agent"):
        fields.append(_field("User Agent", _truncate(metadata["user_agent"]), short=False))

    return await send_to_slack(
        text=":calendar: New Booking Created!",
        icon_emoji=":calendar:",
        attachments=[
            {
                "color": BOOKING_STATUS_COLORS.get(booking["status"], "#ff9f40"),
                "title": f"Booking #{booking['id']}",
                "fields": fields,
                "footer": BUSINESS_NAME,
                "ts": int(time.time()),
            }
        ],
    )


async def notify_whatsapp_click(metadata: dict) -> bool:
    fields = []
    if metadata.get("ip"):
        fields.append(_field("IP Address", metadata["ip"]))
    if metadata.get("user_agent"):
        fields.append(_field("User Agent", _truncate(metadata["user_agent"]), short=False))
    if metadata.get("page_path"):
        fields.append(_field("Page", metadata["page_path"]))
    utm_info = _utm_lines(metadata.get("utm_params"))
    if utm_info:
        fields.append(_field("UTM Parameters", utm_info, short=False))

    return await send_to_slack(
        text=":phone: WhatsApp Click Tracked",
        icon_emoji=":phone:",
        attachments=[
            {
                "color": "#25D366",
                "title": "WhatsApp Engagement",
                "fields": fields,
                "footer": BUSINESS_NAME,
                "ts": int(time.time()),
            }
        ],
    )


async def notify_sms_result(
    phone_number: str,
    success: bool,
    message_type: str,
    error: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> bool:
    """Operational alert for every outbound SMS, masked to the last four digits"""
    metadata = metadata or {}
    fields = [
        _field("Phone", mask_phone(phone_number)),
        _field("Message Type", message_type),
    ]
    if metadata.get("interaction_id"):
        fields.append(_field("Interaction", f"#{metadata['interaction_id']}"))
    if metadata.get("message_sid"):
        fields.append(_field("Twilio SID", metadata["message_sid"]))
    if error:
        fields.append(_field("Error", error, short=False))
    if metadata.get("page_path"):
        fields.append(_field("Page", metadata["page_path"]))

    return await send_to_slack(
        text=":speech_balloon: SMS sent" if success else ":x: SMS failed to send",
        icon_emoji=":speech_balloon:",
        channel=None if success else SLACK_ALERTS_CHANNEL,
        attachments=[
            {
                "color": "#36a64f" if success else "#ff0000",
                "title": "SMS Delivery",
                "fields": fields,
                "footer": BUSINESS_NAME,
                "ts": int(time.time()),
            }
        ],
    )


async def notify_error(error: str, context: Optional[dict] = None) -> bool:
    fields = [_field("Error Message", error, short=False)]
    if context:
        fields.append(_field("Context", json.dumps(context, indent=2, default=str), short=False))

    return await send_to_slack(
        text=":warning: API Error Detected",
        icon_emoji=":warning:",
        channel=SLACK_ALERTS_CHANNEL,
        attachments=[
            {
                "color": "#ff0000",
                "title": "API Error",
                "fields": fields,
                "footer": f"{BUSINESS_NAME} API",
                "ts": int(time.time()),
            }
        ],
    )
