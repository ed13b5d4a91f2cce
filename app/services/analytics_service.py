"""
Google Analytics 4 Measurement Protocol client
Server-side conversion and engagement events for the intake endpoints.
"""

import logging
import time
import uuid
from typing import Any, Optional

import httpx

from ..config import GA4_API_SECRET, GA4_MEASUREMENT_ID

logger = logging.getLogger(__name__)

GA4_COLLECT_URL = "https://www.google-analytics.com/mp/collect"

if not (GA4_MEASUREMENT_ID and GA4_API_SECRET):
    logger.warning("⚠️ GA4_MEASUREMENT_ID or GA4_API_SECRET not configured - analytics disabled")


def _attribution(utm_params: Optional[dict]) -> dict:
    utm = utm_params or {}
    return {
        "source": utm.get("utm_source") or "direct",
        "medium": utm.get("utm_medium") or "website",
        "campaign": utm.get("utm_campaign") or "organic",
        "term": utm.get("utm_term"),
        "content": utm.get("utm_content"),
    }


async def send_event(
    name: str,
    parameters: dict[str, Any],
    client_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> bool:
    """Send one event. Returns False when GA4 is not configured or rejects it."""
    if not (GA4_MEASUREMENT_ID and GA4_API_SECRET):
        logger.debug(f"Analytics event {name} skipped - GA4 not configured")
        return False

    payload: dict[str, Any] = {
        "client_id": client_id or str(uuid.uuid4()),
        "events": [
            {
                "name": name,
                "params": {
                    **{k: v for k, v in parameters.items() if v is not None},
                    "timestamp_micros": int(time.time() * 1_000_000),
                },
            }
        ],
    }
    if user_id:
        payload["user_id"] = user_id

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                GA4_COLLECT_URL,
                params={"measurement_id": GA4_MEASUREMENT_ID, "api_secret": GA4_API_SECRET},
                json=payload,
                timeout=10.0,
            )
        if response.status_code >= 400:
            logger.error(f"❌ GA4 API error: {response.status_code}")
            return False
    except httpx.HTTPError as e:
        logger.error(f"❌ Failed to send GA4 event {name}: {e}")
        return False

    logger.debug(f"📊 GA4 event sent: {name}")
    return True


async def track_lead(
    lead_id: int,
    has_email: bool,
    service: Optional[str] = None,
    city: Optional[str] = None,
    utm_params: Optional[dict] = None,
    value: int = 100,
    client_id: Optional[str] = None,
) -> bool:
    attribution = _attribution(utm_params)
    return await send_event(
        "generate_lead",
        {
            "currency": "USD",
            "value": value,
            "lead_id": str(lead_id),
            "contact_method": "form",
            "service_type": service or "unknown",
            "city": city or "unknown",
            "source": attribution["source"],
            "medium": attribution["medium"],
            "campaign": attribution["campaign"],
            "has_email": has_email,
            "phone_provided": True,
        },
        client_id=client_id,
    )


async def track_booking(
    booking_id: int,
    slot_date: str,
    slot_time: str,
    status: str,
    lead_id: Optional[int] = None,
    utm_params: Optional[dict] = None,
    value: int = 250,
    client_id: Optional[str] = None,
) -> bool:
    attribution = _attribution(utm_params)
    return await send_event(
        "book_appointment",
        {
            "currency": "USD",
            "value": value,
            "booking_id": str(booking_id),
            "lead_id": str(lead_id) if lead_id else None,
            "appointment_date": slot_date,
            "appointment_time": slot_time,
            "booking_status": status,
            "source": attribution["source"],
            "medium": attribution["medium"],
            "campaign": attribution["campaign"],
            "event_category": "appointment",
            "event_label": f"{slot_date}_{slot_time}",
        },
        client_id=client_id,
    )


async def track_whatsapp_click(
    page_path: Optional[str] = None,
    utm_params: Optional[dict] = None,
    client_id: Optional[str] = None,
) -> bool:
    return await send_event(
        "contact_whatsapp",
        {
            "contact_method": "whatsapp",
            "page_location": page_path or "unknown",
            **_attribution(utm_params),
            "event_category": "engagement",
            "event_label": "whatsapp_click",
        },
        client_id=client_id,
    )


async def track_sms_click(
    page_path: Optional[str] = None,
    utm_params: Optional[dict] = None,
    client_id: Optional[str] = None,
) -> bool:
    return await send_event(
        "contact_sms",
        {
            "contact_method": "sms",
            "page_location": page_path or "unknown",
            **_attribution(utm_params),
            "event_category": "engagement",
            "event_label": "sms_click",
        },
        client_id=client_id,
    )


async def track_sms_sent(
    success: bool,
    message_length: int,
    page_path: Optional[str] = None,
    utm_params: Optional[dict] = None,
    error_type: Optional[str] = None,
    client_id: Optional[str] = None,
) -> bool:
    return await send_event(
        "sms_sent",
        {
            "contact_method": "sms",
            "message_length": message_length,
            "page_location": page_path or "unknown",
            "success": success,
            "error_type": error_type,
            **_attribution(utm_params),
            "event_category": "communication",
            "event_label": "sms_sent_success" if success else "sms_sent_failure",
            "value": 1 if success else 0,
        },
        client_id=client_id,
    )


async def track_form_submission(
    form_type: str,
    success: bool,
    form_data: Optional[dict] = None,
    client_id: Optional[str] = None,
) -> bool:
    form_data = form_data or {}
    return await send_event(
        "form_submit" if success else "form_error",
        {
            "form_type": form_type,
            "form_success": success,
            "form_id": form_data.get("form_id", "unknown"),
            "event_category": "form",
            "event_label": f"{form_type}_{'success' if success else 'error'}",
            **form_data,
        },
        client_id=client_id,
    )


async def track_file_upload(
    file_type: str, file_size: int, success: bool, client_id: Optional[str] = None
) -> bool:
    return await send_event(
        "file_upload" if success else "file_upload_error",
        {
            "file_type": file_type,
            "file_size": file_size,
            "upload_success": success,
            "event_category": "file",
            "event_label": f"{file_type}_upload",
        },
        client_id=client_id,
    )


async def track_api_error(
    endpoint: str, error_type: str, error_message: str, client_id: Optional[str] = None
) -> bool:
    return await send_event(
        "api_error",
        {
            "api_endpoint": endpoint,
            "error_type": error_type,
            "error_message": (error_message or "")[:100],
            "event_category": "api",
            "event_label": f"{endpoint}_error",
        },
        client_id=client_id,
    )


async def track_custom_event(
    event_name: str, parameters: dict[str, Any], client_id: Optional[str] = None
) -> bool:
    return await send_event(
        event_name,
        {**parameters, "event_category": parameters.get("event_category", "custom")},
        client_id=client_id,
    )
