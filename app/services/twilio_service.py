"""
Twilio SMS Service
Sends outbound texts through the Twilio REST API and renders the canned
message templates.
"""

import logging
from typing import Optional

import httpx

from ..config import BUSINESS_NAME, TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER
from ..shared.validators import mask_phone

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


def is_configured() -> bool:
    return bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER)


async def send_sms(to_phone: str, message_body: str) -> tuple[bool, Optional[str], Optional[str]]:
    """
    Send SMS via Twilio

    Args:
        to_phone: Recipient phone number in E.164 format
        message_body: SMS message content

    Returns:
        Tuple of (success, message_sid, error_message)
    """
    if not is_configured():
        logger.warning("⚠️ Twilio credentials not configured, SMS not sent")
        return False, None, "SMS service not configured"

    if not to_phone or not to_phone.startswith("+"):
        return False, None, "Phone number must be in E.164 format (e.g., +18015550123)"

    masked = mask_phone(to_phone)
    data = {"To": to_phone, "From": TWILIO_PHONE_NUMBER, "Body": message_body}

    try:
        logger.info(f"🚀 Sending SMS to Twilio API for {masked}")
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{TWILIO_API_BASE}/Accounts/{TWILIO_ACCOUNT_SID}/Messages.json",
                auth=(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN),
                data=data,
                timeout=10.0,
            )

        logger.info(f"📡 Twilio API response status: {response.status_code}")

        if response.status_code in [200, 201]:
            message_sid = response.json().get("sid")
            logger.info(f"✅ SMS sent successfully to {masked} (SID: {message_sid})")
            return True, message_sid, None

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        error_message = error_data.get("message", f"Twilio returned HTTP {response.status_code}")
        error_code = error_data.get("code")
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        return False, None, f"[{error_code}] {error_message}" if error_code else error_message

    except httpx.HTTPError as e:
        logger.error(f"❌ Twilio API request failed: {str(e)}")
        return False, None, str(e)


# SMS Template Functions
def quote_request_message(name: Optional[str] = None, service: Optional[str] = None) -> str:
    return (
        f"Hi {name or 'there'}! Thanks for your interest in {BUSINESS_NAME}. "
        f"We've received your request for {service or 'our services'} and will text you back "
        f"with a quote within 24 hours. Reply STOP to opt out."
    )


def booking_confirmation_message(
    name: Optional[str] = None, date: Optional[str] = None, time: Optional[str] = None
) -> str:
    return (
        f"Hi {name or 'there'}! Your appointment with {BUSINESS_NAME} is confirmed for "
        f"{date or 'TBD'} at {time or 'TBD'}. We'll text you a reminder 24 hours before. "
        f"Reply STOP to opt out."
    )


def reminder_message(name: Optional[str] = None, time: Optional[str] = None) -> str:
    greeting = f"Hi {name}! " if name else ""
    return (
        f"{greeting}Reminder: You have an appointment with {BUSINESS_NAME} tomorrow at "
        f"{time or 'TBD'}. We'll see you then! Reply STOP to opt out."
    )


def generate_message_template(message_type: str, template_data: Optional[dict] = None) -> Optional[str]:
    """Render a canned message; None for custom messages"""
    data = template_data or {}
    if message_type == "quote_request":
        return quote_request_message(data.get("name"), data.get("service"))
    if message_type == "booking_confirmation":
        return booking_confirmation_message(data.get("name"), data.get("date"), data.get("time"))
    if message_type == "reminder":
        return reminder_message(data.get("name"), data.get("time"))
    return None
