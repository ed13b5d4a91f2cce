"""
Email Service using Resend
Customer confirmations built from MJML templates
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import BUSINESS_NAME, EMAIL_FROM_ADDRESS, REPLY_TO_EMAIL, RESEND_API_KEY
from .email_templates import booking_confirmation_template, lead_confirmation_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

if not RESEND_API_KEY:
    logger.warning("⚠️ RESEND_API_KEY not configured - confirmation emails disabled")


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns an object/dict with 'html' and 'errors'
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        attachments: Optional list of {"filename", "content", "content_type"}

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
            "reply_to": REPLY_TO_EMAIL,
        }

        if attachments:
            email_data["attachments"] = [
                {
                    "filename": attachment["filename"],
                    "content": attachment["content"],
                    **(
                        {"content_type": attachment["content_type"]}
                        if attachment.get("content_type")
                        else {}
                    ),
                }
                for attachment in attachments
            ]

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Customer confirmations
# ============================================


async def send_lead_confirmation(lead: dict) -> bool:
    """Thank the customer for a quote request. False when email is unavailable."""
    if not lead.get("email"):
        return False
    if not RESEND_API_KEY:
        logger.debug("Lead confirmation skipped - email not configured")
        return False

    await send_email(
        to=lead["email"],
        subject=f"Thank you for contacting {BUSINESS_NAME} - We'll be in touch soon!",
        mjml_content=lead_confirmation_template(lead),
    )
    return True


async def send_booking_confirmation(
    booking: dict, lead: Optional[dict] = None, ics_content: Optional[str] = None
) -> bool:
    """Confirm an appointment, attaching the calendar invite when one was generated"""
    if not lead or not lead.get("email"):
        return False
    if not RESEND_API_KEY:
        logger.debug("Booking confirmation skipped - email not configured")
        return False

    attachments = None
    if ics_content:
        attachments = [
            {
                "filename": "appointment.ics",
                "content": list(ics_content.encode("utf-8")),
                "content_type": "text/calendar",
            }
        ]

    await send_email(
        to=lead["email"],
        subject=f"Booking Confirmation - {BUSINESS_NAME} | {booking['slot_date']}",
        mjml_content=booking_confirmation_template(
            booking, lead, has_calendar_invite=bool(ics_content)
        ),
        attachments=attachments,
    )
    return True
