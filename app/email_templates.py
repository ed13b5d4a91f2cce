"""
MJML Email Templates
Customer-facing confirmations for lead submissions and bookings
"""

from html import escape
from typing import Optional

from .config import BUSINESS_NAME, BUSINESS_PHONE, REPLY_TO_EMAIL, SITE_URL
from .shared.validators import format_us_phone

# Brand colors - desert orange/charcoal
THEME = {
    "primary": "#c2410c",
    "primary_dark": "#9a3412",
    "primary_light": "#ffedd5",
    "background": "#faf7f2",
    "card_bg": "#ffffff",
    "text_primary": "#1c1917",
    "text_secondary": "#44403c",
    "text_muted": "#78716c",
    "border": "#e7e5e4",
    "success": "#15803d",
}


def _detail_row(label: str, value: Optional[str]) -> str:
    if not value:
        return ""
    return f"<strong>{label}:</strong> {escape(str(value))}<br/>"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['primary']}" padding="28px 20px">
          <mj-column>
            <mj-text align="center" font-size="22px" font-weight="700" color="#ffffff" padding="0">
              {BUSINESS_NAME}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="{THEME['card_bg']}" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" padding="0">
              Call us at {BUSINESS_PHONE} or email {REPLY_TO_EMAIL}
            </mj-text>
            <mj-text align="center" font-size="13px" color="#a8a29e" padding="12px 0 0 0">
              {BUSINESS_NAME} | Professional Construction Services
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def lead_confirmation_template(lead: dict) -> str:
    """Thank-you email after a quote request"""
    preferred = None
    if lead.get("preferred_date") and lead.get("preferred_time"):
        preferred = f"{lead['preferred_date']} at {lead['preferred_time']}"

    whatsapp_note = ""
    if lead.get("whatsapp_consent"):
        whatsapp_note = """
    <mj-text>
      You can also reach us on <strong>WhatsApp</strong> at the same number.
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {escape(lead['name'])},
    </mj-text>

    <mj-text>
      Thank you for reaching out to {BUSINESS_NAME}! We've received your request and our
      team will be in touch with you soon.
    </mj-text>

    <mj-text background-color="{THEME['primary_light']}" padding="16px 20px">
      {_detail_row("Name", lead["name"])}
      {_detail_row("Phone", format_us_phone(lead.get("mobile")))}
      {_detail_row("Email", lead.get("email"))}
      {_detail_row("Address", lead.get("address"))}
      {_detail_row("Preferred Date/Time", preferred)}
      {_detail_row("Additional Details", lead.get("details"))}
      <strong>Reference ID:</strong> #{lead['id']}
    </mj-text>

    <mj-text>
      <strong>What happens next?</strong>
    </mj-text>

    <mj-text padding="0 0 0 20px">
      • Our team will review your request within 24 hours<br/>
      • We'll contact you by phone or email to discuss your project<br/>
      • We'll schedule a consultation if needed
    </mj-text>
    {whatsapp_note}
    """

    return get_base_template(
        title="We received your request",
        preview_text=f"Thanks for contacting {BUSINESS_NAME}",
        content_sections=content,
        cta_url=f"{SITE_URL}/booking",
        cta_label="Book an Appointment",
    )


def booking_confirmation_template(
    booking: dict, lead: Optional[dict] = None, has_calendar_invite: bool = False
) -> str:
    """Appointment confirmation, optionally pointing at the attached invite"""
    name = escape(lead["name"]) if lead and lead.get("name") else "Valued Customer"

    invite_note = ""
    if has_calendar_invite:
        invite_note = """
    <mj-text>
      A calendar invite is attached so you can add the appointment to your calendar.
    </mj-text>
    """

    content = f"""
    <mj-text>
      Hi {name},
    </mj-text>

    <mj-text>
      Great news! Your appointment has been scheduled with {BUSINESS_NAME}.
    </mj-text>

    <mj-text background-color="{THEME['primary_light']}" padding="16px 20px">
      {_detail_row("Date", booking["slot_date"])}
      {_detail_row("Time", booking["slot_time"])}
      {_detail_row("Status", booking["status"].upper())}
      <strong>Booking ID:</strong> #{booking['id']}
    </mj-text>
    {invite_note}
    <mj-text padding="0 0 0 20px">
      • Please be available 15 minutes before your scheduled time<br/>
      • Our team will call you to confirm 24 hours in advance<br/>
      • To reschedule, contact us at least 24 hours ahead
    </mj-text>
    """

    return get_base_template(
        title="Your appointment is booked",
        preview_text=f"Appointment on {booking['slot_date']} at {booking['slot_time']}",
        content_sections=content,
    )
