"""
Calendar invite (.ics) generation for confirmed bookings.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from icalendar import Calendar, Event, vCalAddress, vText

from ..config import BUSINESS_NAME, BUSINESS_PHONE, BUSINESS_TIMEZONE, ORGANIZER_EMAIL

logger = logging.getLogger(__name__)

APPOINTMENT_DURATION = timedelta(hours=1)
PRODUCT_ID = f"-//{BUSINESS_NAME}//Booking System//EN"


def booking_start(slot_date: str, slot_time: str) -> datetime:
    """Slot start as an aware datetime in the business timezone"""
    naive = datetime.strptime(f"{slot_date} {slot_time}", "%Y-%m-%d %H:%M")
    return naive.replace(tzinfo=ZoneInfo(BUSINESS_TIMEZONE))


def _description(lead: Optional[dict]) -> str:
    lines = [f"Your appointment with {BUSINESS_NAME}."]
    if lead:
        lines.append("")
        lines.append("Contact Information:")
        lines.append(f"Name: {lead.get('name') or 'N/A'}")
        lines.append(f"Phone: {lead.get('mobile') or 'N/A'}")
        lines.append(f"Email: {lead.get('email') or 'N/A'}")
        if lead.get("address"):
            lines.append(f"Address: {lead['address']}")
    lines.append("")
    lines.append(f"Questions? Call us at {BUSINESS_PHONE}.")
    return "\n".join(lines)


def generate_booking_invite(booking: dict, lead: Optional[dict] = None) -> Optional[str]:
    """
    Build a one-hour VEVENT for the booking.

    Returns the iCalendar text, or None when the invite cannot be built. A
    missing invite never blocks the booking.
    """
    try:
        start = booking_start(booking["slot_date"], booking["slot_time"]).astimezone(timezone.utc)

        cal = Calendar()
        cal.add("prodid", PRODUCT_ID)
        cal.add("version", "2.0")
        cal.add("method", "REQUEST")

        event = Event()
        event.add("uid", f"booking-{booking['id']}@{ORGANIZER_EMAIL.split('@')[-1]}")
        event.add("dtstamp", datetime.now(timezone.utc))
        event.add("dtstart", start)
        event.add("dtend", start + APPOINTMENT_DURATION)
        event.add("summary", f"{BUSINESS_NAME} Appointment")
        event.add("description", _description(lead))
        event.add("location", (lead or {}).get("address") or "TBD")
        event.add("status", "CONFIRMED")
        event.add("transp", "OPAQUE")

        organizer = vCalAddress(f"MAILTO:{ORGANIZER_EMAIL}")
        organizer.params["cn"] = vText(BUSINESS_NAME)
        event["organizer"] = organizer

        if lead and lead.get("email"):
            attendee = vCalAddress(f"MAILTO:{lead['email']}")
            attendee.params["cn"] = vText(lead.get("name") or lead["email"])
            attendee.params["role"] = vText("REQ-PARTICIPANT")
            attendee.params["partstat"] = vText("NEEDS-ACTION")
            attendee.params["rsvp"] = vText("TRUE")
            event.add("attendee", attendee, encode=0)

        cal.add_component(event)
        return cal.to_ical().decode("utf-8")
    except Exception as e:
        logger.error(f"❌ Failed to generate calendar invite for booking {booking.get('id')}: {e}")
        return None
