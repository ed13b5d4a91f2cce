"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Optional

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15  # E.164 maximum

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def normalize_phone_digits(phone: Optional[str]) -> str:
    """
    Reduce a phone number to its digits and check the length.

    Idempotent: normalizing an already-normalized value returns it unchanged.

    Raises:
        ValueError: If the number has fewer than 10 or more than 15 digits
    """
    digits = re.sub(r"\D", "", phone or "")

    if len(digits) < MIN_PHONE_DIGITS:
        raise ValueError(f"Phone number must have at least {MIN_PHONE_DIGITS} digits")
    if len(digits) > MAX_PHONE_DIGITS:
        raise ValueError(f"Phone number cannot have more than {MAX_PHONE_DIGITS} digits")

    return digits


def to_e164(phone: str) -> str:
    """
    Format a phone number for Twilio.

    10 digits are treated as a US number, 11 digits with a leading 1 already
    carry the country code, anything else is passed through with a plus sign.
    """
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    return f"+{digits}"


def format_us_phone(phone: Optional[str]) -> str:
    """(801) 555-0123 style for display; anything that is not a US number is returned as-is"""
    if not phone:
        return "Not provided"
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone


def mask_phone(phone: Optional[str]) -> str:
    """Hide everything but the last four digits for logs and alerts"""
    digits = re.sub(r"\D", "", phone or "")
    return f"***-***-{digits[-4:]}" if digits else "***"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def parse_slot_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string into a real calendar date.

    Raises:
        ValueError: On a malformed string or an impossible date such as 2025-13-40
    """
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValueError("Date is not a valid calendar date") from None


def validate_slot_time(value: str) -> str:
    """
    Check an HH:MM string is a real time of day.

    Raises:
        ValueError: On a malformed string or an out of range hour or minute
    """
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    hours, minutes = int(value[:2]), int(value[3:])
    if hours > 23 or minutes > 59:
        raise ValueError("Time is not a valid time of day")
    return value
