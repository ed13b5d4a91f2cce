"""
Request body parsing and schema validation shared by every intake endpoint.

Handlers read the raw JSON themselves and validate it here so that every
failure, including malformed JSON, goes through the same error envelope and
telemetry.
"""

import json
from typing import Any

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .domain.bookings.schemas import (
    AvailabilityQuery,
    BookingCreate,
    DayAvailabilityRequest,
)
from .domain.leads.schemas import LeadCreate
from .domain.sms.schemas import SmsSendRequest, SmsTrackRequest
from .domain.whatsapp.schemas import WhatsAppTrackRequest
from .errors import MalformedBodyError, ValidationError

SCHEMAS: dict[str, type[BaseModel]] = {
    "lead": LeadCreate,
    "booking": BookingCreate,
    "availability": AvailabilityQuery,
    "day_availability": DayAvailabilityRequest,
    "sms": SmsSendRequest,
    "sms_track": SmsTrackRequest,
    "whatsapp": WhatsAppTrackRequest,
}


async def parse_json_body(request: Request) -> dict[str, Any]:
    """
    Read the request body as a JSON object.

    Raises:
        MalformedBodyError: Empty body, invalid JSON or encoding, or a JSON value that is not an object
    """
    body = await request.body()
    if not body or not body.strip():
        raise MalformedBodyError("Request body is required")

    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        raise MalformedBodyError() from None

    if not isinstance(data, dict):
        raise MalformedBodyError("Request body must be a JSON object")

    return data


def _error_message(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    # pydantic prefixes messages raised from our own validators
    for prefix in ("Value error, ", "Assertion failed, "):
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def format_errors(exc: PydanticValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into [{field, message}]"""
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())) or "body",
            "message": _error_message(error),
        }
        for error in exc.errors()
    ]


def validate_payload(schema_name: str, raw: Any) -> BaseModel:
    """
    Validate raw input against a named schema.

    Every field error is collected, not just the first.

    Raises:
        ValidationError: With the field-level errors attached
    """
    schema = SCHEMAS[schema_name]
    try:
        return schema.model_validate(raw)
    except PydanticValidationError as e:
        errors = format_errors(e)
        summary = ", ".join(f"{err['field']}: {err['message']}" for err in errors)
        raise ValidationError(f"Validation failed: {summary}", errors=errors) from None
