"""SMS domain schemas - Pydantic models for validation"""

from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import normalize_phone_digits
from ...utils.sanitization import validate_and_sanitize_input

MessageType = Literal["quote_request", "booking_confirmation", "reminder", "custom"]


class SmsSendRequest(BaseModel):
    phone_number: str
    message: str = Field(min_length=1, max_length=1600)
    consent: bool
    message_type: MessageType = "custom"
    template_data: Optional[dict[str, Any]] = None
    lead_id: Optional[int] = None
    utm_params: Optional[dict[str, Any]] = None
    page_path: Optional[str] = Field(default=None, max_length=500)

    @field_validator("phone_number")
    @classmethod
    def normalize_phone(cls, v):
        return normalize_phone_digits(v)

    @field_validator("message")
    @classmethod
    def sanitize_message(cls, v):
        sanitized = validate_and_sanitize_input(v, max_length=1600)
        if not sanitized:
            raise ValueError("Message cannot be empty after sanitization")
        return sanitized

    @field_validator("consent")
    @classmethod
    def require_consent(cls, v):
        if not v:
            raise ValueError("SMS consent is required")
        return v


class SmsTrackRequest(BaseModel):
    """Click on an SMS call-to-action; nothing is sent"""

    phone_number: Optional[str] = None
    page_path: Optional[str] = Field(default=None, max_length=500)
    utm_params: Optional[dict[str, Any]] = None
    consent: bool = True

    @field_validator("phone_number")
    @classmethod
    def normalize_phone(cls, v):
        if v:
            return normalize_phone_digits(v)
        return None


@dataclass
class SmsSendResult:
    """Outcome of one send attempt. Provider failure is data, not an exception."""

    success: bool
    interaction_id: Optional[int] = None
    message_sid: Optional[str] = None
    error: Optional[str] = None
