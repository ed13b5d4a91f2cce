"""Lead domain schemas - Pydantic models for validation"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import normalize_phone_digits, validate_email


class LeadAttachment(BaseModel):
    """Base64 file sent inline with a lead. Incomplete entries are skipped, not rejected."""

    filename: Optional[str] = None
    contentType: Optional[str] = None
    data: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.filename and self.contentType and self.data)


class LeadCreate(BaseModel):
    """Schema for a public quote request"""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    mobile: str
    city_id: Optional[int] = None
    service_id: Optional[int] = None
    address: Optional[str] = Field(default=None, max_length=500)
    preferred_date: Optional[str] = Field(default=None, max_length=50)
    preferred_time: Optional[str] = Field(default=None, max_length=50)
    details: Optional[str] = Field(default=None, max_length=1000)
    sms_consent: bool = False
    whatsapp_consent: bool = False
    utm_params: Optional[dict[str, Any]] = None
    page_path: Optional[str] = Field(default=None, max_length=500)
    attachments: Optional[list[LeadAttachment]] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("mobile")
    @classmethod
    def normalize_mobile(cls, v):
        return normalize_phone_digits(v)

    @field_validator("address", "details", "preferred_date", "preferred_time", "page_path")
    @classmethod
    def blank_to_none(cls, v):
        return v or None
