"""WhatsApp click tracking schema"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class WhatsAppTrackRequest(BaseModel):
    page_path: Optional[str] = Field(default=None, max_length=500)
    utm_params: Optional[dict[str, Any]] = None
    consent: bool = True
