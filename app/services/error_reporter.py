"""
API error telemetry: one GA4 event plus one Slack alert per failed request.
"""

import logging
from typing import Optional

from . import analytics_service, slack_service
from .notification_service import NotificationBatch

logger = logging.getLogger(__name__)


async def report_api_error(
    endpoint: str,
    error: BaseException,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    client_id: Optional[str] = None,
    detail: Optional[str] = None,
) -> dict[str, bool]:
    """
    Fire analytics and Slack for a failed request.

    Each channel is isolated; this never raises, so it is safe to run after
    the error response has been sent.
    """
    error_type = type(error).__name__
    message = str(error) or error_type

    batch = NotificationBatch(f"api_error {endpoint}")
    batch.add(
        "analytics",
        analytics_service.track_api_error,
        endpoint,
        error_type,
        message,
        client_id=client_id,
    )
    batch.add(
        "slack",
        slack_service.notify_error,
        f"{endpoint} failed: {message}",
        {
            "endpoint": endpoint,
            "error_type": error_type,
            "detail": detail,
            "ip": ip,
            "user_agent": user_agent,
        },
    )
    return await batch.run()
