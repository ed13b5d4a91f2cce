"""WhatsApp service - click tracking for the WhatsApp call-to-action"""

import logging

from fastapi import BackgroundTasks

from ...request_context import ClientContext
from ...services import analytics_service, slack_service
from ...services.notification_service import NotificationBatch
from .schemas import WhatsAppTrackRequest

logger = logging.getLogger(__name__)


def track_whatsapp_click(
    data: WhatsAppTrackRequest, context: ClientContext, background_tasks: BackgroundTasks
) -> None:
    logger.info(f"👆 WhatsApp click tracked (page: {context.page_path or 'unknown'})")

    batch = NotificationBatch("whatsapp click")
    batch.add(
        "slack",
        slack_service.notify_whatsapp_click,
        {
            "ip": context.ip,
            "user_agent": context.user_agent,
            "page_path": context.page_path,
            "utm_params": context.utm_params,
        },
    )
    batch.add(
        "analytics_click",
        analytics_service.track_whatsapp_click,
        page_path=context.page_path,
        utm_params=context.utm_params,
        client_id=context.client_id,
    )
    batch.add(
        "analytics_event",
        analytics_service.track_custom_event,
        "whatsapp_engagement",
        {
            "event_category": "engagement",
            "page_path": context.page_path or "unknown",
            "consent": data.consent,
            **context.utm_params,
        },
        client_id=context.client_id,
    )
    batch.schedule(background_tasks)
