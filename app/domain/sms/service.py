"""SMS service - Outbound texts and SMS click tracking"""

import logging

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import DatabaseError
from ...request_context import ClientContext
from ...services import analytics_service, slack_service, twilio_service
from ...services.notification_service import NotificationBatch
from ...shared.validators import mask_phone, to_e164
from .repository import SmsRepository
from .schemas import SmsSendRequest, SmsSendResult, SmsTrackRequest

logger = logging.getLogger(__name__)


class SmsService:
    """Service layer for SMS business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SmsRepository()

    def render_message(self, data: SmsSendRequest) -> str:
        """Template text for canned types, the sanitized message otherwise"""
        if data.message_type != "custom":
            rendered = twilio_service.generate_message_template(
                data.message_type, data.template_data
            )
            if rendered:
                return rendered
        return data.message

    async def send(
        self, data: SmsSendRequest, context: ClientContext, background_tasks: BackgroundTasks
    ) -> SmsSendResult:
        """
        Record the attempt, call the provider and queue telemetry.

        A provider failure comes back as SmsSendResult(success=False).

        Raises:
            DatabaseError: The interaction row could not be recorded
        """
        to_phone = to_e164(data.phone_number)
        message = self.render_message(data)
        masked = mask_phone(to_phone)
        logger.info(f"📱 SMS request: type={data.message_type}, to={masked}")

        try:
            interaction = self.repo.create_interaction(
                self.db,
                lead_id=data.lead_id,
                phone_number=to_phone,
                message_text=message,
                message_type=data.message_type,
                utm_params=context.utm_params or None,
                page_path=context.page_path,
                consent_given=data.consent,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ Database error while recording SMS interaction: {e}")
            raise DatabaseError(str(e)) from e

        success, message_sid, error = await twilio_service.send_sms(to_phone, message)

        try:
            if success:
                self.repo.mark_sent(self.db, interaction, message_sid)
            else:
                self.repo.mark_failed(self.db, interaction, error)
        except SQLAlchemyError as e:
            # The text already went out (or not); only the bookkeeping is lost
            self.db.rollback()
            logger.error(f"❌ Could not update SMS interaction {interaction.id}: {e}")

        result = SmsSendResult(
            success=success,
            interaction_id=interaction.id,
            message_sid=message_sid,
            error=error,
        )
        if success:
            logger.info(f"✅ SMS {interaction.id} sent to {masked}")
        else:
            logger.warning(f"⚠️ SMS {interaction.id} to {masked} failed: {error}")

        self._queue_notifications(data, result, to_phone, len(message), context, background_tasks)
        return result

    def _queue_notifications(
        self,
        data: SmsSendRequest,
        result: SmsSendResult,
        to_phone: str,
        message_length: int,
        context: ClientContext,
        background_tasks: BackgroundTasks,
    ) -> None:
        batch = NotificationBatch(f"sms #{result.interaction_id}")
        batch.add(
            "analytics_sent",
            analytics_service.track_sms_sent,
            success=result.success,
            message_length=message_length,
            page_path=context.page_path,
            utm_params=context.utm_params,
            error_type=None if result.success else "provider_error",
            client_id=context.client_id,
        )
        batch.add(
            "analytics_event",
            analytics_service.track_custom_event,
            "sms_engagement",
            {
                "event_category": "communication",
                "message_type": data.message_type,
                "phone_number_hash": to_phone[-4:],
                "success": result.success,
                "interaction_id": result.interaction_id,
            },
            client_id=context.client_id,
        )
        batch.add(
            "slack",
            slack_service.notify_sms_result,
            to_phone,
            result.success,
            data.message_type,
            result.error,
            {
                "interaction_id": result.interaction_id,
                "message_sid": result.message_sid,
                "page_path": context.page_path,
            },
        )
        batch.schedule(background_tasks)

    def track_click(
        self, data: SmsTrackRequest, context: ClientContext, background_tasks: BackgroundTasks
    ) -> None:
        """Record an SMS call-to-action click; no provider call"""
        logger.info(f"👆 SMS click tracked (page: {context.page_path or 'unknown'})")
        batch = NotificationBatch("sms click")
        batch.add(
            "analytics_click",
            analytics_service.track_sms_click,
            page_path=context.page_path,
            utm_params=context.utm_params,
            client_id=context.client_id,
        )
        batch.add(
            "analytics_event",
            analytics_service.track_custom_event,
            "sms_click",
            {
                "event_category": "engagement",
                "page_path": context.page_path or "unknown",
                "has_phone": data.phone_number is not None,
                "consent": data.consent,
                **context.utm_params,
            },
            client_id=context.client_id,
        )
        batch.schedule(background_tasks)
