"""Lead service - Quote request intake, attachments and lead notifications"""

import base64
import binascii
import logging
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...email_service import send_lead_confirmation
from ...errors import DatabaseError
from ...models import Lead
from ...request_context import ClientContext, extract_utm_params
from ...services import analytics_service, slack_service, storage_service
from ...services.notification_service import NotificationBatch
from .repository import LeadRepository
from .schemas import LeadAttachment, LeadCreate

logger = logging.getLogger(__name__)

UNKNOWN_SERVICE = "Unknown Service"
UNKNOWN_CITY = "Unknown City"


def lead_snapshot(lead: Lead) -> dict:
    """Plain copy for notifications that run after the session is closed"""
    return {
        "id": lead.id,
        "name": lead.name,
        "email": lead.email,
        "mobile": lead.mobile,
        "city_id": lead.city_id,
        "service_id": lead.service_id,
        "address": lead.address,
        "preferred_date": lead.preferred_date,
        "preferred_time": lead.preferred_time,
        "details": lead.details,
        "sms_consent": lead.sms_consent,
        "whatsapp_consent": lead.whatsapp_consent,
        "utm_params": lead.utm_params,
        "page_path": lead.page_path,
    }


def decode_attachment(data: str) -> bytes:
    """Base64 payload, with or without a data: URL prefix"""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise storage_service.StorageError(f"Attachment is not valid base64: {e}") from e


class LeadService:
    """Service layer for lead business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LeadRepository()

    def create_lead(
        self, data: LeadCreate, context: ClientContext, background_tasks: BackgroundTasks
    ) -> dict:
        """
        Store a quote request, upload its attachments and queue notifications.

        Raises:
            DatabaseError: The lead row could not be stored
        """
        utm_params = extract_utm_params(data.utm_params) or None
        logger.info(f"📥 New lead from {context.ip} (page: {data.page_path or 'unknown'})")

        try:
            lead = self.repo.create_lead(
                self.db,
                name=data.name,
                email=data.email,
                mobile=data.mobile,
                city_id=data.city_id,
                service_id=data.service_id,
                address=data.address,
                preferred_date=data.preferred_date,
                preferred_time=data.preferred_time,
                details=data.details,
                sms_consent=data.sms_consent,
                whatsapp_consent=data.whatsapp_consent,
                utm_params=utm_params,
                page_path=data.page_path,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"❌ Database error while creating lead: {e}")
            raise DatabaseError(str(e)) from e

        logger.info(f"✅ Lead {lead.id} created")
        lead_data = lead_snapshot(lead)

        batch = NotificationBatch(f"lead #{lead.id}")
        attachment_urls = self._process_attachments(lead.id, data.attachments or [], context, batch)
        service_name, city_name = self._resolve_names(data.service_id, data.city_id)

        has_email = bool(lead_data["email"])
        batch.add(
            "slack",
            slack_service.notify_new_lead,
            lead_data,
            {
                "service_name": service_name,
                "city_name": city_name,
                "attachment_count": len(attachment_urls),
                "ip": context.ip,
                "user_agent": context.user_agent,
            },
        )
        if has_email:
            batch.add("email", send_lead_confirmation, lead_data)
        batch.add(
            "analytics_lead",
            analytics_service.track_lead,
            lead_id=lead.id,
            has_email=has_email,
            service=service_name,
            city=city_name,
            utm_params=utm_params,
            client_id=context.client_id,
        )
        batch.add(
            "analytics_form",
            analytics_service.track_form_submission,
            "lead_form",
            True,
            {
                "form_id": "main_lead_form",
                "has_email": has_email,
                "has_service": data.service_id is not None,
                "has_city": data.city_id is not None,
                "has_attachments": bool(attachment_urls),
                "consent_sms": data.sms_consent,
                "consent_whatsapp": data.whatsapp_consent,
            },
            client_id=context.client_id,
        )
        batch.schedule(background_tasks)

        response = {
            "leadId": lead.id,
            "message": "Lead submitted successfully",
            "confirmationSent": has_email,
        }
        if attachment_urls:
            response["attachments"] = attachment_urls
        return response

    def _process_attachments(
        self,
        lead_id: int,
        attachments: list[LeadAttachment],
        context: ClientContext,
        batch: NotificationBatch,
    ) -> list[str]:
        """Upload each attachment on its own; one failure never stops the rest"""
        urls = []
        for index, attachment in enumerate(attachments, start=1):
            if not attachment.is_complete:
                logger.warning(f"⚠️ Lead {lead_id}: attachment {index} incomplete, skipped")
                continue

            try:
                content = decode_attachment(attachment.data)
                url = storage_service.upload_attachment(
                    content, attachment.filename, attachment.contentType, lead_id=lead_id
                )
                self.repo.create_attachment(
                    self.db,
                    lead_id=lead_id,
                    url=url,
                    type=storage_service.attachment_type(attachment.contentType),
                )
            except Exception as e:
                if isinstance(e, SQLAlchemyError):
                    self.db.rollback()
                logger.error(
                    f"❌ Lead {lead_id}: attachment {index} ({attachment.filename}) failed: {e}"
                )
                continue

            urls.append(url)
            batch.add(
                f"analytics_upload_{index}",
                analytics_service.track_file_upload,
                attachment.contentType,
                len(content),
                True,
                client_id=context.client_id,
            )

        if attachments:
            logger.info(f"📎 Lead {lead_id}: {len(urls)}/{len(attachments)} attachments stored")
        return urls

    def _resolve_names(
        self, service_id: Optional[int], city_id: Optional[int]
    ) -> tuple[str, str]:
        service_name, city_name = UNKNOWN_SERVICE, UNKNOWN_CITY
        try:
            if service_id is not None:
                service_name = self.repo.get_service_name(self.db, service_id) or UNKNOWN_SERVICE
            if city_id is not None:
                city_name = self.repo.get_city_name(self.db, city_id) or UNKNOWN_CITY
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Could not resolve service/city names: {e}")
        return service_name, city_name
