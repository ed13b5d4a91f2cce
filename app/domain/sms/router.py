"""SMS router - send a text, track SMS button clicks"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import INTAKE_RATE_LIMIT_PREFIX, create_rate_limiter
from ...request_context import ClientContext, get_client_context
from ...responses import options_response, success_response
from ...validation import parse_json_body, validate_payload
from .service import SmsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sms", tags=["SMS"])

sms_rate_limit = create_rate_limiter(key_prefix=INTAKE_RATE_LIMIT_PREFIX)


def get_sms_service(db: Session = Depends(get_db)) -> SmsService:
    """Dependency injection for SmsService"""
    return SmsService(db)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("")
async def send_sms(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(sms_rate_limit),
    context: ClientContext = Depends(get_client_context),
    service: SmsService = Depends(get_sms_service),
):
    """
    Send a text message.

    Provider failures are answered with 200 and success=false so the page
    can fall back to another contact channel.
    """
    raw = await parse_json_body(request)
    data = validate_payload("sms", raw)
    context = context.with_attribution(data.utm_params, data.page_path)

    result = await service.send(data, context, background_tasks)

    if result.success:
        return success_response(
            {
                "message": "SMS sent successfully",
                "messageId": result.message_sid,
                "interactionId": result.interaction_id,
                "timestamp": _timestamp(),
            }
        )

    return JSONResponse(
        status_code=200,
        content={
            "success": False,
            "message": "Failed to send SMS",
            "error": result.error,
            "interactionId": result.interaction_id,
            "timestamp": _timestamp(),
        },
    )


@router.put("")
async def track_sms_click(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(sms_rate_limit),
    context: ClientContext = Depends(get_client_context),
    service: SmsService = Depends(get_sms_service),
):
    """Record a click on an SMS call-to-action"""
    raw = await parse_json_body(request)
    data = validate_payload("sms_track", raw)
    context = context.with_attribution(data.utm_params, data.page_path)
    service.track_click(data, context, background_tasks)
    return success_response(
        {"message": "SMS click tracked successfully", "timestamp": _timestamp(), "tracked": True}
    )


@router.options("")
async def sms_options():
    return options_response()
