"""WhatsApp router - click tracking"""

from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from ...rate_limiter import INTAKE_RATE_LIMIT_PREFIX, create_rate_limiter
from ...request_context import ClientContext, get_client_context
from ...responses import options_response, success_response
from ...validation import parse_json_body, validate_payload
from .service import track_whatsapp_click

router = APIRouter(prefix="/api/whatsapp", tags=["WhatsApp"])

whatsapp_rate_limit = create_rate_limiter(key_prefix=INTAKE_RATE_LIMIT_PREFIX)


@router.post("")
async def track_click(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(whatsapp_rate_limit),
    context: ClientContext = Depends(get_client_context),
):
    raw = await parse_json_body(request)
    data = validate_payload("whatsapp", raw)
    context = context.with_attribution(data.utm_params, data.page_path)
    track_whatsapp_click(data, context, background_tasks)
    return success_response(
        {
            "message": "WhatsApp click tracked successfully",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "tracked": True,
        }
    )


@router.options("")
async def whatsapp_options():
    return options_response()
