"""Lead router - public quote request intake"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import INTAKE_RATE_LIMIT_PREFIX, create_rate_limiter
from ...request_context import ClientContext, get_client_context
from ...responses import options_response, success_response
from ...validation import parse_json_body, validate_payload
from .service import LeadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads", tags=["Leads"])

lead_rate_limit = create_rate_limiter(key_prefix=INTAKE_RATE_LIMIT_PREFIX)


def get_lead_service(db: Session = Depends(get_db)) -> LeadService:
    """Dependency injection for LeadService"""
    return LeadService(db)


@router.post("", status_code=201)
async def create_lead(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(lead_rate_limit),
    context: ClientContext = Depends(get_client_context),
    service: LeadService = Depends(get_lead_service),
):
    """Submit a quote request with optional inline attachments"""
    raw = await parse_json_body(request)
    data = validate_payload("lead", raw)
    context = context.with_attribution(data.utm_params, data.page_path)
    result = service.create_lead(data, context, background_tasks)
    return success_response(result, status_code=201)


@router.options("")
async def leads_options():
    return options_response()
