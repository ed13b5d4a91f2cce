"""Booking router - slot availability, booking creation and cancellation"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ...database import get_db
from ...errors import ValidationError
from ...rate_limiter import INTAKE_RATE_LIMIT_PREFIX, create_rate_limiter
from ...request_context import ClientContext, get_client_context
from ...responses import options_response, success_response
from ...validation import parse_json_body, validate_payload
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])
availability_router = APIRouter(prefix="/api/booking", tags=["Bookings"])

booking_rate_limit = create_rate_limiter(key_prefix=INTAKE_RATE_LIMIT_PREFIX)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("", status_code=201)
async def create_booking(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(booking_rate_limit),
    context: ClientContext = Depends(get_client_context),
    service: BookingService = Depends(get_booking_service),
):
    """Reserve an appointment slot"""
    raw = await parse_json_body(request)
    data = validate_payload("booking", raw)
    result = service.create_booking(data, context, background_tasks)
    return success_response(result, status_code=201)


@router.get("")
async def check_slot_availability(
    date: Optional[str] = Query(None),
    time: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """Is a single date/time slot free? Not rate-limited."""
    if not date or not time:
        raise ValidationError("Date and time parameters are required")
    query = validate_payload("availability", {"date": date, "time": time})
    return success_response(service.check_availability(query))


@router.options("")
async def bookings_options():
    return options_response()


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    _: None = Depends(booking_rate_limit),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel a booking and release its slot"""
    return success_response(service.cancel_booking(booking_id))


@router.options("/{booking_id}/cancel")
async def cancel_booking_options(booking_id: int):
    return options_response()


@availability_router.post("/availability")
async def day_availability(
    request: Request,
    background_tasks: BackgroundTasks,
    context: ClientContext = Depends(get_client_context),
    service: BookingService = Depends(get_booking_service),
):
    """Open appointment times for a day"""
    raw = await parse_json_body(request)
    data = validate_payload("day_availability", raw)
    return success_response(service.get_day_availability(data, context, background_tasks))


@availability_router.get("/availability")
async def day_availability_query(
    background_tasks: BackgroundTasks,
    date: Optional[str] = Query(None),
    eventType: Optional[str] = Query(None),
    context: ClientContext = Depends(get_client_context),
    service: BookingService = Depends(get_booking_service),
):
    if not date:
        raise ValidationError("Date parameter is required")
    raw = {"date": date}
    if eventType:
        raw["eventType"] = eventType
    data = validate_payload("day_availability", raw)
    return success_response(service.get_day_availability(data, context, background_tasks))


@availability_router.options("/availability")
async def day_availability_options():
    return options_response()
