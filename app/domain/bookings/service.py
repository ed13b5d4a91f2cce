"""Booking service - Availability checks, booking creation and cancellation"""

import datetime as dt
import logging
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import BUSINESS_TIMEZONE
from ...email_service import send_booking_confirmation
from ...errors import DatabaseError, NotFoundError, SlotUnavailableError, ValidationError
from ...models import Booking
from ...request_context import ClientContext
from ...services import analytics_service, slack_service
from ...services.calendar_invite import booking_start, generate_booking_invite
from ...services.notification_service import NotificationBatch
from ..leads.service import lead_snapshot
from . import schedule
from .repository import BookingRepository
from .schemas import AvailabilityQuery, BookingCreate, DayAvailabilityRequest

logger = logging.getLogger(__name__)


def business_now() -> dt.datetime:
    """Current time in the business timezone"""
    return dt.datetime.now(ZoneInfo(BUSINESS_TIMEZONE))


def booking_snapshot(booking: Booking) -> dict:
    """Plain copy for notifications that run after the session is closed"""
    return {
        "id": booking.id,
        "lead_id": booking.lead_id,
        "slot_date": booking.slot_date.isoformat(),
        "slot_time": booking.slot_time,
        "status": booking.status,
    }


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def _storage_failure(self, action: str, error: SQLAlchemyError) -> DatabaseError:
        self.db.rollback()
        logger.exception(f"❌ Database error while {action}: {error}")
        return DatabaseError(str(error))

    def is_slot_available(self, slot_date: dt.date, slot_time: str) -> bool:
        """True iff no non-cancelled booking holds the slot"""
        try:
            return self.repo.is_slot_available(self.db, slot_date, slot_time)
        except SQLAlchemyError as e:
            raise self._storage_failure("checking slot availability", e) from e

    def check_availability(self, query: AvailabilityQuery) -> dict:
        available = self.is_slot_available(query.date, query.time)
        return {
            "date": query.date.isoformat(),
            "time": query.time,
            "available": available,
            "message": "Slot is available" if available else "Slot is not available",
        }

    def create_booking(
        self, data: BookingCreate, context: ClientContext, background_tasks: BackgroundTasks
    ) -> dict:
        """
        Reserve a slot and queue the booking notifications.

        Raises:
            ValidationError: Slot is at or before the current business time
            SlotUnavailableError: Another live booking holds the slot
            DatabaseError: Storage failure
        """
        slot_date = data.slot_date.isoformat()
        logger.info(f"📥 Booking request for {slot_date} {data.slot_time} (lead {data.lead_id})")

        if booking_start(slot_date, data.slot_time) <= business_now():
            message = "Cannot book appointments in the past"
            raise ValidationError(message, errors=[{"field": "slot_date", "message": message}])

        if not self.is_slot_available(data.slot_date, data.slot_time):
            logger.warning(f"⚠️ Slot {slot_date} {data.slot_time} already booked")
            raise SlotUnavailableError()

        try:
            booking = self.repo.create_booking(
                self.db,
                lead_id=data.lead_id,
                slot_date=data.slot_date,
                slot_time=data.slot_time,
                status=data.status,
            )
        except IntegrityError:
            # Lost the race to a concurrent request for the same slot
            self.db.rollback()
            logger.warning(f"⚠️ Slot {slot_date} {data.slot_time} taken by a concurrent booking")
            raise SlotUnavailableError() from None
        except SQLAlchemyError as e:
            raise self._storage_failure("creating booking", e) from e

        logger.info(f"✅ Booking {booking.id} created for {slot_date} {data.slot_time}")
        booking_data = booking_snapshot(booking)

        lead_data = None
        if booking.lead_id:
            try:
                lead = self.repo.get_lead(self.db, booking.lead_id)
                lead_data = lead_snapshot(lead) if lead else None
            except SQLAlchemyError as e:
                # The booking is committed; notifications go out without lead details
                self.db.rollback()
                logger.error(f"❌ Could not load lead {booking.lead_id} for booking {booking.id}: {e}")
            if lead_data is None:
                logger.warning(f"⚠️ Booking {booking.id} references missing lead {booking.lead_id}")

        ics_content = generate_booking_invite(booking_data, lead_data)
        has_email = bool(lead_data and lead_data.get("email"))

        self._queue_notifications(booking_data, lead_data, ics_content, context, background_tasks)

        return {
            "bookingId": booking.id,
            "message": "Booking created successfully",
            "appointment": {
                "date": booking_data["slot_date"],
                "time": booking_data["slot_time"],
                "status": booking_data["status"],
            },
            "confirmationSent": has_email,
            "calendarInvite": ics_content is not None,
        }

    def _queue_notifications(
        self,
        booking: dict,
        lead: Optional[dict],
        ics_content: Optional[str],
        context: ClientContext,
        background_tasks: BackgroundTasks,
    ) -> None:
        has_email = bool(lead and lead.get("email"))

        batch = NotificationBatch(f"booking #{booking['id']}")
        batch.add(
            "slack",
            slack_service.notify_new_booking,
            booking,
            lead,
            {"ip": context.ip, "user_agent": context.user_agent},
        )
        if has_email:
            batch.add("email", send_booking_confirmation, booking, lead, ics_content)
        batch.add(
            "analytics_booking",
            analytics_service.track_booking,
            booking_id=booking["id"],
            slot_date=booking["slot_date"],
            slot_time=booking["slot_time"],
            status=booking["status"],
            lead_id=booking["lead_id"],
            utm_params=lead.get("utm_params") if lead else None,
            client_id=context.client_id,
        )
        batch.add(
            "analytics_event",
            analytics_service.track_custom_event,
            "appointment_booked",
            {
                "event_category": "booking",
                "event_label": f"{booking['slot_date']}_{booking['slot_time']}",
                "booking_id": str(booking["id"]),
                "lead_id": str(booking["lead_id"]) if booking["lead_id"] else None,
                "appointment_date": booking["slot_date"],
                "appointment_time": booking["slot_time"],
                "booking_status": booking["status"],
                "has_lead": lead is not None,
                "has_email": has_email,
            },
            client_id=context.client_id,
        )
        batch.schedule(background_tasks)

    def cancel_booking(self, booking_id: int) -> dict:
        """Release the slot held by a booking. Cancelling twice is a no-op."""
        try:
            booking = self.repo.get_booking_by_id(self.db, booking_id)
            if not booking:
                raise NotFoundError(f"Booking {booking_id} not found")
            if booking.status != "cancelled":
                booking = self.repo.update_status(self.db, booking, "cancelled")
                logger.info(f"🗑️ Booking {booking_id} cancelled, slot released")
        except SQLAlchemyError as e:
            raise self._storage_failure("cancelling booking", e) from e

        return {
            "bookingId": booking.id,
            "status": booking.status,
            "message": "Booking cancelled successfully",
        }

    def get_day_availability(
        self,
        data: DayAvailabilityRequest,
        context: ClientContext,
        background_tasks: BackgroundTasks,
    ) -> dict:
        """Open appointment starts for one day on the business-hours grid"""
        now = business_now()
        if data.date < now.date():
            message = "Cannot check availability for past dates"
            raise ValidationError(message, errors=[{"field": "date", "message": message}])

        duration = data.duration or schedule.EVENT_DURATIONS[data.eventType]
        base = {
            "date": data.date.isoformat(),
            "eventType": data.eventType,
            "duration": duration,
            "businessHours": {
                "start": f"{schedule.BUSINESS_START_HOUR}:00",
                "end": f"{schedule.BUSINESS_END_HOUR}:00",
                "days": schedule.BUSINESS_DAY_NAMES,
            },
        }

        if not schedule.is_business_day(data.date):
            return {
                **base,
                "businessDay": False,
                "availableSlots": [],
                "slotTimes": [],
                "totalSlots": 0,
                "existingBookings": 0,
                "message": "We are closed on this day. Please select Monday through Saturday.",
            }

        try:
            booked_times = [
                b.slot_time for b in self.repo.get_active_bookings_for_date(self.db, data.date)
            ]
        except SQLAlchemyError as e:
            raise self._storage_failure("loading bookings for day availability", e) from e

        not_before = now.replace(tzinfo=None) if data.date == now.date() else None
        free, total = schedule.available_slots(data.date, duration, booked_times, not_before)

        batch = NotificationBatch(f"availability {data.date.isoformat()}")
        batch.add(
            "analytics",
            analytics_service.track_custom_event,
            "booking_availability_checked",
            {
                "date": data.date.isoformat(),
                "event_type": data.eventType,
                "duration": duration,
                "total_slots": total,
                "available_slots": len(free),
                "existing_bookings": len(booked_times),
            },
            client_id=context.client_id,
        )
        batch.schedule(background_tasks)

        return {
            **base,
            "businessDay": True,
            "availableSlots": [schedule.format_slot_label(start) for start, _ in free],
            "slotTimes": [start.strftime("%H:%M") for start, _ in free],
            "totalSlots": total,
            "existingBookings": len(booked_times),
            "message": (
                f"Found {len(free)} available time slots"
                if free
                else "No available time slots for this date"
            ),
        }
