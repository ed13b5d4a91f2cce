"""Booking repository - Database operations for bookings"""

import datetime as dt
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Booking, Lead


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def count_active_bookings(db: Session, slot_date: dt.date, slot_time: str) -> int:
        """Bookings holding the slot, i.e. any status except cancelled"""
        return (
            db.query(func.count(Booking.id))
            .filter(
                Booking.slot_date == slot_date,
                Booking.slot_time == slot_time,
                Booking.status != "cancelled",
            )
            .scalar()
        )

    @staticmethod
    def is_slot_available(db: Session, slot_date: dt.date, slot_time: str) -> bool:
        return BookingRepository.count_active_bookings(db, slot_date, slot_time) == 0

    @staticmethod
    def get_active_bookings_for_date(db: Session, slot_date: dt.date) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.slot_date == slot_date, Booking.status != "cancelled")
            .order_by(Booking.slot_time)
            .all()
        )

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        """Insert and commit; the partial unique index rejects a taken slot"""
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_status(db: Session, booking: Booking, status: str) -> Booking:
        booking.status = status
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_lead(db: Session, lead_id: int) -> Optional[Lead]:
        return db.query(Lead).filter(Lead.id == lead_id).first()
