from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class City(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    mobile = Column(String(15), nullable=False)  # digits only
    city_id = Column(Integer, nullable=True, index=True)  # loose, resolved to a name for notifications
    service_id = Column(Integer, nullable=True, index=True)  # loose, resolved to a name for notifications
    address = Column(String(500), nullable=True)
    preferred_date = Column(String(50), nullable=True)
    preferred_time = Column(String(50), nullable=True)
    details = Column(Text, nullable=True)
    sms_consent = Column(Boolean, default=False, nullable=False)
    whatsapp_consent = Column(Boolean, default=False, nullable=False)
    utm_params = Column(JSON, nullable=True)
    page_path = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    attachments = relationship("Attachment", back_populates="lead")


class Booking(Base):
    """Appointment slot reservation.

    lead_id is a loose reference: bookings may be made without a lead and the
    lead is only looked up for notifications. Rows are never deleted,
    cancellation is a status change.
    """

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, nullable=True, index=True)
    slot_date = Column(Date, nullable=False, index=True)
    slot_time = Column(String(5), nullable=False)  # HH:MM, business timezone
    status = Column(String(20), default="pending", nullable=False)  # pending, confirmed, cancelled, completed
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        # At most one live booking per slot; cancelled rows release it
        Index(
            "uq_bookings_active_slot",
            "slot_date",
            "slot_time",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )


class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=False, index=True)
    url = Column(String(1000), nullable=False)
    type = Column(String(20), nullable=True)  # photo, video or NULL
    uploaded_at = Column(DateTime, server_default=func.now())

    lead = relationship("Lead", back_populates="attachments")


class SmsInteraction(Base):
    """One row per outbound SMS attempt"""

    __tablename__ = "sms_interactions"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, nullable=True, index=True)
    phone_number = Column(String(20), nullable=False)  # E.164
    message_text = Column(Text, nullable=False)
    direction = Column(String(20), default="outbound", nullable=False)
    message_type = Column(String(50), default="custom", nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, sent, delivered, failed, received
    twilio_sid = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    utm_params = Column(JSON, nullable=True)
    page_path = Column(String(500), nullable=True)
    consent_given = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
