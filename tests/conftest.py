"""Test fixtures for the intake API."""

import datetime as dt
import os
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "testing"
for key in (
    "SLACK_WEBHOOK_URL",
    "GA4_MEASUREMENT_ID",
    "GA4_API_SECRET",
    "RESEND_API_KEY",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_PHONE_NUMBER",
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
):
    os.environ[key] = ""
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_HOST", None)

from fastapi.testclient import TestClient
from sqlalchemy import event

from app.database import Base, SessionLocal, engine
from app.main import app
from app.models import City, Service
from app.rate_limiter import reset_rate_limits


@event.listens_for(engine, "connect")
def _enforce_foreign_keys(dbapi_connection, _connection_record):
    # SQLite ignores foreign keys unless asked; PostgreSQL always enforces them
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Monday 2030-01-07, 09:15 in Salt Lake City
FIXED_NOW = dt.datetime(2030, 1, 7, 9, 15, tzinfo=ZoneInfo("America/Denver"))
NEXT_BUSINESS_DAY = "2030-01-08"
SUNDAY = "2030-01-13"


@pytest.fixture
def db():
    """Fresh schema per test with one service and one city seeded."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    session.add_all(
        [
            Service(id=1, name="Kitchen Remodeling", slug="kitchen-remodeling"),
            City(id=1, name="Salt Lake City", slug="salt-lake-city"),
        ]
    )
    session.commit()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def frozen_now():
    with patch("app.domain.bookings.service.business_now", return_value=FIXED_NOW):
        yield FIXED_NOW


@pytest.fixture
def client(db, frozen_now):
    reset_rate_limits()
    return TestClient(app)


@pytest.fixture
def lead_payload():
    return {
        "name": "Jane Doe",
        "email": "Jane@Example.com",
        "mobile": "+1 (801) 555-0123",
        "city_id": 1,
        "service_id": 1,
        "address": "123 Main St, Salt Lake City, UT",
        "details": "Kitchen cabinets and countertops",
        "sms_consent": True,
        "utm_params": {"utm_source": "google", "utm_medium": "cpc", "gclid": "ignored"},
        "page_path": "/services/kitchen-remodeling",
    }
