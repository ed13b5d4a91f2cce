import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./leads.db")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Business identity used in notifications, emails and calendar invites
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Wild West Construction")
BUSINESS_PHONE = os.getenv("BUSINESS_PHONE", "(801) 691-4065")
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/Denver")
ORGANIZER_EMAIL = os.getenv("ORGANIZER_EMAIL", "appointments@wildwestconstruction.com")
SITE_URL = os.getenv("SITE_URL", "https://wildwestconstruction.com")

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Slack incoming webhook
SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL")
SLACK_DEFAULT_CHANNEL = os.getenv("SLACK_DEFAULT_CHANNEL", "#leads")
SLACK_ALERTS_CHANNEL = os.getenv("SLACK_ALERTS_CHANNEL", "#alerts")
SLACK_BOT_USERNAME = os.getenv("SLACK_BOT_USERNAME", "Wild West Bot")

# Google Analytics 4 Measurement Protocol
GA4_MEASUREMENT_ID = os.getenv("GA4_MEASUREMENT_ID")
GA4_API_SECRET = os.getenv("GA4_API_SECRET")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv(
    "EMAIL_FROM_ADDRESS", "Wild West Construction <noreply@wildwestconstruction.com>"
)
REPLY_TO_EMAIL = os.getenv("REPLY_TO_EMAIL", "contact@wildwestconstruction.com")

# Twilio SMS
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

# Cloudflare R2 Configuration (lead attachments)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "wildwest-uploads")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL")

# Rate limiting (per client IP on intake endpoints)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "5"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
