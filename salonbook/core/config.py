"""
Application configuration.

Values come from environment variables or a local .env file. Scheduling
thresholds are read here once and frozen into ``salonbook.core.policy``.
"""
import logging
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./salonbook.db"
    JWT_SECRET_KEY: str = ""
    LOG_LEVEL: str = "INFO"

    # Booking policy
    MIN_RESCHEDULE_HOURS: float = 24
    MIN_CANCEL_HOURS: float = 24

    # Payments
    PAYMENT_CURRENCY: str = "INR"
    STRIPE_API_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_WEBHOOK_SECRET: str = ""
    CASHFREE_APP_ID: str = ""
    CASHFREE_SECRET_KEY: str = ""
    CASHFREE_TEST_MODE: bool = True

    # Twilio SMS
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # SendGrid Email
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "noreply@salonbook.app"
    SENDGRID_FROM_NAME: str = "SalonBook"

    FRONTEND_URL: str = "http://localhost:3000"
    BACKEND_URL: str = "http://localhost:8000"

    # Reminder jobs (APScheduler)
    REMINDERS_ENABLED: bool = False


settings = Settings()

# Validate critical security settings
if not settings.JWT_SECRET_KEY:
    raise ValueError(
        "JWT_SECRET_KEY is not set. Export it or add it to .env. "
        "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
