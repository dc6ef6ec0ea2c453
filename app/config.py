import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Public credential: reads, availability checks
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./reservations.db")
# Privileged credential: every write and admin read. Unset means admin writes are disabled.
DATABASE_SERVICE_URL = os.getenv("DATABASE_SERVICE_URL")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ADMIN_TOKEN_EXPIRE_MINUTES = int(os.getenv("ADMIN_TOKEN_EXPIRE_MINUTES", "60"))
USER_TOKEN_EXPIRE_DAYS = int(os.getenv("USER_TOKEN_EXPIRE_DAYS", "30"))

# Frontend base URL, used in calendar exports and CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",") if o.strip()]

# Day boundaries and weekly schedules are computed in this zone; storage is always UTC
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "UTC")
ORGANIZATION_NAME = os.getenv("ORGANIZATION_NAME", "ADR Cyberrange")
ORGANIZER_EMAIL = os.getenv("ORGANIZER_EMAIL", "noreply@example.com")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", f"{ORGANIZATION_NAME} <noreply@example.com>")
EMAIL_CONFIRMATION_SUBJECT = os.getenv(
    "EMAIL_CONFIRMATION_SUBJECT", f"Your {ORGANIZATION_NAME} reservation is confirmed"
)
EMAIL_STATUS_SUBJECT = os.getenv("EMAIL_STATUS_SUBJECT", f"Update on your {ORGANIZATION_NAME} reservation")

# Booking attempt limits
REDIS_URL = os.getenv("REDIS_URL")
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "5"))
BOOKING_RATE_WINDOW_SECONDS = int(os.getenv("BOOKING_RATE_WINDOW_SECONDS", "3600"))
MAX_ACTIVE_RESERVATIONS = int(os.getenv("MAX_ACTIVE_RESERVATIONS", "1"))

# Human verification challenge lifetime
CHALLENGE_MAX_AGE_SECONDS = int(os.getenv("CHALLENGE_MAX_AGE_SECONDS", "300"))
