import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./autoshop.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Staff session lifetime
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Shop details shown to customers
SHOP_NAME = os.getenv("SHOP_NAME", "Rogova Auto Shop")
SHOP_ADDRESS = os.getenv("SHOP_ADDRESS", "37 Veronica Dr, Halifax, NS")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", f"{SHOP_NAME} <onboarding@resend.dev>")
# Every customer email is copied here with an [Admin] prefix; leave unset to disable
ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")

# Days the shop takes no bookings, as Python weekday numbers (Monday=0 ... Sunday=6)
BOOKING_CLOSED_WEEKDAYS = frozenset(
    int(day) for day in os.getenv("BOOKING_CLOSED_WEEKDAYS", "6").split(",") if day.strip()
)

# Staff password reset codes
PASSWORD_RESET_CODE_MINUTES = int(os.getenv("PASSWORD_RESET_CODE_MINUTES", "10"))
