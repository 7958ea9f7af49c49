"""Shared validation utilities"""

import re
from datetime import date
from typing import Optional

from ..config import BOOKING_CLOSED_WEEKDAYS

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

MIN_CAR_YEAR = 1900

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def validate_required_text(value: Optional[str], label: str, max_length: int) -> str:
    """
    Trim a required free-text field and enforce its length.

    Raises:
        ValueError: If the value is blank or longer than max_length
    """
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} must be at most {max_length} characters")
    return value


def validate_email(email: Optional[str]) -> str:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    email = (email or "").strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email address")
    if len(email) > 255:
        raise ValueError("Email must be at most 255 characters")

    return email


def validate_phone(phone: Optional[str]) -> str:
    """Phone numbers are stored as typed; only the length is checked"""
    phone = (phone or "").strip()
    if len(phone) < 10:
        raise ValueError("Phone number must be at least 10 digits")
    if len(phone) > 20:
        raise ValueError("Phone number must be at most 20 characters")
    return phone


def validate_car_year(year: int, today: Optional[date] = None) -> int:
    """Model years run from 1900 through next year"""
    max_year = (today or date.today()).year + 1
    if year < MIN_CAR_YEAR or year > max_year:
        raise ValueError(f"Invalid year (must be between {MIN_CAR_YEAR} and {max_year})")
    return year


def validate_booking_date(
    value: date, today: Optional[date] = None, allow_closed_days: bool = False
) -> date:
    """
    Check a requested calendar day is open for bookings.

    Raises:
        ValueError: If the day is in the past or the shop is closed that weekday
    """
    if value < (today or date.today()):
        raise ValueError("Appointment date cannot be in the past")
    if not allow_closed_days and value.weekday() in BOOKING_CLOSED_WEEKDAYS:
        raise ValueError(f"The shop is closed on {WEEKDAY_NAMES[value.weekday()]}s")
    return value
