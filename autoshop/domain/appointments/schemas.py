"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import APPOINTMENT_STATUSES
from ...shared.validators import (
    validate_booking_date,
    validate_car_year,
    validate_email,
    validate_phone,
    validate_required_text,
)
from ..scheduling import SLOT_GRID, to_minutes

NOTIFICATION_ACTIONS = ("booking", "update", "cancel", "in_progress", "complete")


def validate_slot_time(value: str) -> str:
    """
    Normalize to zero-padded HH:MM within booking hours.

    The booking page only offers grid slots, but any start between the first and
    last slot is accepted; the overlap re-check decides whether it fits.
    """
    minutes = to_minutes(value)
    if not to_minutes(SLOT_GRID[0]) <= minutes <= to_minutes(SLOT_GRID[-1]):
        raise ValueError(f"Please select a time slot between {SLOT_GRID[0]} and {SLOT_GRID[-1]}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class BookingRequest(BaseModel):
    """
    Customer booking form.

    Fields are declared in the order their rules are reported, so the first
    validation error is the first violated rule.
    """

    customer_name: str
    customer_email: str
    customer_phone: str
    car_make: str
    car_model: str
    car_year: int
    service_ids: list[int]
    appointment_date: date
    appointment_time: str
    notes: Optional[str] = None

    @field_validator("customer_name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Name", 100)

    @field_validator("customer_email")
    @classmethod
    def validate_customer_email(cls, v):
        return validate_email(v)

    @field_validator("customer_phone")
    @classmethod
    def validate_customer_phone(cls, v):
        return validate_phone(v)

    @field_validator("car_make")
    @classmethod
    def validate_car_make(cls, v):
        return validate_required_text(v, "Car make", 50)

    @field_validator("car_model")
    @classmethod
    def validate_car_model(cls, v):
        return validate_required_text(v, "Car model", 50)

    @field_validator("car_year")
    @classmethod
    def validate_year(cls, v):
        return validate_car_year(v)

    @field_validator("service_ids")
    @classmethod
    def validate_services(cls, v):
        # keep first occurrence order
        unique_ids = list(dict.fromkeys(v))
        if not unique_ids:
            raise ValueError("Please select at least one service")
        return unique_ids

    @field_validator("appointment_date")
    @classmethod
    def validate_date(cls, v):
        return validate_booking_date(v)

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v):
        return validate_slot_time(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) > 1000:
            raise ValueError("Notes must be at most 1000 characters")
        return v or None


class RescheduleRequest(BaseModel):
    """Staff move of an appointment to a new date and start time"""

    appointment_date: date
    appointment_time: str

    @field_validator("appointment_date")
    @classmethod
    def validate_date(cls, v):
        return validate_booking_date(v, allow_closed_days=True)

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v):
        return validate_slot_time(v)


class InvoiceLine(BaseModel):
    service: str
    cost: float


class InvoiceDetails(BaseModel):
    """Completed-work breakdown forwarded as-is to the customer email"""

    services_performed: list[InvoiceLine] = []
    items_purchased: Optional[str] = None
    subtotal: float
    taxes: float
    total_cost: float


class StatusUpdate(BaseModel):
    status: str
    invoice: Optional[InvoiceDetails] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in APPOINTMENT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(APPOINTMENT_STATUSES)}")
        return v


class LookupRequest(BaseModel):
    """Self-service lookup: confirmation number plus the email or phone used to book"""

    confirmation_number: str
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("confirmation_number")
    @classmethod
    def normalize_confirmation(cls, v):
        return v.strip().upper()

    @field_validator("email", "phone")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return v
        return v.strip() or None

    @model_validator(mode="after")
    def require_contact(self):
        if not self.confirmation_number or not (self.email or self.phone):
            raise ValueError("Please provide confirmation number and either email or phone")
        return self


class AppointmentResponse(BaseModel):
    id: int
    confirmation_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    car_make: str
    car_model: str
    car_year: int
    appointment_date: date
    appointment_time: str
    service_ids: list[int]
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    appointment_date: date
    duration_minutes: int
    available_times: list[str]


class AppointmentEmailPayload(BaseModel):
    """Everything the email worker needs; built from the appointment at dispatch time"""

    to: str
    customer_name: str
    confirmation_number: str
    appointment_date: date
    appointment_time: str
    services: list[str]
    vehicle: Optional[str] = None
    action: str
    notes: Optional[str] = None
    invoice: Optional[InvoiceDetails] = None

    @field_validator("action")
    @classmethod
    def validate_action(cls, v):
        if v not in NOTIFICATION_ACTIONS:
            raise ValueError(f"Unknown notification action: {v}")
        return v
