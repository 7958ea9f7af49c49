"""Appointment router - FastAPI endpoints for booking and appointment management"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_staff
from ...database import get_db
from ...models import StaffUser
from .notifications import AppointmentNotifier, get_notifier
from .schemas import (
    AppointmentResponse,
    AvailabilityResponse,
    BookingRequest,
    LookupRequest,
    RescheduleRequest,
    StatusUpdate,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])
admin_router = APIRouter(prefix="/admin/appointments", tags=["Admin - Appointments"])


def get_appointment_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: AppointmentNotifier = Depends(get_notifier),
) -> AppointmentService:
    """Dependency injection for AppointmentService; emails are sent after the response"""
    return AppointmentService(db, notifier, background_tasks)


# ============================================================================
# PUBLIC BOOKING
# ============================================================================


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    appointment_date: date = Query(..., alias="date"),
    service_ids: list[int] = Query(default=[]),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Start times still open on a date for the selected services"""
    return service.get_available_slots(appointment_date, service_ids)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def book_appointment(
    data: BookingRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment; 409 when the slot was taken in the meantime"""
    return await service.submit_booking(data)


@router.post("/lookup", response_model=AppointmentResponse)
async def lookup_appointment(
    data: LookupRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.lookup(data)


@router.post("/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    data: LookupRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Customer cancellation of a pending appointment"""
    return await service.cancel_by_customer(data)


# ============================================================================
# ADMIN MANAGEMENT
# ============================================================================


@admin_router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    appointment_date: Optional[date] = Query(None, alias="date"),
    status: Optional[str] = Query(None),
    current_staff: StaffUser = Depends(get_current_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.list_appointments(appointment_date, status)


@admin_router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: BookingRequest,
    current_staff: StaffUser = Depends(get_current_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Staff booking on behalf of a customer (phone or walk-in)"""
    logger.info(f"📥 Staff {current_staff.email} creating appointment")
    return await service.submit_booking(data)


@admin_router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_staff: StaffUser = Depends(get_current_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_appointment(appointment_id)


@admin_router.get("/{appointment_id}/availability", response_model=AvailabilityResponse)
async def get_reschedule_availability(
    appointment_id: int,
    appointment_date: date = Query(..., alias="date"),
    current_staff: StaffUser = Depends(get_current_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Open start times for moving this appointment; its own slot counts as open"""
    return service.get_reschedule_slots(appointment_id, appointment_date)


@admin_router.patch("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    current_staff: StaffUser = Depends(get_current_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    logger.info(f"📅 Staff {current_staff.email} rescheduling appointment {appointment_id}")
    return await service.reschedule_appointment(appointment_id, data)


@admin_router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: StatusUpdate,
    current_staff: StaffUser = Depends(get_current_staff),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.update_status(appointment_id, data)
