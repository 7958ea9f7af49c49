"""Appointment service - Booking, rescheduling and status workflow"""

import logging
from datetime import date
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import TERMINAL_STATUSES, Appointment
from ..catalog.repository import ServiceRepository
from ..scheduling import (
    SLOT_GRID,
    OccupiedInterval,
    compute_available_slots,
    slot_is_free,
    to_minutes,
    total_duration,
)
from .exceptions import (
    AppointmentNotFoundError,
    BookingError,
    BookingValidationError,
    InvalidStatusTransitionError,
    SlotUnavailableError,
)
from .notifications import AppointmentNotifier
from .repository import AppointmentRepository
from .schemas import (
    AppointmentEmailPayload,
    AvailabilityResponse,
    BookingRequest,
    InvoiceDetails,
    LookupRequest,
    RescheduleRequest,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

# Staff-driven status changes; complete and cancelled are terminal
STATUS_TRANSITIONS = {
    "pending": {"in_progress", "cancelled"},
    "in_progress": {"complete", "cancelled"},
    "complete": set(),
    "cancelled": set(),
}

STATUS_NOTIFICATIONS = {
    "in_progress": "in_progress",
    "complete": "complete",
    "cancelled": "cancel",
}

# Insert attempts before giving up on confirmation-number collisions
MAX_INSERT_ATTEMPTS = 3


class AppointmentService:
    """Service layer for appointment scheduling"""

    def __init__(
        self,
        db: Session,
        notifier: AppointmentNotifier,
        background_tasks: Optional[BackgroundTasks] = None,
    ):
        self.db = db
        self.notifier = notifier
        # When set, notifications run after the response is sent
        self.background_tasks = background_tasks
        self.repo = AppointmentRepository()
        self.services_repo = ServiceRepository()

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def _occupied_intervals(
        self, appointment_date: date, exclude_id: Optional[int] = None
    ) -> list[OccupiedInterval]:
        """Occupied intervals of the live appointments on a date"""
        appointments = self.repo.get_active_for_date(self.db, appointment_date, exclude_id)
        all_service_ids = {sid for appt in appointments for sid in (appt.service_ids or [])}
        durations = self.services_repo.get_durations(self.db, all_service_ids)

        return [
            OccupiedInterval(
                to_minutes(appt.appointment_time),
                total_duration(appt.service_ids or [], durations),
            )
            for appt in appointments
        ]

    def _duration_for(self, service_ids: list[int]) -> int:
        durations = self.services_repo.get_durations(self.db, service_ids)
        return total_duration(service_ids, durations)

    def _ensure_slot_free(
        self,
        appointment_date: date,
        appointment_time: str,
        duration_minutes: int,
        exclude_id: Optional[int] = None,
    ) -> None:
        """Re-read the date's appointments and reject the slot if it overlaps any of them"""
        existing = self._occupied_intervals(appointment_date, exclude_id)
        if not slot_is_free(to_minutes(appointment_time), duration_minutes, existing):
            logger.warning(
                f"⚠️ Slot conflict on {appointment_date} at {appointment_time} "
                f"({duration_minutes} min)"
            )
            raise SlotUnavailableError()

    def get_available_slots(
        self,
        appointment_date: date,
        service_ids: list[int],
        exclude_appointment_id: Optional[int] = None,
    ) -> AvailabilityResponse:
        """
        Start times on the grid that fit the selected services.

        Args:
            appointment_date: Calendar day to check
            service_ids: Services being booked; empty means no filtering yet
            exclude_appointment_id: Appointment being rescheduled, left out of the conflict set

        Returns:
            AvailabilityResponse with the requested duration and free start times

        Raises:
            BookingValidationError: Unknown or inactive services, same rule as booking
        """
        duration = 0
        if service_ids:
            services = self._resolve_services(list(dict.fromkeys(service_ids)))
            duration = sum(service.duration_minutes for service in services)
        return self._availability(appointment_date, duration, exclude_appointment_id)

    def get_reschedule_slots(self, appointment_id: int, appointment_date: date) -> AvailabilityResponse:
        """
        Available start times for moving an appointment, ignoring its own placement.

        Uses the appointment's booked services even if they have since been deactivated.
        """
        appointment = self.get_appointment(appointment_id)
        duration = self._duration_for(appointment.service_ids or [])
        return self._availability(appointment_date, duration, appointment.id)

    def _availability(
        self, appointment_date: date, duration: int, exclude_id: Optional[int]
    ) -> AvailabilityResponse:
        existing = self._occupied_intervals(appointment_date, exclude_id)
        return AvailabilityResponse(
            appointment_date=appointment_date,
            duration_minutes=duration,
            available_times=compute_available_slots(SLOT_GRID, duration, existing),
        )

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def _resolve_services(self, service_ids: list[int]) -> list:
        """Load bookable services in the requested order"""
        services = {s.id: s for s in self.services_repo.get_services_by_ids(self.db, service_ids)}
        missing = [sid for sid in service_ids if sid not in services or not services[sid].is_active]
        if missing:
            raise BookingValidationError(
                f"Selected services are not available: {', '.join(str(sid) for sid in missing)}"
            )
        return [services[sid] for sid in service_ids]

    async def submit_booking(self, data: BookingRequest) -> Appointment:
        """
        Book a new appointment.

        The slot is re-checked against the stored appointments immediately before
        insert; that check, backed by the unique slot index, is the authoritative
        conflict decision. The confirmation email is dispatched after commit and its
        failure never fails the booking.

        Raises:
            BookingValidationError: Unknown or inactive services
            SlotUnavailableError: The slot overlaps a live appointment
        """
        services = self._resolve_services(data.service_ids)
        duration = sum(service.duration_minutes for service in services)
        logger.info(
            f"📅 Booking request for {data.appointment_date} at {data.appointment_time} "
            f"({duration} min, services {data.service_ids})"
        )

        appointment = None
        for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
            self._ensure_slot_free(data.appointment_date, data.appointment_time, duration)
            try:
                confirmation_number = self.repo.generate_confirmation_number(self.db)
                appointment = self.repo.create_appointment(
                    self.db,
                    confirmation_number=confirmation_number,
                    customer_name=data.customer_name,
                    customer_email=data.customer_email,
                    customer_phone=data.customer_phone,
                    car_make=data.car_make,
                    car_model=data.car_model,
                    car_year=data.car_year,
                    appointment_date=data.appointment_date,
                    appointment_time=data.appointment_time,
                    service_ids=list(data.service_ids),
                    status="pending",
                    notes=data.notes,
                )
                break
            except IntegrityError as e:
                # Either a concurrent booking took the slot or the code collided; re-check and retry
                self.db.rollback()
                logger.warning(f"⚠️ Insert conflict on attempt {attempt}: {e.orig}")
            except SQLAlchemyError:
                self.db.rollback()
                raise
            except RuntimeError as e:
                raise BookingError("Could not complete the booking. Please try again.") from e

        if appointment is None:
            self._ensure_slot_free(data.appointment_date, data.appointment_time, duration)
            raise BookingError("Could not complete the booking. Please try again.")

        logger.info(
            f"✅ Appointment {appointment.confirmation_number} booked for "
            f"{appointment.appointment_date} at {appointment.appointment_time}"
        )
        await self._dispatch(appointment, "booking", services=services)
        return appointment

    # ------------------------------------------------------------------
    # Reschedule
    # ------------------------------------------------------------------

    async def reschedule_appointment(self, appointment_id: int, data: RescheduleRequest) -> Appointment:
        """
        Move an appointment to a new date and start time.

        Identity, confirmation number, status and services are unchanged.

        Raises:
            AppointmentNotFoundError: No appointment with this id
            InvalidStatusTransitionError: The appointment is complete or cancelled
            SlotUnavailableError: The new slot overlaps another live appointment
        """
        appointment = self.get_appointment(appointment_id)

        if appointment.status in TERMINAL_STATUSES:
            raise InvalidStatusTransitionError(
                appointment.status,
                f"Appointments that are {appointment.status} cannot be rescheduled",
            )

        duration = self._duration_for(appointment.service_ids or [])
        self._ensure_slot_free(
            data.appointment_date, data.appointment_time, duration, exclude_id=appointment.id
        )

        previous = f"{appointment.appointment_date} {appointment.appointment_time}"
        try:
            appointment = self.repo.update_appointment(
                self.db,
                appointment,
                appointment_date=data.appointment_date,
                appointment_time=data.appointment_time,
            )
        except IntegrityError:
            self.db.rollback()
            raise SlotUnavailableError() from None
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Appointment {appointment.confirmation_number} moved from {previous} to "
            f"{appointment.appointment_date} {appointment.appointment_time}"
        )
        await self._dispatch(appointment, "update")
        return appointment

    # ------------------------------------------------------------------
    # Lookup, cancel and status
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise AppointmentNotFoundError()
        return appointment

    def list_appointments(
        self, appointment_date: Optional[date] = None, status: Optional[str] = None
    ) -> list[Appointment]:
        return self.repo.list_appointments(self.db, appointment_date, status)

    def lookup(self, data: LookupRequest) -> Appointment:
        """Find a live appointment by confirmation number plus the booking email or phone"""
        appointment = self.repo.get_active_by_confirmation(self.db, data.confirmation_number)

        matches_email = bool(
            appointment and data.email and appointment.customer_email == data.email.lower()
        )
        matches_phone = bool(appointment and data.phone and appointment.customer_phone == data.phone)
        if not (matches_email or matches_phone):
            raise AppointmentNotFoundError("No appointment found with the provided information")
        return appointment

    async def cancel_by_customer(self, data: LookupRequest) -> Appointment:
        """Self-service cancel; only appointments that have not started can be cancelled"""
        appointment = self.lookup(data)

        if appointment.status != "pending":
            label = "in progress" if appointment.status == "in_progress" else "completed"
            raise InvalidStatusTransitionError(
                appointment.status,
                f"Appointments that are {label} cannot be cancelled. Please contact us for assistance.",
            )

        appointment = self._save_status(appointment, "cancelled")
        logger.info(f"✅ Appointment {appointment.confirmation_number} cancelled by customer")
        await self._dispatch(appointment, "cancel")
        return appointment

    async def update_status(self, appointment_id: int, data: StatusUpdate) -> Appointment:
        """
        Apply a staff status change and notify the customer.

        An invoice breakdown may accompany "complete" and is forwarded to the
        email unchanged.
        """
        appointment = self.get_appointment(appointment_id)
        current = appointment.status

        if data.invoice is not None and data.status != "complete":
            raise BookingValidationError("An invoice can only be attached when completing an appointment")

        if data.status == current:
            return appointment

        if data.status not in STATUS_TRANSITIONS.get(current, set()):
            raise InvalidStatusTransitionError(
                current, f"Cannot change an appointment from {current} to {data.status}"
            )

        appointment = self._save_status(appointment, data.status)
        logger.info(
            f"✅ Appointment {appointment.confirmation_number} status: {current} -> {data.status}"
        )
        await self._dispatch(appointment, STATUS_NOTIFICATIONS[data.status], invoice=data.invoice)
        return appointment

    def _save_status(self, appointment: Appointment, status: str) -> Appointment:
        try:
            return self.repo.update_appointment(self.db, appointment, status=status)
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def _dispatch(
        self,
        appointment: Appointment,
        action: str,
        services: Optional[list] = None,
        invoice: Optional[InvoiceDetails] = None,
    ) -> None:
        """
        Hand the customer email to the notifier; failures are logged only.

        With background tasks the notifier runs after the response is sent.
        """
        try:
            if services is None:
                by_id = {
                    s.id: s
                    for s in self.services_repo.get_services_by_ids(
                        self.db, appointment.service_ids or []
                    )
                }
                services = [by_id[sid] for sid in appointment.service_ids or [] if sid in by_id]

            payload = AppointmentEmailPayload(
                to=appointment.customer_email,
                customer_name=appointment.customer_name,
                confirmation_number=appointment.confirmation_number,
                appointment_date=appointment.appointment_date,
                appointment_time=appointment.appointment_time,
                services=[service.name for service in services],
                vehicle=f"{appointment.car_year} {appointment.car_make} {appointment.car_model}",
                action=action,
                notes=appointment.notes,
                invoice=invoice,
            )
            if self.background_tasks is not None:
                self.background_tasks.add_task(self._notify_logged, payload)
            else:
                await self.notifier.notify(payload)
        except Exception as e:
            logger.error(
                f"❌ Failed to dispatch '{action}' notification for "
                f"{appointment.confirmation_number}: {e}"
            )

    async def _notify_logged(self, payload: AppointmentEmailPayload) -> None:
        """Background-task wrapper; an exception here would surface after the response"""
        try:
            await self.notifier.notify(payload)
        except Exception as e:
            logger.error(
                f"❌ Failed to dispatch '{payload.action}' notification for "
                f"{payload.confirmation_number}: {e}"
            )
