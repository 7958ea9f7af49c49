"""Appointment repository - Database operations for appointments"""

import secrets
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Appointment

# No 0/O or 1/I so codes survive being read out over the phone
CONFIRMATION_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CONFIRMATION_LENGTH = 8


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_active_for_date(
        db: Session, appointment_date: date, exclude_id: Optional[int] = None
    ) -> list[Appointment]:
        """Get the non-cancelled appointments on a date, optionally leaving one out"""
        query = db.query(Appointment).filter(
            Appointment.appointment_date == appointment_date,
            Appointment.status != "cancelled",
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.appointment_time).all()

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_active_by_confirmation(db: Session, confirmation_number: str) -> Optional[Appointment]:
        """Get a non-cancelled appointment by its confirmation number"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.confirmation_number == confirmation_number.upper(),
                Appointment.status != "cancelled",
            )
            .first()
        )

    @staticmethod
    def list_appointments(
        db: Session, appointment_date: Optional[date] = None, status: Optional[str] = None
    ) -> list[Appointment]:
        """List appointments for the admin dashboard, earliest first"""
        query = db.query(Appointment)
        if appointment_date is not None:
            query = query.filter(Appointment.appointment_date == appointment_date)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.appointment_date, Appointment.appointment_time).all()

    @staticmethod
    def confirmation_number_exists(db: Session, confirmation_number: str) -> bool:
        return (
            db.query(func.count(Appointment.id))
            .filter(Appointment.confirmation_number == confirmation_number)
            .scalar()
            > 0
        )

    @staticmethod
    def generate_confirmation_number(db: Session, max_attempts: int = 10) -> str:
        """
        Generate a confirmation number not yet used by any appointment.

        The unique column still guards the insert; callers retry on IntegrityError.

        Raises:
            RuntimeError: If no free code was found within max_attempts
        """
        for _ in range(max_attempts):
            code = "".join(secrets.choice(CONFIRMATION_ALPHABET) for _ in range(CONFIRMATION_LENGTH))
            if not AppointmentRepository.confirmation_number_exists(db, code):
                return code
        raise RuntimeError("Could not generate a unique confirmation number")

    @staticmethod
    def create_appointment(db: Session, **appointment_data) -> Appointment:
        """Insert a new appointment in one commit"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_appointment(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Update an appointment with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment
