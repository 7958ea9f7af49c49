"""Appointment domain errors, mapped to HTTP responses in main.py"""


class BookingError(Exception):
    """Base class for appointment booking errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BookingValidationError(BookingError):
    """Input passed schema checks but is still not bookable (e.g. unknown services)"""


class SlotUnavailableError(BookingError):
    """The chosen start time overlaps a live appointment on that date"""

    def __init__(
        self,
        message: str = "This time slot conflicts with an existing appointment. Please select another time.",
    ):
        super().__init__(message)


class InvalidStatusTransitionError(BookingError):
    """The appointment's current status does not allow the requested change"""

    def __init__(self, current_status: str, message: str):
        self.current_status = current_status
        super().__init__(message)


class AppointmentNotFoundError(BookingError):
    def __init__(self, message: str = "Appointment not found"):
        super().__init__(message)


__all__ = [
    "AppointmentNotFoundError",
    "BookingError",
    "BookingValidationError",
    "InvalidStatusTransitionError",
    "SlotUnavailableError",
]
