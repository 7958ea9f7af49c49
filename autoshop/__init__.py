"""Booking and back-office API for an auto repair shop."""

__version__ = "1.0.0"
