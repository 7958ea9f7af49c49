"""Scheduling domain - slot grid and overlap rules for appointments"""

from .availability import (
    SLOT_GRID,
    OccupiedInterval,
    compute_available_slots,
    intervals_overlap,
    slot_is_free,
    to_minutes,
    total_duration,
)

__all__ = [
    "SLOT_GRID",
    "OccupiedInterval",
    "compute_available_slots",
    "intervals_overlap",
    "slot_is_free",
    "to_minutes",
    "total_duration",
]
