"""
Appointment availability engine

Pure functions shared by the customer booking flow and the staff reschedule flow.
Times are local wall-clock "HH:MM" strings converted to whole minutes since midnight;
dates never pass through a timezone conversion.
"""

from datetime import time
from typing import Iterable, NamedTuple, Union

# Bookable start times: every 30 minutes from 09:00 to 17:00 inclusive
SLOT_GRID: tuple[str, ...] = tuple(
    f"{minutes // 60:02d}:{minutes % 60:02d}" for minutes in range(9 * 60, 17 * 60 + 1, 30)
)


class OccupiedInterval(NamedTuple):
    """Half-open block [start, start + duration) an appointment holds on its date"""

    start_minutes: int
    duration_minutes: int

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


def to_minutes(value: Union[str, time]) -> int:
    """
    Convert a 24-hour "HH:MM" time to minutes since midnight.

    "HH:MM:SS" is accepted as some databases return it; seconds are ignored.

    Raises:
        ValueError: If the value is not a valid 24-hour time
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time format: {value!r} (expected HH:MM)")

    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Strict half-open overlap; intervals that only touch do not overlap"""
    return start_a < end_b and end_a > start_b


def slot_is_free(
    start_minutes: int, duration_minutes: int, existing: Iterable[OccupiedInterval]
) -> bool:
    """True when [start, start + duration) overlaps none of the existing intervals"""
    end_minutes = start_minutes + duration_minutes
    return not any(
        intervals_overlap(start_minutes, end_minutes, interval.start_minutes, interval.end_minutes)
        for interval in existing
    )


def compute_available_slots(
    slot_grid: Iterable[str],
    requested_duration_minutes: int,
    existing_intervals: Iterable[OccupiedInterval],
) -> list[str]:
    """
    Filter the slot grid down to the start times a booking may use.

    Args:
        slot_grid: Candidate start times in display order
        requested_duration_minutes: Total duration of the services being booked.
            Zero or less means nothing is selected yet and the grid is returned unfiltered.
        existing_intervals: Live appointments already on the date, minus the one
            being rescheduled

    Returns:
        The free start times, in grid order. An empty list is a normal outcome.
    """
    slots = list(slot_grid)
    if requested_duration_minutes <= 0:
        return slots

    existing = list(existing_intervals)
    return [
        slot
        for slot in slots
        if slot_is_free(to_minutes(slot), requested_duration_minutes, existing)
    ]


def total_duration(service_ids: Iterable[int], durations_by_id: dict[int, int]) -> int:
    """Sum service durations; ids missing from the catalog count as zero"""
    return sum(durations_by_id.get(service_id, 0) for service_id in service_ids)


__all__ = [
    "SLOT_GRID",
    "OccupiedInterval",
    "compute_available_slots",
    "intervals_overlap",
    "slot_is_free",
    "to_minutes",
    "total_duration",
]
