"""
Discrete time grid for a tournament day.
"""
import datetime
from typing import List, Optional

from .models import TimeSlot


def build_time_grid(start: datetime.datetime, end: Optional[datetime.datetime],
                    duration_minutes: int) -> List[TimeSlot]:
    """
    Build the ordered slots between start and end, one match duration apart.

    A slot is only part of the grid when the whole match fits before the end
    of the tournament window. With no end the grid runs until midnight.
    """
    if end is None:
        end = datetime.datetime.combine(start.date() + datetime.timedelta(days=1), datetime.time(0, 0))
    duration = datetime.timedelta(minutes=duration_minutes)

    slots = []
    current = start
    while current + duration <= end:
        slots.append(TimeSlot(len(slots), current, current + duration))
        current += duration
    return slots


def grid_for_settings(settings) -> List[TimeSlot]:
    return build_time_grid(settings.start_datetime, settings.end_datetime,
                           settings.estimated_match_duration)


def first_slot_at_or_after(grid: List[TimeSlot], moment: datetime.datetime) -> int:
    """Index of the first slot starting at or after moment (len(grid) if none)."""
    for slot in grid:
        if slot.start >= moment:
            return slot.index
    return len(grid)
