"""
Court availability index: which courts are in service in which slots.
"""
from typing import Dict, List

from .models import Court, TimeSlot


class CourtAvailabilityIndex:
    """Read-only lookup built once per scheduling run.

    A slot is in service for a court when it lies entirely inside one of the
    court's service windows. Courts without windows are never in service.
    """

    def __init__(self, courts: List[Court], grid: List[TimeSlot], base_date):
        # Stable sort keeps declaration order among equal priorities
        self.ordered_courts = sorted(courts, key=lambda c: c.sort_priority)
        self._in_service: Dict[str, List[bool]] = {}

        for court in courts:
            windows = [w.bounds(base_date) for w in court.windows]
            self._in_service[court.name] = [
                any(slot.start >= w_start and slot.end <= w_end for w_start, w_end in windows)
                for slot in grid
            ]

    def is_in_service(self, court, slot: TimeSlot) -> bool:
        name = court.name if isinstance(court, Court) else court
        flags = self._in_service.get(name)
        if flags is None or slot.index >= len(flags):
            return False
        return flags[slot.index]

    def courts_in_service(self, slot: TimeSlot) -> List[Court]:
        """Courts open during slot, in scheduling order."""
        return [c for c in self.ordered_courts if self.is_in_service(c, slot)]
