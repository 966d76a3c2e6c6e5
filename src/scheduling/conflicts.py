"""
Per-slot bookkeeping of committed players and courts.
"""
from collections import defaultdict
from typing import List

from .models import format_time


class ConflictTracker:
    """Tracks which players and courts are already committed in each slot.

    Commitments are final for the lifetime of a run: there is no undo.
    """

    def __init__(self):
        self.players_by_slot = defaultdict(set)   # slot index -> player names
        self.courts_by_slot = defaultdict(dict)   # slot index -> {court name: match id}

    def conflicts(self, match, slot, court_name) -> List[str]:
        """Reasons why match cannot take (slot, court_name); empty if it can."""
        reasons = []
        if court_name in self.courts_by_slot.get(slot.index, {}):
            reasons.append(f"quadra {court_name} já ocupada às {format_time(slot.start)}")
        busy = self.players_by_slot.get(slot.index, set())
        for player in sorted(match.players & busy):
            reasons.append(f"jogador {player} já possui partida às {format_time(slot.start)}")
        return reasons

    def can_place(self, match, slot, court_name) -> bool:
        if court_name in self.courts_by_slot.get(slot.index, {}):
            return False
        return not (match.players & self.players_by_slot.get(slot.index, set()))

    def commit(self, match, slot, court_name):
        if not self.can_place(match, slot, court_name):
            raise ValueError(f"Cannot commit {match.id} to {court_name} at {format_time(slot.start)}: slot already taken")
        self.courts_by_slot[slot.index][court_name] = match.id
        self.players_by_slot[slot.index].update(match.players)
