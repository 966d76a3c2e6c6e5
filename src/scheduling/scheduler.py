"""
Greedy match scheduler.

Places every match on the first free (slot, court) pair that respects court
service windows, player availability and bracket dependencies. Placements
are never revised; matches that cannot be placed are reported in the
scheduling log together with the reasons each candidate was rejected.
"""
import enum
import logging
from typing import Dict, List

from .availability import CourtAvailabilityIndex
from .conflicts import ConflictTracker
from .dependencies import UNRESOLVABLE, DependencyResolver, validate_dependency_graph
from .errors import DependencyCycleError, DuplicateCourtError, DuplicateMatchError, NoCourtsError
from .models import Assignment, SchedulingLogEntry, format_time
from .time_grid import grid_for_settings

logger = logging.getLogger(__name__)

REASON_OUTSIDE_WINDOW = 'fora da janela do torneio'
REASON_NO_COURT_IN_SERVICE = 'nenhuma quadra em serviço neste horário'
REASON_DEPENDENCY_PENDING = 'dependência ainda não agendada'
REASON_PREREQUISITE_NOT_DONE = 'pré-requisito não concluído'


class MatchState(enum.Enum):
    PENDING = 'pending'
    UNRESOLVABLE = 'unresolvable'
    SCHEDULED = 'scheduled'
    UNSCHEDULABLE = 'unschedulable'


def validate_inputs(settings, matches) -> None:
    """Raise a SchedulingConfigError if the run cannot even be attempted."""
    if not settings.courts:
        raise NoCourtsError("No courts configured in the global settings")

    seen_courts = set()
    for court in settings.courts:
        if court.name in seen_courts:
            raise DuplicateCourtError(f"Duplicate court name: {court.name}")
        seen_courts.add(court.name)

    seen_ids = set()
    for match in matches:
        if match.id in seen_ids:
            raise DuplicateMatchError(f"Duplicate match id: {match.id}")
        seen_ids.add(match.id)

    validate_dependency_graph(matches)


def order_matches(matches) -> List:
    """Group matches first, then bracket matches; by category, then input order."""
    indexed = list(enumerate(matches))
    indexed.sort(key=lambda item: (0 if item[1].is_group_match else 1, item[1].category, item[0]))
    return [match for _, match in indexed]


class ScheduleResult:
    """Outcome of a scheduling run: the (possibly partial) schedule and its log."""

    def __init__(self, matches, assignments, log, states, courts):
        self.matches = list(matches)
        self.assignments: Dict[str, Assignment] = assignments
        self.log: List[SchedulingLogEntry] = log
        self.states: Dict[str, MatchState] = states
        self.courts = courts

    @property
    def unscheduled_match_ids(self):
        return [m.id for m in self.matches if m.id not in self.assignments]

    @property
    def is_partial(self):
        return len(self.assignments) < len(self.matches)

    def annotate(self, matches=None):
        """Return match dicts with 'time' and 'court' merged in ('' if unassigned)."""
        annotated = []
        for match in (self.matches if matches is None else matches):
            data = match.to_dict()
            assignment = self.assignments.get(match.id)
            data['time'] = format_time(assignment.time_slot.start) if assignment else ''
            data['court'] = assignment.court_name if assignment else ''
            annotated.append(data)
        return annotated

    def partial_schedule(self):
        """Snapshot of every match with whatever assignment exists."""
        return self.annotate(self.matches)

    def get_schedule_output(self):
        by_id = {m.id: m for m in self.matches}
        output = []
        for court in self.courts:
            court_info = {"court_name": court.name, "matches": []}
            placed = [a for a in self.assignments.values() if a.court_name == court.name]
            placed.sort(key=lambda a: a.time_slot.index)
            for assignment in placed:
                match = by_id[assignment.match_id]
                court_info["matches"].append({
                    "match_id": match.id,
                    "start_time": format_time(assignment.time_slot.start),
                    "end_time": format_time(assignment.time_slot.end),
                    "teams": (match.team1_label, match.team2_label),
                    "category": match.category,
                    "stage": match.stage,
                })
            output.append(court_info)
        return output

    def stats(self):
        return {
            'total_matches': len(self.matches),
            'scheduled_matches': len(self.assignments),
            'unscheduled_matches': len(self.matches) - len(self.assignments),
        }

    def to_dict(self):
        return {
            'assignments': {match_id: a.to_dict() for match_id, a in self.assignments.items()},
            'log': [entry.to_dict() for entry in self.log],
            'partial_schedule': self.partial_schedule(),
            'stats': self.stats(),
        }


class MatchScheduler:
    """Runs one scheduling pass-loop over a fixed set of matches.

    All state is local to the instance; run() may be called once.
    """

    def __init__(self, settings, matches):
        self.settings = settings
        self.matches = list(matches)
        validate_inputs(settings, self.matches)

        self.grid = grid_for_settings(settings)
        self.availability = CourtAvailabilityIndex(settings.courts, self.grid, settings.tournament_date)
        self.resolver = DependencyResolver(self.grid, settings.dependency_buffer_minutes,
                                           settings.tournament_date)
        self.tracker = ConflictTracker()
        self.assignments: Dict[str, Assignment] = {}
        self.states = {m.id: MatchState.PENDING for m in self.matches}
        self.log: List[SchedulingLogEntry] = []

    def _scan(self, match, earliest):
        """
        Try every (slot, court) pair from earliest on.

        Returns (assignment or None, reasons, last slot examined).
        """
        reasons = {}
        last_slot = None

        if earliest >= len(self.grid):
            reasons[REASON_OUTSIDE_WINDOW] = None
            return None, list(reasons), last_slot

        for slot in self.grid[earliest:]:
            last_slot = slot
            open_courts = self.availability.courts_in_service(slot)
            if not open_courts:
                reasons.setdefault(REASON_NO_COURT_IN_SERVICE)
                continue
            for court in open_courts:
                rejected = self.tracker.conflicts(match, slot, court.name)
                if not rejected:
                    return Assignment(match.id, slot, court.name), [], slot
                for reason in rejected:
                    reasons.setdefault(reason)

        reasons.setdefault(f"sem horário livre até {format_time(self.settings.end_datetime)}")
        return None, list(reasons), last_slot

    def _attempt(self, match):
        if not self.grid:
            self.log.append(SchedulingLogEntry(match, [REASON_OUTSIDE_WINDOW]))
            return MatchState.UNSCHEDULABLE

        earliest = self.resolver.earliest_start(match, self.assignments)
        if earliest is UNRESOLVABLE:
            missing = self.resolver.missing_dependencies(match, self.assignments)
            logger.debug("%s: %s (%s)", match.id, REASON_DEPENDENCY_PENDING, ', '.join(missing))
            return MatchState.UNRESOLVABLE

        assignment, reasons, last_slot = self._scan(match, earliest)
        if assignment is not None:
            self.tracker.commit(match, assignment.time_slot, assignment.court_name)
            self.assignments[match.id] = assignment
            logger.debug("Scheduled %s on %s at %s", match.id, assignment.court_name,
                         format_time(assignment.time_slot.start))
            return MatchState.SCHEDULED

        logger.warning("Could not schedule match %s (%s vs %s): %s", match.id,
                       match.team1_label, match.team2_label, '; '.join(reasons))
        self.log.append(SchedulingLogEntry(match, reasons, last_slot))
        return MatchState.UNSCHEDULABLE

    def run(self) -> ScheduleResult:
        logger.info("Scheduling %d matches on %d courts over %d slots",
                    len(self.matches), len(self.settings.courts), len(self.grid))
        pending = order_matches(self.matches)
        passes = 0

        while pending:
            passes += 1
            if passes > len(self.matches) + 1:
                raise DependencyCycleError([m.id for m in pending])

            placed = 0
            still_pending = []
            for match in pending:
                state = self._attempt(match)
                self.states[match.id] = state
                if state is MatchState.SCHEDULED:
                    placed += 1
                elif state is MatchState.UNRESOLVABLE:
                    still_pending.append(match)
            pending = still_pending
            logger.debug("Pass %d placed %d matches, %d waiting on dependencies", passes, placed, len(pending))
            if placed == 0:
                break

        for match in pending:
            missing = self.resolver.missing_dependencies(match, self.assignments)
            reasons = [f"{REASON_DEPENDENCY_PENDING}: {', '.join(missing)}", REASON_PREREQUISITE_NOT_DONE]
            logger.warning("Could not schedule match %s: %s", match.id, '; '.join(reasons))
            self.log.append(SchedulingLogEntry(match, reasons))

        result = ScheduleResult(self.matches, self.assignments, self.log, self.states,
                                self.availability.ordered_courts)
        logger.info("Scheduling finished after %d passes: %d/%d matches scheduled",
                    passes, len(self.assignments), len(self.matches))
        return result


def schedule_matches(settings, matches) -> ScheduleResult:
    """Schedule matches under settings; raises only on configuration errors."""
    return MatchScheduler(settings, matches).run()
