"""
Dependency resolution between bracket matches.
"""
import datetime
from typing import Dict, List

from .errors import DependencyCycleError, UnknownDependencyError
from .models import datetime_from_time, parse_time
from .time_grid import first_slot_at_or_after


class _Unresolvable:
    def __repr__(self):
        return 'UNRESOLVABLE'


# Returned when a dependency has no assignment yet in the current pass
UNRESOLVABLE = _Unresolvable()


def validate_dependency_graph(matches) -> None:
    """
    Check that every dependency refers to a known match and that the
    dependency graph is acyclic.

    Raises UnknownDependencyError or DependencyCycleError.
    """
    by_id = {m.id: m for m in matches}
    for match in matches:
        for dep_id in match.dependencies:
            if dep_id not in by_id:
                raise UnknownDependencyError(
                    f"Match {match.id} depends on unknown match {dep_id}")

    # Iterative DFS with white/grey/black colouring
    WHITE, GREY, BLACK = 0, 1, 2
    colour = {m.id: WHITE for m in matches}
    for root in matches:
        if colour[root.id] != WHITE:
            continue
        path = [root.id]
        stack = [(root.id, iter(by_id[root.id].dependencies))]
        colour[root.id] = GREY
        while stack:
            node, deps = stack[-1]
            dep_id = next(deps, None)
            if dep_id is None:
                colour[node] = BLACK
                stack.pop()
                path.pop()
                continue
            if colour[dep_id] == GREY:
                start = path.index(dep_id)
                raise DependencyCycleError(path[start:] + [dep_id])
            if colour[dep_id] == WHITE:
                colour[dep_id] = GREY
                path.append(dep_id)
                stack.append((dep_id, iter(by_id[dep_id].dependencies)))


class DependencyResolver:
    """Computes the earliest grid slot a match may start in."""

    def __init__(self, grid, buffer_minutes=0, base_date=None):
        self.grid = grid
        self.buffer = datetime.timedelta(minutes=buffer_minutes)
        self.base_date = base_date or (grid[0].start.date() if grid else datetime.date.today())

    def missing_dependencies(self, match, assignments: Dict) -> List[str]:
        return [dep_id for dep_id in match.dependencies if dep_id not in assignments]

    def earliest_start(self, match, assignments: Dict):
        """
        Return the index of the earliest slot match may use, or UNRESOLVABLE
        when one of its dependencies has not been placed yet.

        The index equals len(grid) when the earliest start falls past the
        end of the tournament window.
        """
        earliest = 0
        if match.not_before is not None:
            not_before = datetime_from_time(parse_time(match.not_before), self.base_date)
            earliest = first_slot_at_or_after(self.grid, not_before)

        if self.missing_dependencies(match, assignments):
            return UNRESOLVABLE

        for dep_id in match.dependencies:
            ready_at = assignments[dep_id].time_slot.end + self.buffer
            earliest = max(earliest, first_slot_at_or_after(self.grid, ready_at))
        return earliest
