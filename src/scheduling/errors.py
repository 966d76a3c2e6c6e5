"""
Configuration errors that abort a scheduling run before any assignment.

Per-match placement failures are never raised; they end up in the
scheduling log instead.
"""


class SchedulingConfigError(Exception):
    """Base class for structurally invalid scheduling input."""


class DuplicateMatchError(SchedulingConfigError):
    pass


class DuplicateCourtError(SchedulingConfigError):
    pass


class InvalidTimeWindowError(SchedulingConfigError):
    pass


class NoCourtsError(SchedulingConfigError):
    pass


class UnknownDependencyError(SchedulingConfigError):
    pass


class DependencyCycleError(SchedulingConfigError):
    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.cycle)}")


class InvalidTeamError(SchedulingConfigError):
    pass


class InvalidSettingsError(SchedulingConfigError):
    pass
