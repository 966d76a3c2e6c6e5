"""
Data models for the match scheduling engine.
"""
import datetime
import re

from .errors import InvalidSettingsError, InvalidTimeWindowError

DEFAULT_MATCH_DURATION_MINUTES = 20
DEFAULT_COURT_PRIORITY = 99
TEAM_SEPARATOR = ' e '
END_OF_DAY = '24:00'

_TIME_RE = re.compile(r'^\d{2}:\d{2}$')


def parse_time(time_str):
    """Parse an 'HH:MM' string into a datetime.time."""
    if not isinstance(time_str, str) or not _TIME_RE.match(time_str.strip()):
        raise InvalidTimeWindowError(f"Invalid time '{time_str}', expected HH:MM")
    try:
        return datetime.datetime.strptime(time_str.strip(), '%H:%M').time()
    except ValueError:
        raise InvalidTimeWindowError(f"Invalid time '{time_str}', expected HH:MM")


def normalize_time(value):
    """
    Coerce a configured time to 'HH:MM'.

    YAML 1.1 reads unquoted values like 9:30 as base-60 integers (570), so
    integers are taken as minutes after midnight.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidTimeWindowError(f"Invalid time '{value}', expected HH:MM")
    if isinstance(value, int):
        hours, minutes = divmod(value, 60)
        return f"{hours:02d}:{minutes:02d}"
    value = str(value).strip()
    if re.match(r'^\d:\d{2}$', value):
        value = '0' + value
    return value


def datetime_from_time(time_obj, base_date):
    return datetime.datetime.combine(base_date, time_obj)


def format_time(dt):
    return dt.strftime('%H:%M')


def is_end_of_day(time_str):
    return isinstance(time_str, str) and time_str.strip() == END_OF_DAY


def end_of_window(time_str, base_date):
    """Like datetime_from_time(parse_time(...)), but '24:00' is midnight after base_date."""
    if is_end_of_day(time_str):
        return datetime.datetime.combine(base_date + datetime.timedelta(days=1), datetime.time(0, 0))
    return datetime_from_time(parse_time(time_str), base_date)


class ServiceWindow:
    """A contiguous interval during which a court accepts matches.

    end_time may be '24:00' for a court open until midnight.
    """

    def __init__(self, start_time, end_time):
        self.start_time = start_time
        self.end_time = end_time
        start = parse_time(start_time)
        if not is_end_of_day(end_time) and parse_time(end_time) <= start:
            raise InvalidTimeWindowError(
                f"Service window {start_time}-{end_time} must end after it starts"
            )

    def bounds(self, base_date):
        """Return the window as (start, end) datetimes on base_date."""
        return (datetime_from_time(parse_time(self.start_time), base_date),
                end_of_window(self.end_time, base_date))

    def to_dict(self):
        return {'start_time': self.start_time, 'end_time': self.end_time}

    def __eq__(self, other):
        return (isinstance(other, ServiceWindow)
                and (self.start_time, self.end_time) == (other.start_time, other.end_time))

    def __repr__(self):
        return f"ServiceWindow(start_time={self.start_time}, end_time={self.end_time})"


class Court:
    def __init__(self, name, windows=None, priority=None):
        self.name = name
        self.windows = list(windows) if windows else []
        self.priority = priority

    @property
    def sort_priority(self):
        return self.priority if self.priority is not None else DEFAULT_COURT_PRIORITY

    def to_dict(self):
        return {
            'name': self.name,
            'priority': self.priority,
            'windows': [w.to_dict() for w in self.windows],
        }

    def __repr__(self):
        return f"Court(name={self.name}, priority={self.priority}, windows={self.windows})"


def _minutes(field, value):
    if isinstance(value, bool):
        raise InvalidSettingsError(f"{field} must be a number of minutes, got '{value}'")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidSettingsError(f"{field} must be a number of minutes, got '{value}'")


class GlobalSettings:
    """Tournament-wide scheduling settings."""

    def __init__(self, start_time, courts, end_time=None,
                 estimated_match_duration=DEFAULT_MATCH_DURATION_MINUTES,
                 dependency_buffer_minutes=0, tournament_date=None):
        self.start_time = start_time
        self.end_time = end_time
        self.estimated_match_duration = _minutes('estimated_match_duration', estimated_match_duration)
        self.dependency_buffer_minutes = _minutes('dependency_buffer_minutes', dependency_buffer_minutes or 0)
        self.courts = list(courts)
        self.tournament_date = tournament_date or datetime.date.today()
        if self.estimated_match_duration <= 0:
            raise InvalidTimeWindowError("estimated_match_duration must be a positive number of minutes")
        if self.dependency_buffer_minutes < 0:
            raise InvalidTimeWindowError("dependency_buffer_minutes cannot be negative")
        parse_time(start_time)
        if end_time is not None and not is_end_of_day(end_time):
            parse_time(end_time)

    @property
    def start_datetime(self):
        return datetime_from_time(parse_time(self.start_time), self.tournament_date)

    @property
    def end_datetime(self):
        """Tournament end; midnight after the tournament date when unset."""
        return end_of_window(self.end_time or END_OF_DAY, self.tournament_date)

    @property
    def match_duration(self):
        return datetime.timedelta(minutes=self.estimated_match_duration)

    def to_dict(self):
        return {
            'start_time': self.start_time,
            'end_time': self.end_time,
            'estimated_match_duration': self.estimated_match_duration,
            'dependency_buffer_minutes': self.dependency_buffer_minutes,
            'courts': [c.to_dict() for c in self.courts],
        }

    def __repr__(self):
        return (f"GlobalSettings(start_time={self.start_time}, end_time={self.end_time}, "
                f"duration={self.estimated_match_duration}, courts={len(self.courts)})")


class TimeSlot:
    def __init__(self, index, start, end):
        self.index = index
        self.start = start
        self.end = end

    @property
    def label(self):
        return format_time(self.start)

    def __eq__(self, other):
        return isinstance(other, TimeSlot) and (self.index, self.start, self.end) == (other.index, other.start, other.end)

    def __lt__(self, other):
        return self.index < other.index

    def __hash__(self):
        return hash((self.index, self.start))

    def __repr__(self):
        return f"TimeSlot({self.index}, {format_time(self.start)}-{format_time(self.end)})"


class Team:
    def __init__(self, name, players=None):
        self.name = name
        if players is None:
            players = [p.strip() for p in name.split(TEAM_SEPARATOR)]
        self.players = tuple(p for p in players if p)

    @classmethod
    def from_players(cls, player1, player2):
        players = sorted([player1.strip(), player2.strip()])
        return cls(TEAM_SEPARATOR.join(players), players)

    def __eq__(self, other):
        return isinstance(other, Team) and self.players == other.players

    def __hash__(self):
        return hash(self.players)

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"Team(name={self.name}, players={self.players})"


class SchedulableMatch:
    """A group-stage or bracket match the engine can place on the grid.

    ``team1``/``team2`` are either a Team or a placeholder string such as
    "Vencedor CatA-U-R1-J1". Players are only known once both teams are
    concrete; until then the match has no player conflicts.
    """

    def __init__(self, id, category, stage, team1, team2, dependencies=None,
                 is_group_match=None, not_before=None):
        self.id = id
        self.category = category
        self.stage = stage
        self.team1 = team1
        self.team2 = team2
        self.dependencies = tuple(dict.fromkeys(dependencies or ()))
        self.is_group_match = (not self.dependencies) if is_group_match is None else is_group_match
        self.not_before = not_before
        if not_before is not None:
            parse_time(not_before)

    @property
    def players(self):
        if not isinstance(self.team1, Team) or not isinstance(self.team2, Team):
            return frozenset()
        return frozenset(self.team1.players + self.team2.players)

    @property
    def team1_label(self):
        return str(self.team1) if self.team1 else ''

    @property
    def team2_label(self):
        return str(self.team2) if self.team2 else ''

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'stage': self.stage,
            'team1': self.team1_label,
            'team2': self.team2_label,
            'dependencies': list(self.dependencies),
            'is_group_match': self.is_group_match,
        }

    def __repr__(self):
        return f"SchedulableMatch(id={self.id}, {self.team1_label} vs {self.team2_label}, stage={self.stage})"


class Assignment:
    def __init__(self, match_id, time_slot, court_name):
        self.match_id = match_id
        self.time_slot = time_slot
        self.court_name = court_name

    def to_dict(self):
        return {
            'match_id': self.match_id,
            'time': format_time(self.time_slot.start),
            'end_time': format_time(self.time_slot.end),
            'court': self.court_name,
        }

    def __repr__(self):
        return f"Assignment({self.match_id} -> {self.time_slot.label} @ {self.court_name})"


class SchedulingLogEntry:
    def __init__(self, match, reasons, checked_at_time=None):
        self.match_id = match.id
        self.team1 = match.team1_label
        self.team2 = match.team2_label
        self.category = match.category
        self.stage = match.stage
        self.reasons = list(reasons)
        self.checked_at_time = checked_at_time

    def to_dict(self):
        return {
            'match_id': self.match_id,
            'team1': self.team1,
            'team2': self.team2,
            'category': self.category,
            'stage': self.stage,
            'reasons': list(self.reasons),
            'checked_at_time': self.checked_at_time.label if self.checked_at_time else None,
        }

    def __repr__(self):
        return f"SchedulingLogEntry(match_id={self.match_id}, reasons={self.reasons})"
