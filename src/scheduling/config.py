"""
Loading scheduling settings and tournament data from disk.
"""
import csv
import datetime
import os

import yaml

from .errors import InvalidSettingsError, InvalidTimeWindowError
from .models import DEFAULT_MATCH_DURATION_MINUTES, Court, GlobalSettings, ServiceWindow, normalize_time


def get_default_settings():
    """Return default global settings."""
    return {
        'start_time': '08:00',
        'end_time': None,
        'estimated_match_duration': DEFAULT_MATCH_DURATION_MINUTES,
        'dependency_buffer_minutes': 0,
        'tournament_date': None,
        'courts': [],
    }


def _parse_priority(value):
    if value is None or str(value).strip() == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidTimeWindowError(f"Invalid court priority '{value}'")


def _window_from_dict(court_name, data):
    try:
        start, end = data['start_time'], data['end_time']
    except (KeyError, TypeError):
        raise InvalidTimeWindowError(
            f"Court '{court_name}': service window {data!r} needs start_time and end_time")
    return ServiceWindow(normalize_time(start), normalize_time(end))


def court_from_dict(data):
    if not isinstance(data, dict) or not str(data.get('name') or '').strip():
        raise InvalidSettingsError(f"Court entry {data!r} needs a name")
    name = str(data['name']).strip()
    # Original settings stored windows under 'slots'
    windows = data.get('windows', data.get('slots')) or []
    return Court(
        name=name,
        windows=[_window_from_dict(name, w) for w in windows],
        priority=_parse_priority(data.get('priority')),
    )


def load_courts_csv(file_path):
    """
    Load courts from a CSV file with one row per service window.

    Columns: court_name, start_time, end_time, priority. A row with empty
    start/end times declares a court without windows.
    """
    courts = {}
    with open(file_path, mode='r', encoding='utf-8') as file:
        reader = csv.DictReader(file)
        for line, row in enumerate(reader, start=2):
            name = (row.get('court_name') or '').strip()
            if not name:
                raise InvalidSettingsError(f"{file_path}:{line}: missing court_name")
            if name not in courts:
                courts[name] = Court(name=name, priority=_parse_priority(row.get('priority')))
            start = (row.get('start_time') or '').strip()
            end = (row.get('end_time') or '').strip()
            if start or end:
                courts[name].windows.append(ServiceWindow(normalize_time(start), normalize_time(end)))
    return list(courts.values())


def _parse_date(value):
    if value is None or isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidSettingsError(f"Invalid tournament_date '{value}', expected YYYY-MM-DD")


def settings_from_dict(data, courts=None):
    if data is not None and not isinstance(data, dict):
        raise InvalidSettingsError("Settings must be a mapping")
    merged = get_default_settings()
    merged.update({k: v for k, v in (data or {}).items() if v is not None})

    if courts is None:
        courts = [court_from_dict(c) for c in merged.get('courts') or []]

    return GlobalSettings(
        start_time=normalize_time(merged['start_time']),
        end_time=normalize_time(merged.get('end_time')),
        estimated_match_duration=merged['estimated_match_duration'],
        dependency_buffer_minutes=merged['dependency_buffer_minutes'],
        courts=courts,
        tournament_date=_parse_date(merged.get('tournament_date')),
    )


def load_settings(file_path, courts_file=None):
    """Load global settings from YAML, optionally taking courts from a CSV file."""
    data = {}
    if os.path.exists(file_path):
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    courts = load_courts_csv(courts_file) if courts_file else None
    return settings_from_dict(data, courts)


def load_tournament(file_path):
    """Load the per-category tournament data (groups and playoffs)."""
    if not os.path.exists(file_path):
        return {}
    with open(file_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}
