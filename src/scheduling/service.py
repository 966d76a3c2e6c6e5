"""
Global reschedule over every category of a tournament.

All categories are merged into one scheduling run so that players entered
in several categories never get overlapping matches. The run holds an
exclusive lock on the data directory; a second reschedule started while
one is in progress fails immediately instead of interleaving.
"""
import logging
import os

import yaml
from filelock import FileLock, Timeout

from .config import load_settings, load_tournament
from .matches import build_all_matches, merge_assignments
from .scheduler import schedule_matches

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = 'settings.yaml'
COURTS_FILENAME = 'courts.csv'
TOURNAMENT_FILENAME = 'tournament.yaml'
SCHEDULE_FILENAME = 'schedule.yaml'
LOCK_FILENAME = '.schedule.lock'


class RescheduleInProgressError(Exception):
    pass


def _convert_to_serializable(obj):
    """Convert tuples to lists recursively for YAML serialization."""
    if isinstance(obj, dict):
        return {k: _convert_to_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_convert_to_serializable(item) for item in obj]
    else:
        return obj


def run_schedule(settings, tournament_data):
    """Pure computation: settings + tournament data -> ScheduleResult."""
    return schedule_matches(settings, build_all_matches(tournament_data))


def save_schedule_snapshot(data_dir, result):
    snapshot = {
        'schedule': result.partial_schedule(),
        'by_court': result.get_schedule_output(),
        'log': [entry.to_dict() for entry in result.log],
        'stats': result.stats(),
    }
    with open(os.path.join(data_dir, SCHEDULE_FILENAME), 'w', encoding='utf-8') as f:
        yaml.dump(_convert_to_serializable(snapshot), f, default_flow_style=False, allow_unicode=True)


def load_schedule_snapshot(data_dir):
    """Load the last saved schedule snapshot, or None if there is none."""
    path = os.path.join(data_dir, SCHEDULE_FILENAME)
    if not os.path.exists(path):
        return None
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or None


def reschedule_all(data_dir, lock_timeout=0):
    """
    Reschedule every match of the tournament stored in data_dir.

    Reads settings.yaml (and courts.csv when present) and tournament.yaml,
    writes the assignments back into tournament.yaml and stores a snapshot
    with the scheduling log in schedule.yaml.

    Raises RescheduleInProgressError if another reschedule holds the lock,
    and SchedulingConfigError for invalid input (nothing is written then).
    """
    lock = FileLock(os.path.join(data_dir, LOCK_FILENAME), timeout=lock_timeout)
    try:
        lock.acquire()
    except Timeout:
        raise RescheduleInProgressError(f"A reschedule is already running for {data_dir}")

    try:
        courts_file = os.path.join(data_dir, COURTS_FILENAME)
        settings = load_settings(os.path.join(data_dir, SETTINGS_FILENAME),
                                 courts_file if os.path.exists(courts_file) else None)
        tournament_data = load_tournament(os.path.join(data_dir, TOURNAMENT_FILENAME))

        result = run_schedule(settings, tournament_data)

        merge_assignments(tournament_data, result)
        with open(os.path.join(data_dir, TOURNAMENT_FILENAME), 'w', encoding='utf-8') as f:
            yaml.dump(tournament_data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        save_schedule_snapshot(data_dir, result)

        if result.is_partial:
            logger.warning("%d matches could not be scheduled", len(result.unscheduled_match_ids))
        return result
    finally:
        lock.release()
