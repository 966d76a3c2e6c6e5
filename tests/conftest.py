"""
Shared pytest fixtures for match scheduler tests.

Running tests:
    pytest tests/
"""
import datetime
import os
import sys

import pytest
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from scheduling.models import Court, GlobalSettings, SchedulableMatch, ServiceWindow, Team

TOURNAMENT_DATE = datetime.date(2026, 7, 4)


def make_settings(courts, start_time="08:00", end_time="12:00", duration=20, buffer=0):
    return GlobalSettings(
        start_time=start_time,
        end_time=end_time,
        estimated_match_duration=duration,
        dependency_buffer_minutes=buffer,
        courts=courts,
        tournament_date=TOURNAMENT_DATE,
    )


def make_match(match_id, team1, team2, category="Cat A", stage="Grupo A", dependencies=None,
               is_group_match=None, not_before=None):
    """Build a match; team strings containing ' e ' become concrete teams."""
    def _team(value):
        return Team(value) if value and ' e ' in value else value
    return SchedulableMatch(
        id=match_id, category=category, stage=stage,
        team1=_team(team1), team2=_team(team2),
        dependencies=dependencies, is_group_match=is_group_match, not_before=not_before,
    )


def at(hour, minute=0):
    return datetime.datetime.combine(TOURNAMENT_DATE, datetime.time(hour, minute))


@pytest.fixture
def one_court():
    return [Court(name="Quadra 1", windows=[ServiceWindow("08:00", "12:00")], priority=1)]


@pytest.fixture
def two_courts():
    return [
        Court(name="Quadra 1", windows=[ServiceWindow("08:00", "12:00")], priority=1),
        Court(name="Quadra 2", windows=[ServiceWindow("08:00", "12:00")], priority=2),
    ]


@pytest.fixture
def split_window_court():
    """A court closed for lunch."""
    return [Court(name="Quadra 1", windows=[ServiceWindow("08:00", "09:00"), ServiceWindow("10:00", "12:00")])]


@pytest.fixture
def basic_settings(two_courts):
    return make_settings(two_courts)


@pytest.fixture
def eight_teams():
    return {
        "Grupo A": ["Ana e Bia", "Carla e Duda", "Eva e Fabi", "Gabi e Helo"],
        "Grupo B": ["Iara e Julia", "Kati e Lia", "Mara e Nina", "Olga e Paula"],
    }


@pytest.fixture
def tournament_data(eight_teams):
    """Two groups plus semifinals and final fed by group positions and winners."""
    return {
        "Feminino": {
            "groups": [{"name": name, "teams": teams} for name, teams in eight_teams.items()],
            "playoffs": {
                "Semifinal": [
                    {"id": "Feminino-SF-J1", "team1_placeholder": "1º do Grupo A", "team2_placeholder": "2º do Grupo B"},
                    {"id": "Feminino-SF-J2", "team1_placeholder": "1º do Grupo B", "team2_placeholder": "2º do Grupo A"},
                ],
                "Final": [
                    {"id": "Feminino-F-J1", "team1_placeholder": "Vencedor Feminino-SF-J1",
                     "team2_placeholder": "Vencedor Feminino-SF-J2"},
                ],
            },
        },
    }


@pytest.fixture
def data_dir(tmp_path, tournament_data):
    """Data directory with settings and tournament files."""
    settings = {
        'start_time': '08:00',
        'end_time': '18:00',
        'estimated_match_duration': 20,
        'tournament_date': TOURNAMENT_DATE.isoformat(),
        'courts': [
            {'name': 'Quadra 1', 'priority': 1, 'windows': [{'start_time': '08:00', 'end_time': '18:00'}]},
            {'name': 'Quadra 2', 'priority': 2, 'windows': [{'start_time': '08:00', 'end_time': '18:00'}]},
        ],
    }
    (tmp_path / "settings.yaml").write_text(yaml.dump(settings, default_flow_style=False), encoding='utf-8')
    (tmp_path / "tournament.yaml").write_text(
        yaml.dump(tournament_data, default_flow_style=False, allow_unicode=True), encoding='utf-8')
    return tmp_path
