"""
Unit tests for the Flask scheduling API.
"""
import pytest
import sys
import os
from filelock import FileLock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from app import app
from scheduling.service import LOCK_FILENAME

SETTINGS = {
    'start_time': '08:00',
    'end_time': '12:00',
    'estimated_match_duration': 20,
    'tournament_date': '2026-07-04',
    'courts': [
        {'name': 'Quadra 1', 'priority': 1, 'windows': [{'start_time': '08:00', 'end_time': '12:00'}]},
        {'name': 'Quadra 2', 'priority': 2, 'windows': [{'start_time': '08:00', 'end_time': '12:00'}]},
    ],
}


@pytest.fixture
def client():
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def app_data_dir(data_dir, monkeypatch):
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return data_dir


class TestScheduleEndpoint:
    def test_schedule_flat_matches(self, client):
        response = client.post('/api/schedule', json={
            'settings': SETTINGS,
            'matches': [
                {'id': 'M1', 'category': 'Cat', 'stage': 'Grupo A', 'team1': 'Ana e Bia', 'team2': 'Carla e Duda'},
                {'id': 'M2', 'category': 'Cat', 'stage': 'Grupo A', 'team1': 'Ana e Bia', 'team2': 'Eva e Fabi'},
                {'id': 'F', 'category': 'Cat', 'stage': 'Final', 'team1': 'Vencedor M1',
                 'team2': 'Vencedor M2', 'dependencies': ['M1', 'M2']},
            ],
        })
        assert response.status_code == 200
        data = response.get_json()
        assert data['assignments']['M1']['time'] == '08:00'
        assert data['assignments']['M2']['time'] == '08:20'
        assert data['assignments']['F']['time'] == '08:40'
        assert data['log'] == []
        assert data['stats']['scheduled_matches'] == 3

    def test_schedule_categories(self, client, tournament_data):
        response = client.post('/api/schedule', json={'settings': SETTINGS, 'categories': tournament_data})
        assert response.status_code == 200
        data = response.get_json()
        assert data['stats']['total_matches'] == 15
        assert len(data['partial_schedule']) == 15

    def test_partial_schedule_reports_log(self, client):
        settings = dict(SETTINGS, end_time='08:20')
        response = client.post('/api/schedule', json={
            'settings': settings,
            'matches': [
                {'id': 'M1', 'team1': 'Ana e Bia', 'team2': 'Carla e Duda'},
                {'id': 'M2', 'team1': 'Ana e Bia', 'team2': 'Eva e Fabi'},
            ],
        })
        data = response.get_json()
        assert response.status_code == 200
        assert data['stats']['unscheduled_matches'] == 1
        assert data['log'][0]['match_id'] == 'M2'
        assert 'jogador Ana já possui partida às 08:00' in data['log'][0]['reasons']

    def test_configuration_error_is_reported_distinctly(self, client):
        response = client.post('/api/schedule', json={
            'settings': SETTINGS,
            'matches': [
                {'id': 'A', 'team1': 'Vencedor B', 'team2': 'x', 'dependencies': ['B']},
                {'id': 'B', 'team1': 'Vencedor A', 'team2': 'x', 'dependencies': ['A']},
            ],
        })
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'configuration'

    def test_malformed_window_is_configuration_error(self, client):
        settings = dict(SETTINGS, courts=[{'name': 'Q', 'windows': [{'start_time': '10:00', 'end_time': '09:00'}]}])
        response = client.post('/api/schedule', json={'settings': settings, 'matches': []})
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'configuration'

    def test_missing_settings(self, client):
        response = client.post('/api/schedule', json={'matches': []})
        assert response.status_code == 400

    def test_match_without_id(self, client):
        response = client.post('/api/schedule', json={'settings': SETTINGS, 'matches': [{'team1': 'Ana e Bia'}]})
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'request'


class TestRescheduleEndpoints:
    def test_reschedule_then_read_back(self, client, app_data_dir):
        assert client.get('/api/schedule').status_code == 404
        assert client.get('/api/schedule/log').status_code == 404

        response = client.post('/api/reschedule')
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['partial'] is False

        snapshot = client.get('/api/schedule').get_json()
        assert snapshot['stats']['scheduled_matches'] == 15
        log = client.get('/api/schedule/log').get_json()
        assert log['log'] == []

    def test_reschedule_conflict_when_locked(self, client, app_data_dir):
        with FileLock(str(app_data_dir / LOCK_FILENAME)):
            response = client.post('/api/reschedule')
        assert response.status_code == 409

    def test_reschedule_with_malformed_settings(self, client, app_data_dir):
        (app_data_dir / 'settings.yaml').write_text("estimated_match_duration: abc\n", encoding='utf-8')
        response = client.post('/api/reschedule')
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'configuration'

    def test_schedule_named_teams_are_not_double_booked(self, client):
        response = client.post('/api/schedule', json={
            'settings': SETTINGS,
            'matches': [
                {'id': 'M1', 'team1': ['Ana', 'Bia'], 'team2': 'Time Azul'},
                {'id': 'M2', 'team1': 'Time Azul', 'team2': ['Carla', 'Duda']},
            ],
        })
        data = response.get_json()
        assert data['assignments']['M1']['time'] == '08:00'
        assert data['assignments']['M2']['time'] == '08:20'
