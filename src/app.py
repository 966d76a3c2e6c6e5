"""
Flask web application exposing the match scheduler as a JSON API.
"""
import os
import logging
from flask import Flask, request, jsonify
from scheduling.config import settings_from_dict
from scheduling.errors import SchedulingConfigError
from scheduling.matches import build_all_matches, match_from_dict
from scheduling.scheduler import schedule_matches
from scheduling.service import RescheduleInProgressError, load_schedule_snapshot, reschedule_all

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'))


def _config_error_response(e):
    app.logger.warning(f'Scheduling configuration error: {e}')
    return jsonify({'error': str(e), 'kind': 'configuration'}), 400


@app.route('/api/schedule', methods=['POST'])
def api_schedule():
    """Schedule the posted matches without touching stored data."""
    payload = request.get_json(silent=True)
    if not payload or 'settings' not in payload:
        return jsonify({'error': 'Request body must contain settings and matches or categories'}), 400

    try:
        settings = settings_from_dict(payload['settings'])
        if 'matches' in payload:
            matches = [match_from_dict(m) for m in payload['matches']]
        else:
            matches = build_all_matches(payload.get('categories', {}))
        result = schedule_matches(settings, matches)
    except SchedulingConfigError as e:
        return _config_error_response(e)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'error': f'Malformed request: {e}', 'kind': 'request'}), 400

    return jsonify(result.to_dict())


@app.route('/api/reschedule', methods=['POST'])
def api_reschedule():
    """Reschedule every category stored in the data directory."""
    try:
        result = reschedule_all(DATA_DIR)
    except RescheduleInProgressError as e:
        return jsonify({'error': str(e)}), 409
    except SchedulingConfigError as e:
        return _config_error_response(e)

    app.logger.info(f"Reschedule finished: {result.stats()}")
    return jsonify({
        'success': True,
        'partial': result.is_partial,
        'stats': result.stats(),
        'log': [entry.to_dict() for entry in result.log],
    })


@app.route('/api/schedule', methods=['GET'])
def api_get_schedule():
    snapshot = load_schedule_snapshot(DATA_DIR)
    if snapshot is None:
        return jsonify({'error': 'No schedule generated yet'}), 404
    return jsonify(snapshot)


@app.route('/api/schedule/log', methods=['GET'])
def api_schedule_log():
    snapshot = load_schedule_snapshot(DATA_DIR)
    if snapshot is None:
        return jsonify({'error': 'No schedule generated yet'}), 404
    return jsonify({'log': snapshot.get('log', []), 'stats': snapshot.get('stats', {})})


if __name__ == '__main__':
    app.run(debug=True)
