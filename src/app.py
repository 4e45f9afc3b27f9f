"""
Flask web application for the volleyball team schedule.
"""
import os
import re
import shutil
import calendar
import yaml
from datetime import date, datetime
from filelock import FileLock
from flask import Flask, request, jsonify
from core.models import Event, parse_time
from core.calendar_grid import build_month_grid, group_into_weeks, shift_month, DAY_HEADERS
from core.recurrence import expand_recurrence
from core.schedule import filter_events, upcoming_events, sort_events, format_event_time, format_event_date, VIEW_MODES
from core.validation import validate_event_payload

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('VOLLEYBALL_DATA_DIR', os.path.join(BASE_DIR, 'data'))

TEAMS_FILE = os.path.join(DATA_DIR, 'teams.yaml')
TEAMS_DIR = os.path.join(DATA_DIR, 'teams')
SETTINGS_FILE = os.path.join(DATA_DIR, 'settings.yaml')
EVENTS_FILENAME = 'events.yaml'

os.makedirs(DATA_DIR, exist_ok=True)
_data_lock = FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)


def _today() -> date:
    """Current date from the host clock."""
    return date.today()


def _slugify(name: str) -> str:
    """Convert team name to filesystem-safe slug."""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s-]+', '-', slug)
    slug = slug.strip('-')
    return slug or 'team'


def _is_safe_slug(slug: str) -> bool:
    return bool(slug) and '..' not in slug and '/' not in slug and '\\' not in slug


def ensure_data_structure():
    """Ensure the data directories exist."""
    os.makedirs(TEAMS_DIR, exist_ok=True)


ensure_data_structure()


def get_default_settings():
    """Return default settings."""
    return {
        'club_name': 'Volleyball Club',
        'upcoming_window_days': 30,
        'upcoming_limit': 10,
        'max_events_per_day': 3,
    }


def load_settings():
    """Load settings from YAML file, merging with defaults."""
    defaults = get_default_settings()
    if not os.path.exists(SETTINGS_FILE):
        return defaults
    try:
        with open(SETTINGS_FILE, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {SETTINGS_FILE}: {e}')
        return defaults
    if not data:
        return defaults
    if not isinstance(data, dict):
        app.logger.warning(f'Unexpected format in {SETTINGS_FILE}, using defaults')
        return defaults
    return {**defaults, **data}


def save_settings(settings):
    """Save settings to YAML file."""
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(SETTINGS_FILE, 'w', encoding='utf-8') as f:
        yaml.dump(settings, f, default_flow_style=False)


def load_teams() -> list:
    """Load team registry from YAML."""
    if not os.path.exists(TEAMS_FILE):
        return []
    try:
        with open(TEAMS_FILE, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {TEAMS_FILE}: {e}')
        return []
    if not data:
        return []
    teams = data.get('teams') if isinstance(data, dict) else None
    if not isinstance(teams, list):
        app.logger.warning(f'Unexpected format in {TEAMS_FILE}, ignoring it')
        return []
    return [t for t in teams if isinstance(t, dict) and 'slug' in t]


def save_teams(teams: list):
    """Save team registry to YAML."""
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(TEAMS_FILE, 'w', encoding='utf-8') as f:
        yaml.dump({'teams': teams}, f, default_flow_style=False)


def _find_team(slug: str):
    return next((t for t in load_teams() if t['slug'] == slug), None)


def _resolve_team(slug: str):
    """Return (team, None) or (None, error_response)."""
    if not _is_safe_slug(slug):
        return None, (jsonify({'error': 'Invalid team identifier'}), 400)
    team = _find_team(slug)
    if team is None:
        return None, (jsonify({'error': 'Team not found'}), 404)
    return team, None


def _events_file(slug: str) -> str:
    return os.path.join(TEAMS_DIR, slug, EVENTS_FILENAME)


def load_event_records(slug: str) -> dict:
    """Load the raw event store for a team: {'next_id': int, 'events': [dict, ...]}."""
    path = _events_file(slug)
    empty = {'next_id': 1, 'events': []}
    if not os.path.exists(path):
        return empty
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return empty
    if not data:
        return empty
    if not isinstance(data, dict):
        app.logger.warning(f'Unexpected format in {path}, ignoring it')
        return empty
    data.setdefault('events', [])
    if 'next_id' not in data:
        ids = [r.get('id') for r in data['events'] if isinstance(r, dict) and isinstance(r.get('id'), int)]
        data['next_id'] = max(ids, default=0) + 1
    return data


def save_event_records(slug: str, store: dict):
    """Save the raw event store for a team."""
    path = _events_file(slug)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(store, f, default_flow_style=False, sort_keys=False)


def load_events(slug: str) -> list:
    """Load a team's events, skipping records that cannot be parsed."""
    events = []
    for record in load_event_records(slug)['events']:
        try:
            event = Event.from_dict(record)
            parse_time(event.start_time)
            parse_time(event.end_time)
        except ValueError as e:
            app.logger.warning(f'Skipping malformed event in team {slug}: {e}')
            continue
        events.append(event)
    return events


def _event_json(event: Event) -> dict:
    """Serialize an event with its display strings."""
    data = event.to_dict()
    data['time_display'] = format_event_time(event.start_time, event.end_time)
    data['date_display'] = format_event_date(event.event_date)
    return data


def _positive_int_arg(name: str, default: int):
    """Read a positive integer query argument. Returns (value, error_message)."""
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default, None
    try:
        value = int(raw)
    except ValueError:
        return None, f'{name} must be an integer'
    if value < 1:
        return None, f'{name} must be positive'
    return value, None


@app.route('/api/health')
def api_health():
    return jsonify({'status': 'ok'})


@app.route('/api/settings', methods=['GET'])
def api_settings():
    return jsonify(load_settings())


@app.route('/api/settings/update', methods=['POST'])
def api_update_settings():
    """AJAX endpoint for updating settings."""
    data = request.get_json(silent=True) or {}
    settings = load_settings()

    if 'club_name' in data:
        settings['club_name'] = str(data['club_name']).strip()
    for key in ('upcoming_window_days', 'upcoming_limit', 'max_events_per_day'):
        if key in data:
            try:
                value = int(data[key])
            except (TypeError, ValueError):
                return jsonify({'success': False, 'error': f'{key} must be an integer'}), 400
            if value < 1:
                return jsonify({'success': False, 'error': f'{key} must be positive'}), 400
            settings[key] = value

    with _data_lock:
        save_settings(settings)
    return jsonify({'success': True, 'settings': settings})


@app.route('/api/teams', methods=['GET'])
def api_teams():
    return jsonify({'teams': load_teams()})


@app.route('/api/teams/create', methods=['POST'])
def api_create_team():
    """Create a new team."""
    data = request.get_json(silent=True) or {}
    name = str(data.get('name', '')).strip()
    if not name:
        return jsonify({'error': 'Team name is required'}), 400

    slug = _slugify(name)
    with _data_lock:
        teams = load_teams()
        if any(t['slug'] == slug for t in teams):
            return jsonify({'error': f'A team with a similar name already exists ("{slug}")'}), 409
        team = {
            'id': max((t.get('id', 0) for t in teams), default=0) + 1,
            'slug': slug,
            'name': name,
            'created': datetime.now().isoformat(),
        }
        teams.append(team)
        save_teams(teams)
        os.makedirs(os.path.join(TEAMS_DIR, slug), exist_ok=True)

    app.logger.info(f'Created team {slug}')
    return jsonify(team), 201


@app.route('/api/teams/delete', methods=['POST'])
def api_delete_team():
    """Delete a team and all its events."""
    data = request.get_json(silent=True) or {}
    slug = str(data.get('slug', '')).strip()
    if not _is_safe_slug(slug):
        return jsonify({'error': 'Invalid team identifier'}), 400

    with _data_lock:
        teams = load_teams()
        remaining = [t for t in teams if t['slug'] != slug]
        if len(remaining) == len(teams):
            return jsonify({'error': 'Team not found'}), 404
        save_teams(remaining)
        team_path = os.path.join(TEAMS_DIR, slug)
        if os.path.isdir(team_path):
            shutil.rmtree(team_path)

    app.logger.info(f'Deleted team {slug}')
    return jsonify({'success': True})


@app.route('/api/teams/<slug>/schedule', methods=['GET'])
def api_team_schedule(slug):
    """All events for a team, ordered by date then start time."""
    team, error = _resolve_team(slug)
    if error:
        return error
    return jsonify([_event_json(e) for e in sort_events(load_events(slug))])


@app.route('/api/teams/<slug>/schedule/upcoming', methods=['GET'])
def api_upcoming_events(slug):
    """Events in the upcoming window (settings.upcoming_window_days)."""
    team, error = _resolve_team(slug)
    if error:
        return error
    settings = load_settings()
    limit, msg = _positive_int_arg('limit', settings['upcoming_limit'])
    if msg:
        return jsonify({'error': msg}), 400
    events = upcoming_events(load_events(slug), _today(),
                             days=settings['upcoming_window_days'], limit=limit)
    return jsonify([_event_json(e) for e in events])


@app.route('/api/teams/<slug>/schedule/list', methods=['GET'])
def api_filtered_schedule(slug):
    """Schedule list filtered by view mode (upcoming/past/all) and event type."""
    team, error = _resolve_team(slug)
    if error:
        return error
    view_mode = request.args.get('view', 'upcoming')
    if view_mode not in VIEW_MODES:
        return jsonify({'error': f"view must be one of {', '.join(VIEW_MODES)}"}), 400
    event_type = request.args.get('event_type') or None
    events = filter_events(sort_events(load_events(slug)), view_mode, event_type, today=_today())
    return jsonify([_event_json(e) for e in events])


@app.route('/api/teams/<slug>/events/<int:event_id>', methods=['GET'])
def api_get_event(slug, event_id):
    team, error = _resolve_team(slug)
    if error:
        return error
    event = next((e for e in load_events(slug) if e.id == event_id), None)
    if event is None:
        return jsonify({'error': 'Event not found'}), 404
    data = _event_json(event)
    data['team_name'] = team['name']
    return jsonify(data)


@app.route('/api/teams/<slug>/events', methods=['POST'])
def api_create_event(slug):
    """Create an event; recurring events also store their generated instances."""
    team, error = _resolve_team(slug)
    if error:
        return error

    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        payload.setdefault('team_id', team['id'])
    cleaned, errors = validate_event_payload(payload)
    if errors:
        return jsonify({'error': 'Validation failed', 'details': errors}), 400
    if cleaned['team_id'] != team['id']:
        return jsonify({'error': 'team_id does not match the team'}), 400

    with _data_lock:
        store = load_event_records(slug)
        now = datetime.now().isoformat()
        parent = Event.from_dict({**cleaned, 'id': store['next_id'], 'created_at': now, 'updated_at': now})
        store['next_id'] += 1
        store['events'].append(parent.to_dict())

        instances = []
        if parent.recurrence_type and parent.recurrence_end_date:
            instances = expand_recurrence(parent)
            for child in instances:
                child.id = store['next_id']
                child.created_at = child.updated_at = now
                store['next_id'] += 1
                store['events'].append(child.to_dict())
        save_event_records(slug, store)

    app.logger.info(f'Created event {parent.id} for team {slug} with {len(instances)} recurring instances')
    return jsonify(_event_json(parent)), 201


@app.route('/api/teams/<slug>/events/<int:event_id>', methods=['PUT'])
def api_update_event(slug, event_id):
    team, error = _resolve_team(slug)
    if error:
        return error

    cleaned, errors = validate_event_payload(request.get_json(silent=True), partial=True)
    if errors:
        return jsonify({'error': 'Validation failed', 'details': errors}), 400
    if not cleaned:
        return jsonify({'error': 'No fields to update'}), 400

    with _data_lock:
        store = load_event_records(slug)
        index = next((i for i, r in enumerate(store['events'])
                      if isinstance(r, dict) and r.get('id') == event_id), None)
        if index is None:
            return jsonify({'error': 'Event not found'}), 404
        merged = {**store['events'][index], **cleaned, 'updated_at': datetime.now().isoformat()}
        try:
            event = Event.from_dict(merged)
        except ValueError as e:
            return jsonify({'error': 'Validation failed', 'details': [{'field': None, 'msg': str(e)}]}), 400
        if event.end_date is not None and event.end_date < event.event_date:
            return jsonify({'error': 'Validation failed', 'details': [
                {'field': 'end_date', 'msg': 'end_date must not be before event_date'}]}), 400
        store['events'][index] = event.to_dict()
        save_event_records(slug, store)

    app.logger.info(f'Updated event {event_id} for team {slug}: {sorted(cleaned)}')
    return jsonify(_event_json(event))


@app.route('/api/teams/<slug>/events/<int:event_id>', methods=['DELETE'])
def api_delete_event(slug, event_id):
    team, error = _resolve_team(slug)
    if error:
        return error

    with _data_lock:
        store = load_event_records(slug)
        remaining = [r for r in store['events'] if not (isinstance(r, dict) and r.get('id') == event_id)]
        if len(remaining) == len(store['events']):
            return jsonify({'error': 'Event not found'}), 404
        store['events'] = remaining
        save_event_records(slug, store)

    app.logger.info(f'Deleted event {event_id} for team {slug}')
    return jsonify({'message': 'Event deleted successfully'})


@app.route('/api/teams/<slug>/calendar', methods=['GET'])
def api_calendar(slug):
    """Month grid for a team. Query: year, month (1-12); defaults to the current month."""
    team, error = _resolve_team(slug)
    if error:
        return error

    today = _today()
    try:
        year = int(request.args.get('year', today.year))
        month = int(request.args.get('month', today.month))
    except ValueError:
        return jsonify({'error': 'year and month must be integers'}), 400
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        return jsonify({'error': 'month must be 1-12 and year 1-9999'}), 400
    # The grid must stay inside the range datetime.date supports
    if (year, month) in ((1, 1), (9999, 12)):
        return jsonify({'error': 'month is outside the supported calendar range'}), 400

    settings = load_settings()
    days = build_month_grid(year, month - 1, today, events=load_events(slug))
    prev_year, prev_month = shift_month(year, month - 1, -1)
    next_year, next_month = shift_month(year, month - 1, 1)
    max_events = settings['max_events_per_day']

    return jsonify({
        'team': team['slug'],
        'year': year,
        'month': month,
        'month_name': calendar.month_name[month],
        'day_headers': list(DAY_HEADERS),
        'previous': {'year': prev_year, 'month': prev_month + 1},
        'next': {'year': next_year, 'month': next_month + 1},
        'weeks': [[d.to_dict(max_events=max_events) for d in week] for week in group_into_weeks(days)],
    })


if __name__ == '__main__':
    app.run(debug=True, port=5000)
