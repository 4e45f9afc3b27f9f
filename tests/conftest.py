"""
Shared pytest fixtures for the team schedule tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import datetime

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Event


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app's data files at a temporary directory."""
    import app as app_module

    teams_dir = tmp_path / "teams"
    teams_dir.mkdir()

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'TEAMS_FILE', str(tmp_path / "teams.yaml"))
    monkeypatch.setattr(app_module, 'TEAMS_DIR', str(teams_dir))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(tmp_path / "settings.yaml"))
    return tmp_path


@pytest.fixture
def fixed_today(monkeypatch):
    """Pin the app clock to 2025-03-12."""
    import app as app_module
    today = datetime.date(2025, 3, 12)
    monkeypatch.setattr(app_module, '_today', lambda: today)
    return today


@pytest.fixture
def team(client, temp_data_dir):
    """Create a team and return its registry entry."""
    response = client.post('/api/teams/create', json={'name': 'Varsity Girls'})
    assert response.status_code == 201
    return response.get_json()


@pytest.fixture
def sample_events():
    """A month of mixed events in March 2025."""
    return [
        Event(id=1, event_type='Practice', title='Serve receive', event_date='2025-03-03',
              start_time='18:00', end_time='20:00'),
        Event(id=2, event_type='Tournament', title='Spring Classic', event_date='2025-03-10',
              end_date='2025-03-12'),
        Event(id=3, event_type='Game', title='vs Lincoln', event_date='2025-03-11',
              start_time='19:00', opponent='Lincoln'),
        Event(id=4, event_type='Scrimmage', title='Alumni scrimmage', event_date='2025-03-15'),
        Event(id=5, event_type='Practice', title='Film session', event_date='2025-02-27',
              start_time='17:00'),
    ]
