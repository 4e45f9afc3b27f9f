"""
Tests for event payload validation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.validation import validate_event_payload


def valid_payload(**overrides):
    payload = {
        'team_id': 1,
        'event_type': 'Game',
        'title': '  vs Lincoln  ',
        'event_date': '2025-03-15',
    }
    payload.update(overrides)
    return payload


def error_fields(errors):
    return {e['field'] for e in errors}


class TestCreateValidation:
    """Validation rules for new events."""

    def test_valid_payload(self):
        cleaned, errors = validate_event_payload(valid_payload(start_time='18:30', end_time='20:00'))
        assert errors == []
        assert cleaned['title'] == 'vs Lincoln'
        assert cleaned['event_date'] == '2025-03-15'
        assert cleaned['start_time'] == '18:30'

    def test_required_fields(self):
        cleaned, errors = validate_event_payload({})
        assert error_fields(errors) == {'team_id', 'event_type', 'title', 'event_date'}

    def test_non_object_body(self):
        cleaned, errors = validate_event_payload(None)
        assert cleaned == {}
        assert len(errors) == 1

    @pytest.mark.parametrize('field,value', [
        ('team_id', 0),
        ('team_id', '1'),
        ('team_id', True),
        ('event_type', 'Meeting'),
        ('title', '   '),
        ('title', 'x' * 101),
        ('event_date', '15/03/2025'),
        ('end_date', 'next week'),
        ('start_time', '24:00'),
        ('start_time', '18:30\n'),
        ('end_time', '7pm'),
        ('location', 'x' * 201),
        ('opponent', 'x' * 101),
        ('description', 'x' * 1001),
        ('recurrence_type', 'daily'),
        ('recurrence_interval', 53),
        ('recurrence_interval', 0),
        ('recurrence_days_of_week', [1, 7]),
        ('recurrence_days_of_week', 'mon'),
        ('recurrence_end_date', '2025-02-30'),
    ])
    def test_invalid_field(self, field, value):
        cleaned, errors = validate_event_payload(valid_payload(**{field: value}))
        assert field in error_fields(errors)

    def test_end_date_before_event_date(self):
        cleaned, errors = validate_event_payload(valid_payload(end_date='2025-03-14'))
        assert error_fields(errors) == {'end_date'}

    def test_iso_datetime_normalised_to_date(self):
        cleaned, errors = validate_event_payload(valid_payload(event_date='2025-03-15T00:00:00.000Z'))
        assert errors == []
        assert cleaned['event_date'] == '2025-03-15'

    def test_recurrence_fields(self):
        cleaned, errors = validate_event_payload(valid_payload(
            recurrence_type='weekly', recurrence_interval=2,
            recurrence_end_date='2025-06-01', recurrence_days_of_week=[2, 4]))
        assert errors == []
        assert cleaned['recurrence_type'] == 'weekly'
        assert cleaned['recurrence_interval'] == 2
        assert cleaned['recurrence_days_of_week'] == [2, 4]


class TestUpdateValidation:
    """Validation rules for partial updates."""

    def test_partial_allows_missing_fields(self):
        cleaned, errors = validate_event_payload({'title': 'Renamed'}, partial=True)
        assert errors == []
        assert cleaned == {'title': 'Renamed'}

    def test_partial_empty(self):
        cleaned, errors = validate_event_payload({}, partial=True)
        assert cleaned == {}
        assert errors == []

    def test_partial_allows_daily_and_caps_interval(self):
        cleaned, errors = validate_event_payload({'recurrence_type': 'daily'}, partial=True)
        assert errors == []
        cleaned, errors = validate_event_payload({'recurrence_interval': 31}, partial=True)
        assert error_fields(errors) == {'recurrence_interval'}

    def test_partial_clears_optional_fields(self):
        cleaned, errors = validate_event_payload({'end_date': None, 'start_time': ''}, partial=True)
        assert errors == []
        assert cleaned == {'end_date': None, 'start_time': None}

    def test_partial_ignores_team_id(self):
        cleaned, errors = validate_event_payload({'team_id': 99, 'title': 'Moved'}, partial=True)
        assert errors == []
        assert 'team_id' not in cleaned
