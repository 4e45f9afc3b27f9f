"""
Validation of event payloads posted to the schedule API.
"""
import re

from core.models import EVENT_TYPES, parse_date

TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')

CREATE_RECURRENCE_TYPES = ('weekly', 'biweekly', 'monthly')
UPDATE_RECURRENCE_TYPES = ('daily', 'weekly', 'biweekly', 'monthly')

# field -> max length, for stripped free-text fields
TEXT_LIMITS = {
    'title': 100,
    'location': 200,
    'opponent': 100,
    'description': 1000,
}


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_event_payload(data, partial=False):
    """
    Validate and normalise an event payload.

    Checks:
    1. Required fields are present (create only)
    2. event_type is one of the known types
    3. Text fields are stripped and within their length limits
    4. Dates are ISO dates, times are 24h HH:MM
    5. Recurrence settings are within range
    6. end_date is not before event_date

    Returns (cleaned, errors). `errors` is a list of {'field', 'msg'} dicts.
    """
    if not isinstance(data, dict):
        return {}, [{'field': None, 'msg': 'Request body must be a JSON object'}]

    cleaned = {}
    errors = []

    def error(field, msg):
        errors.append({'field': field, 'msg': msg})

    def present(field):
        return data.get(field) not in (None, '')

    if not partial:
        for field in ('team_id', 'event_type', 'title', 'event_date'):
            if field not in data or data.get(field) in (None, ''):
                error(field, f'{field} is required')

    if not partial and present('team_id'):
        if not _is_int(data['team_id']) or data['team_id'] < 1:
            error('team_id', 'team_id must be a positive integer')
        else:
            cleaned['team_id'] = data['team_id']

    if present('event_type'):
        if data['event_type'] not in EVENT_TYPES:
            error('event_type', f"event_type must be one of {', '.join(EVENT_TYPES)}")
        else:
            cleaned['event_type'] = data['event_type']

    for field, limit in TEXT_LIMITS.items():
        if field not in data or data[field] is None:
            continue
        value = str(data[field]).strip()
        if field == 'title' and not value:
            error(field, 'title must not be empty')
        elif len(value) > limit:
            error(field, f'{field} must be at most {limit} characters')
        else:
            cleaned[field] = value

    for field in ('event_date', 'end_date', 'recurrence_end_date'):
        if not present(field):
            if field in data and field != 'event_date':
                cleaned[field] = None
            continue
        try:
            cleaned[field] = parse_date(data[field]).isoformat()
        except ValueError:
            error(field, f'{field} must be an ISO 8601 date')

    for field in ('start_time', 'end_time'):
        if not present(field):
            if field in data:
                cleaned[field] = None
            continue
        if not TIME_PATTERN.fullmatch(str(data[field])):
            error(field, f'{field} must be in HH:MM format')
        else:
            cleaned[field] = data[field]

    allowed_types = UPDATE_RECURRENCE_TYPES if partial else CREATE_RECURRENCE_TYPES
    max_interval = 30 if partial else 52
    if present('recurrence_type'):
        if data['recurrence_type'] not in allowed_types:
            error('recurrence_type', f"recurrence_type must be one of {', '.join(allowed_types)}")
        else:
            cleaned['recurrence_type'] = data['recurrence_type']
    elif 'recurrence_type' in data:
        cleaned['recurrence_type'] = None

    if present('recurrence_interval'):
        interval = data['recurrence_interval']
        if not _is_int(interval) or not 1 <= interval <= max_interval:
            error('recurrence_interval', f'recurrence_interval must be an integer between 1 and {max_interval}')
        else:
            cleaned['recurrence_interval'] = interval

    if 'recurrence_days_of_week' in data and data['recurrence_days_of_week'] is not None:
        days = data['recurrence_days_of_week']
        if not isinstance(days, list) or not all(_is_int(d) and 0 <= d <= 6 for d in days):
            error('recurrence_days_of_week', 'recurrence_days_of_week must be a list of integers 0-6')
        else:
            cleaned['recurrence_days_of_week'] = days

    start, end = cleaned.get('event_date'), cleaned.get('end_date')
    if start and end and end < start:
        error('end_date', 'end_date must not be before event_date')

    return cleaned, errors
