"""
Helpers for listing a team's schedule: filtering, upcoming window and display formatting.
"""
import datetime

from core.models import parse_time

VIEW_MODES = ('upcoming', 'past', 'all')


def _as_date(value):
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def is_event_upcoming(event, today):
    """An event is upcoming from its start date onwards, today included."""
    return event.event_date >= _as_date(today)


def is_event_today(event, today):
    return event.event_date == _as_date(today)


def _sort_key(event):
    start = parse_time(event.start_time) if event.start_time else None
    # Events without a start time come first on their day
    return (event.event_date, start is not None, start or datetime.time.min)


def sort_events(events):
    """Return events ordered by date, then start time."""
    return sorted(events, key=_sort_key)


def filter_events(events, view_mode='upcoming', event_type=None, today=None):
    """Filter events by view mode and event type, keeping their order."""
    if view_mode not in VIEW_MODES:
        raise ValueError(f'Unknown view mode: {view_mode}')
    today = _as_date(today or datetime.date.today())

    filtered = list(events)
    if view_mode == 'upcoming':
        filtered = [e for e in filtered if is_event_upcoming(e, today)]
    elif view_mode == 'past':
        filtered = [e for e in filtered if not is_event_upcoming(e, today)]

    if event_type:
        filtered = [e for e in filtered if e.event_type == event_type]
    return filtered


def upcoming_events(events, today, days=30, limit=10):
    """Events starting within the next `days` days, soonest first."""
    today = _as_date(today)
    window_end = today + datetime.timedelta(days=days)
    in_window = [e for e in events if today <= e.event_date <= window_end]
    return sort_events(in_window)[:limit]


def format_time(value):
    """'18:30' -> '6:30 PM'."""
    t = parse_time(value)
    hour = t.hour % 12 or 12
    suffix = 'PM' if t.hour >= 12 else 'AM'
    return f'{hour}:{t.minute:02d} {suffix}'


def format_event_time(start_time=None, end_time=None):
    if not start_time and not end_time:
        return 'All Day'
    if start_time and not end_time:
        return format_time(start_time)
    if not start_time:
        return f'Until {format_time(end_time)}'
    return f'{format_time(start_time)} - {format_time(end_time)}'


def format_event_date(value):
    """date(2025, 3, 15) -> 'Sat, Mar 15, 2025'."""
    d = _as_date(value)
    return f"{d.strftime('%a, %b')} {d.day}, {d.year}"
