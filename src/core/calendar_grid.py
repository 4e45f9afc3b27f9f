"""
Month calendar grid and event-to-day matching.

All comparisons are done on plain calendar dates (datetime.date). Callers read
the clock themselves and pass `today` in.
"""
import datetime

from core.models import CalendarDay

GRID_DAYS = 42  # 6 weeks of 7 days
DAY_HEADERS = ('Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat')


def _as_date(value):
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def grid_start_date(year, month):
    """Return the Sunday on or before the 1st of the month (month is 0-indexed)."""
    if not 0 <= month <= 11:
        raise ValueError(f'Month index must be 0-11, got {month}')
    first_of_month = datetime.date(year, month + 1, 1)
    # date.weekday() is Monday=0; shift so Sunday=0
    days_since_sunday = (first_of_month.weekday() + 1) % 7
    return first_of_month - datetime.timedelta(days=days_since_sunday)


def events_on_day(events, day):
    """Return the events that fall on `day`, keeping their original order.

    An event matches when its start date is `day`, or when it has an end date
    and `day` lies within [event_date, end_date] inclusive.
    """
    day = _as_date(day)
    matched = []
    for event in events:
        if event.event_date == day:
            matched.append(event)
        elif event.end_date is not None and event.event_date <= day <= event.end_date:
            matched.append(event)
    return matched


def build_month_grid(year, month, today, events=None):
    """Build the 42-day grid for a month.

    Args:
        year: Four-digit year.
        month: 0-indexed month (0 = January, 11 = December).
        today: Date used for the is_today flag.
        events: Optional events to attach to each day.

    Returns:
        List of 42 CalendarDay objects starting on a Sunday.
    """
    start = grid_start_date(year, month)
    today = _as_date(today)
    events = events or []
    days = []
    for offset in range(GRID_DAYS):
        date = start + datetime.timedelta(days=offset)
        days.append(CalendarDay(
            date=date,
            is_current_month=date.month == month + 1,
            is_today=date == today,
            events=events_on_day(events, date),
        ))
    return days


def group_into_weeks(days):
    """Split a grid into rows of 7 days."""
    return [days[i:i + 7] for i in range(0, len(days), 7)]


def shift_month(year, month, delta):
    """Move a 0-indexed (year, month) pair by `delta` months."""
    total = year * 12 + month + delta
    return total // 12, total % 12
