import datetime
import re

EVENT_TYPES = ('Practice', 'Game', 'Scrimmage', 'Tournament')
RECURRENCE_TYPES = ('daily', 'weekly', 'biweekly', 'monthly')

EVENT_FIELDS = (
    'id', 'team_id', 'event_type', 'title', 'description', 'event_date', 'end_date',
    'start_time', 'end_time', 'location', 'opponent', 'recurrence_type',
    'recurrence_interval', 'recurrence_end_date', 'recurrence_days_of_week',
    'parent_event_id', 'created_at', 'updated_at',
)
DATE_FIELDS = ('event_date', 'end_date', 'recurrence_end_date')
_DATE_PREFIX = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')


def parse_date(value):
    """Parse a stored date into a datetime.date.

    Accepts date/datetime objects, 'YYYY-MM-DD' strings and full ISO datetime
    strings. For datetime strings the calendar date written in the string is
    kept, no timezone conversion is applied.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        raise ValueError(f'Invalid date: {value!r}')
    text = value.strip()
    if not _DATE_PREFIX.match(text) or (len(text) > 10 and text[10] not in ('T', ' ')):
        raise ValueError(f'Invalid date: {value!r}')
    try:
        return datetime.date.fromisoformat(text[:10])
    except ValueError:
        raise ValueError(f'Invalid date: {value!r}') from None


def parse_time(value):
    """Parse 'H:MM' / 'HH:MM' (optionally with seconds) into a datetime.time."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime.time):
        return value
    parts = str(value).strip().split(':')
    if len(parts) not in (2, 3):
        raise ValueError(f'Invalid time: {value!r}')
    try:
        return datetime.time(*(int(p) for p in parts))
    except (TypeError, ValueError):
        raise ValueError(f'Invalid time: {value!r}') from None


class Event:
    def __init__(self, event_date, event_type='Practice', title='', end_date=None,
                 start_time=None, end_time=None, **extra):
        self.event_date = parse_date(event_date)
        if self.event_date is None:
            raise ValueError('event_date is required')
        self.end_date = parse_date(end_date)
        self.event_type = event_type
        self.title = title
        self.start_time = start_time  # Display only, never used for day matching
        self.end_time = end_time
        self.recurrence_end_date = parse_date(extra.pop('recurrence_end_date', None))
        self.id = extra.pop('id', None)
        self.team_id = extra.pop('team_id', None)
        self.description = extra.pop('description', None)
        self.location = extra.pop('location', None)
        self.opponent = extra.pop('opponent', None)
        self.recurrence_type = extra.pop('recurrence_type', None)
        self.recurrence_interval = extra.pop('recurrence_interval', None)
        self.recurrence_days_of_week = extra.pop('recurrence_days_of_week', None)
        self.parent_event_id = extra.pop('parent_event_id', None)
        self.created_at = extra.pop('created_at', None)
        self.updated_at = extra.pop('updated_at', None)

    @classmethod
    def from_dict(cls, data):
        """Build an Event from a stored/posted record. Raises ValueError on bad dates."""
        if not isinstance(data, dict):
            raise ValueError(f'Event record must be a mapping, got {type(data).__name__}')
        if not data.get('event_date'):
            raise ValueError('event_date is required')
        return cls(**{k: data.get(k) for k in EVENT_FIELDS if k in data})

    def to_dict(self):
        data = {}
        for key in EVENT_FIELDS:
            value = getattr(self, key)
            if key in DATE_FIELDS and value is not None:
                value = value.isoformat()
            data[key] = value
        return data

    @property
    def is_multi_day(self):
        return self.end_date is not None and self.end_date > self.event_date

    @property
    def span_days(self):
        """Number of days after event_date the event keeps running (0 for single-day)."""
        if not self.is_multi_day:
            return 0
        return (self.end_date - self.event_date).days

    def __repr__(self):
        return (f"Event(id={self.id}, title={self.title}, event_type={self.event_type}, "
                f"event_date={self.event_date}, end_date={self.end_date})")


class CalendarDay:
    def __init__(self, date, is_current_month, is_today, events=None):
        self.date = date
        self.day_of_month = date.day
        self.is_current_month = is_current_month
        self.is_today = is_today
        self.events = events if events else []

    def to_dict(self, max_events=None):
        events = self.events if max_events is None else self.events[:max_events]
        return {
            'date': self.date.isoformat(),
            'day': self.day_of_month,
            'is_current_month': self.is_current_month,
            'is_today': self.is_today,
            'events': [e.to_dict() for e in events],
            'more_count': len(self.events) - len(events),
        }

    def __repr__(self):
        return (f"CalendarDay(date={self.date}, is_current_month={self.is_current_month}, "
                f"is_today={self.is_today}, events={len(self.events)})")
