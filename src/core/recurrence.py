"""
Expansion of recurring events into concrete event instances.
"""
import calendar
import datetime
import logging

from core.models import Event, RECURRENCE_TYPES

logger = logging.getLogger(__name__)

MAX_OCCURRENCES = 500

# Fields copied verbatim from the parent to every generated instance
_INHERITED_FIELDS = ('team_id', 'event_type', 'title', 'description',
                     'start_time', 'end_time', 'location', 'opponent')


def _sunday_weekday(d):
    return (d.weekday() + 1) % 7


def add_months(d, months):
    """Add calendar months to a date, clamping the day to the target month's length."""
    total = d.year * 12 + (d.month - 1) + months
    year, month = total // 12, total % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(d.day, last_day))


def _weekly_dates(start, until, block_days, days_of_week):
    dates = []
    block_start = start
    while block_start <= until and len(dates) <= MAX_OCCURRENCES:
        for dow in days_of_week:
            try:
                candidate = block_start + datetime.timedelta(days=(dow - _sunday_weekday(block_start)) % 7)
            except OverflowError:
                continue  # past date.max
            if start < candidate <= until:
                dates.append(candidate)
        try:
            block_start += datetime.timedelta(days=block_days)
        except OverflowError:
            break
    return dates


def occurrence_dates(start, until, recurrence_type, interval=1, days_of_week=None):
    """Return the sorted dates after `start` and up to `until` produced by a rule.

    Args:
        start: Date of the parent event (never included in the result).
        until: Last date an occurrence may fall on.
        recurrence_type: One of 'daily', 'weekly', 'biweekly', 'monthly'.
        interval: Step between occurrences (days, weeks or months).
        days_of_week: Weekdays for weekly/biweekly rules, 0 = Sunday.
            Defaults to the weekday of `start`.
    """
    if recurrence_type not in RECURRENCE_TYPES:
        raise ValueError(f'Unknown recurrence type: {recurrence_type}')
    interval = int(interval or 1)
    if interval < 1:
        raise ValueError(f'Recurrence interval must be positive, got {interval}')

    if recurrence_type in ('weekly', 'biweekly'):
        days = sorted(set(days_of_week)) if days_of_week else [_sunday_weekday(start)]
        block_days = 14 if recurrence_type == 'biweekly' else 7 * interval
        dates = _weekly_dates(start, until, block_days, days)
    else:
        dates = []
        step = 1
        while True:
            try:
                if recurrence_type == 'daily':
                    candidate = start + datetime.timedelta(days=step * interval)
                else:
                    candidate = add_months(start, step * interval)
            except (OverflowError, ValueError):
                break  # past date.max
            if candidate > until:
                break
            dates.append(candidate)
            step += 1
            if len(dates) > MAX_OCCURRENCES:
                break

    dates = sorted(set(dates))
    if len(dates) > MAX_OCCURRENCES:
        logger.warning(f'Recurrence from {start} produced {len(dates)} dates; '
                       f'keeping the first {MAX_OCCURRENCES}')
        dates = dates[:MAX_OCCURRENCES]
    return dates


def expand_recurrence(parent, until=None):
    """Create the concrete child events of a recurring parent event.

    Children keep the parent's multi-day span and point back to it through
    parent_event_id. The parent itself is not returned.
    """
    if not parent.recurrence_type:
        return []
    until = until or parent.recurrence_end_date
    if until is None:
        raise ValueError('A recurring event needs a recurrence_end_date')

    dates = occurrence_dates(parent.event_date, until, parent.recurrence_type,
                             parent.recurrence_interval, parent.recurrence_days_of_week)
    span = parent.end_date - parent.event_date if parent.end_date else None

    children = []
    for occurrence in dates:
        fields = {name: getattr(parent, name) for name in _INHERITED_FIELDS}
        end_date = None
        if span is not None:
            # Clamp to date.max for instances at the very end of the calendar
            end_date = occurrence + span if datetime.date.max - occurrence >= span else datetime.date.max
        children.append(Event(
            event_date=occurrence,
            end_date=end_date,
            parent_event_id=parent.id,
            **fields
        ))
    logger.debug(f'Expanded {parent.recurrence_type} event {parent.id} into {len(children)} instances')
    return children
