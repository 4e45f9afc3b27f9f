# Command-line month view of a team's events

import argparse
import calendar
import os
import sys
from datetime import date

import yaml
from core.calendar_grid import build_month_grid, group_into_weeks, DAY_HEADERS
from core.models import Event, parse_time
from core.schedule import format_event_time, sort_events


def load_events(file_path):
    """Load events from a YAML file holding either a list or {'events': [...]}."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    records = data.get('events', []) if isinstance(data, dict) else data
    events = []
    for record in records:
        try:
            event = Event.from_dict(record)
            parse_time(event.start_time)
            parse_time(event.end_time)
            events.append(event)
        except ValueError as e:
            print(f"Warning: skipping event {record!r}: {e}", file=sys.stderr)
    return events


def render_month(year, month, today, events):
    """Render the grid as text lines. `month` is 1-12."""
    days = build_month_grid(year, month - 1, today, events=events)
    lines = [f"{calendar.month_name[month]} {year}".center(7 * 6).rstrip()]
    lines.append(''.join(h.rjust(6) for h in DAY_HEADERS))
    for week in group_into_weeks(days):
        cells = []
        for day in week:
            label = f"{day.day_of_month}" if day.is_current_month else f"({day.day_of_month})"
            if day.is_today:
                label = f"*{label}"
            if day.events:
                label = f"{label}+{len(day.events)}"
            cells.append(label.rjust(6))
        lines.append(''.join(cells))

    current = [d for d in days if d.is_current_month and d.events]
    if current:
        lines.append('')
    for day in current:
        lines.append(day.date.strftime('%a %d %b'))
        for event in sort_events(day.events):
            when = format_event_time(event.start_time, event.end_time)
            lines.append(f"  {when}: {event.title} [{event.event_type}]")
    return lines


def main():
    parser = argparse.ArgumentParser(description='Print a month calendar for a team events file.')
    parser.add_argument('events_file', help='YAML file with the team events')
    parser.add_argument('--year', type=int, help='Year to show (default: current year)')
    parser.add_argument('--month', type=int, choices=range(1, 13), metavar='1-12',
                        help='Month to show (default: current month)')
    parser.add_argument('--today', type=date.fromisoformat, help='Override today (YYYY-MM-DD)')
    args = parser.parse_args()

    if not os.path.exists(args.events_file):
        print(f"Error: {args.events_file} not found", file=sys.stderr)
        return 1

    today = args.today or date.today()
    year = args.year or today.year
    month = args.month or today.month

    events = load_events(args.events_file)
    for line in render_month(year, month, today, events):
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
