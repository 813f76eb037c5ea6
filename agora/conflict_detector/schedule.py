"""
Schedule Parsing
Turns event date and wall-clock strings into comparable values
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from agora.models import ConflictDiagnostic, Event


# 24 hour forms come first so '13:00' never reaches the AM/PM patterns
TIME_FORMATS = (
    '%H:%M',
    '%H:%M:%S',
    '%I:%M %p',
    '%I:%M:%S %p',
    '%I:%M%p',
    '%I %p',
)


@dataclass(frozen=True)
class ScheduledEvent:
    """Event with its date and times parsed into a single reference day"""
    event: Event
    day: date
    start: float  # minutes since midnight
    end: float


def parse_event_date(value) -> Optional[date]:
    """Return the calendar date of an ISO 8601 string, or None if it does not parse"""
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def parse_clock_minutes(value) -> Optional[float]:
    """Return minutes since midnight for a wall-clock string, or None if it does not parse"""
    if not isinstance(value, str):
        return None
    text = ' '.join(value.strip().upper().split())
    for time_format in TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, time_format)
        except ValueError:
            continue
        return parsed.hour * 60 + parsed.minute + parsed.second / 60
    return None


def schedule_event(event: Event) -> Tuple[Optional[ScheduledEvent], Optional[ConflictDiagnostic]]:
    """
    Parse an event onto its day.

    Returns the scheduled event, or a diagnostic explaining why it cannot take
    part in conflict evaluation. Events ending at or before their start are
    rejected; that includes events running past midnight.
    """
    day = parse_event_date(event.date)
    if day is None:
        return None, ConflictDiagnostic(
            event_id=event.id,
            kind='unparseable_date',
            message=f"Event '{event.title}' has an unparseable date '{event.date}'"
        )

    start = parse_clock_minutes(event.start_time)
    end = parse_clock_minutes(event.end_time)
    if start is None or end is None:
        bad_value = event.start_time if start is None else event.end_time
        return None, ConflictDiagnostic(
            event_id=event.id,
            kind='unparseable_time',
            message=f"Event '{event.title}' has an unparseable time '{bad_value}'"
        )

    if start >= end:
        return None, ConflictDiagnostic(
            event_id=event.id,
            kind='inverted_time_range',
            message=f"Event '{event.title}' ends ({event.end_time}) at or before it starts ({event.start_time})"
        )

    return ScheduledEvent(event=event, day=day, start=start, end=end), None
