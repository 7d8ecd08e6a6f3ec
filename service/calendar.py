"""
School calendar expansion.

Calendar events may cover a single date or an inclusive date range. They are
expanded once per scheduling request into a per-date lookup so that any day
can be tested for "non-student day" membership in constant time.
"""
from datetime import date
from typing import Dict, Iterable, List, Optional

from models.schemas import SchoolCalendarEvent
from service.time_utils import iter_dates

EventsByDate = Dict[str, List[SchoolCalendarEvent]]


def expand_event_dates(events: Iterable[SchoolCalendarEvent]) -> EventsByDate:
    """Map each ISO date to the events active on it, in input order."""
    events_by_date: EventsByDate = {}
    for event in events:
        for current in iter_dates(event.date, event.end_date or event.date):
            events_by_date.setdefault(current.isoformat(), []).append(event)
    return events_by_date


def _affects_grade(event: SchoolCalendarEvent, grade: Optional[int]) -> bool:
    if grade is None or event.affects_grades is None:
        return True
    return grade in event.affects_grades


def events_for_date(
    on: date,
    events_by_date: EventsByDate,
    grade: Optional[int] = None,
) -> List[SchoolCalendarEvent]:
    """Events on the date that apply to the grade (or to everyone when grade is None)."""
    return [
        event for event in events_by_date.get(on.isoformat(), [])
        if _affects_grade(event, grade)
    ]


def is_date_in_events(on: date, events_by_date: EventsByDate, grade: Optional[int] = None) -> bool:
    """True when the date is a non-student day for the grade."""
    return bool(events_for_date(on, events_by_date, grade))


def non_student_days_in_range(
    start: date,
    end: date,
    events_by_date: EventsByDate,
    grade: Optional[int] = None,
) -> List[date]:
    return [current for current in iter_dates(start, end) if is_date_in_events(current, events_by_date, grade)]
