"""
Time helpers shared by the scheduler.

All times are local wall-clock "HH:MM" strings (zero-padded, 24-hour) and
all dates are plain calendar dates; there is no time-zone handling.
"""
from datetime import date, timedelta
from typing import Iterator, List

from models.schemas import WEEKDAYS, TimeBlock


def time_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(value: str, minutes: int) -> str:
    return minutes_to_time(time_to_minutes(value) + minutes)


def duration_minutes(start: str, end: str) -> int:
    return time_to_minutes(end) - time_to_minutes(start)


def format_time_display(value: str) -> str:
    """Format "HH:MM" for display, e.g. "13:05" -> "1:05 PM"."""
    total = time_to_minutes(value)
    hours, mins = divmod(total, 60)
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{mins:02d} {period}"


def times_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open ranges [start1, end1) and [start2, end2) overlap."""
    return start1 < end2 and start2 < end1


def is_range_contained(start: str, end: str, outer_start: str, outer_end: str) -> bool:
    """[start, end) lies entirely inside [outer_start, outer_end)."""
    return outer_start <= start and end <= outer_end


def generate_time_options(start_hour: int = 7, end_hour: int = 17, step_minutes: int = 15) -> List[str]:
    """
    Build the discrete time grid from start_hour:00 up to end_hour:00.

    The last option never passes end_hour:00; it equals it when the step
    divides the window evenly.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be greater than 0")

    options = []
    current = start_hour * 60
    end = end_hour * 60
    while current <= end:
        options.append(minutes_to_time(current))
        current += step_minutes
    return options


def generate_time_slots(
    duration: int,
    start_hour: int = 7,
    end_hour: int = 17,
    step_minutes: int = 15,
) -> List[TimeBlock]:
    """All slots of the given duration that fit inside the working window."""
    end_of_day = end_hour * 60
    slots = []
    for start in generate_time_options(start_hour, end_hour, step_minutes):
        if time_to_minutes(start) + duration > end_of_day:
            break
        slots.append(TimeBlock(start_time=start, end_time=add_minutes(start, duration)))
    return slots


def weekday_for_date(value: date) -> str:
    return WEEKDAYS[value.weekday()]


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def next_date_for_day(day: str, reference: date, weeks_from_now: int = 0) -> date:
    """
    Next occurrence of a weekday strictly after the reference date,
    optionally pushed out by whole weeks.
    """
    days_until = WEEKDAYS.index(day) - reference.weekday()
    if days_until <= 0:
        days_until += 7
    return reference + timedelta(days=days_until + weeks_from_now * 7)


def count_school_days(start: date, end: date) -> int:
    """Number of monday-friday dates in the inclusive range."""
    return sum(1 for current in iter_dates(start, end) if current.weekday() < 5)


def score_time_of_day(value: str) -> int:
    """
    Preference for a session start time, lower is better.

    Mornings from 08:00 to 11:00 score 0, midday up to 14:00 scores 1, the
    14:00 hour scores 2 and anything earlier or later scores 3.
    """
    hour = time_to_minutes(value) // 60
    if 8 <= hour < 11:
        return 0
    if 11 <= hour < 14:
        return 1
    if hour == 14:
        return 2
    return 3
