"""
Weekly availability and grade-level constraint lookups.

Both interventionist availability and grade-level constraints are expressed as
(days-of-week x time range) blocks. Availability is the union of its blocks and
a candidate must sit entirely inside one of them; adjacent blocks are not
merged. Grade constraints are independent windows that block any overlapping
candidate.
"""
from typing import Iterable, List, Optional

from models.schemas import GradeLevelConstraint, Interventionist, WeeklyTimeBlock
from service.time_utils import is_range_contained, times_overlap


def blocks_for_day(blocks: Iterable[WeeklyTimeBlock], day: str) -> List[WeeklyTimeBlock]:
    return [block for block in blocks if day in block.days]


def is_interventionist_available(
    interventionist: Interventionist,
    day: str,
    start_time: str,
    end_time: str,
) -> bool:
    """
    Check that [start_time, end_time) on the weekday falls inside one
    availability block.

    An interventionist with no availability blocks at all is treated as
    unrestricted.
    """
    if not interventionist.availability:
        return True

    return any(
        is_range_contained(start_time, end_time, block.start_time, block.end_time)
        for block in blocks_for_day(interventionist.availability, day)
    )


def constraints_for_grade(
    constraints: Iterable[GradeLevelConstraint],
    grade: int,
) -> List[GradeLevelConstraint]:
    return [constraint for constraint in constraints if constraint.grade == grade]


def overlapping_grade_constraints(
    constraints: Iterable[GradeLevelConstraint],
    day: str,
    start_time: str,
    end_time: str,
    grade: Optional[int] = None,
) -> List[GradeLevelConstraint]:
    """Grade constraints whose weekly block overlaps the candidate range on the weekday."""
    matches = []
    for constraint in constraints:
        if grade is not None and constraint.grade != grade:
            continue
        schedule = constraint.schedule
        if day not in schedule.days:
            continue
        if times_overlap(start_time, end_time, schedule.start_time, schedule.end_time):
            matches.append(constraint)
    return matches
