"""
Shared fixtures for scheduler tests.

The base scenario: a grade 3 reading group whose interventionist works
Mon/Wed/Fri 08:00-12:00, a grade 3 lunch Mon-Fri 11:30-12:00, one existing
session on Monday 2024-01-08 at 09:00 and a cycle covering January 2024
(2024-01-01 is a Monday).
"""
from datetime import date

import pytest

from models.schemas import (
    SCHOOL_DAYS,
    GradeLevelConstraint,
    Group,
    InterventionCycle,
    Interventionist,
    SchedulingSnapshot,
    SchoolCalendarEvent,
    Session,
    WeeklyTimeBlock,
)
from service.booking import SessionBooker
from service.repositories import InMemoryRepository
from service.scheduler import InterventionScheduler

# Sunday, so the reference week runs 2024-01-08 .. 2024-01-12
REFERENCE_DATE = date(2024, 1, 7)

JANUARY_MONDAYS = [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22), date(2024, 1, 29)]


def make_holiday(event_id: str, on: date, end: date = None, grades=None, title: str = "Holiday") -> SchoolCalendarEvent:
    return SchoolCalendarEvent(
        id=event_id,
        date=on,
        end_date=end,
        type="holiday",
        title=title,
        affects_grades=grades,
    )


def build_snapshot() -> SchedulingSnapshot:
    return SchedulingSnapshot(
        groups=[
            Group(
                id="g1",
                name="Reading Group A",
                grade=3,
                interventionist_id="i1",
                current_position={"step": 1, "substep": "1.2"},
            ),
        ],
        interventionists=[
            Interventionist(
                id="i1",
                name="Ms. Rivera",
                availability=[
                    WeeklyTimeBlock(days=["monday", "wednesday", "friday"], start_time="08:00", end_time="12:00"),
                ],
            ),
        ],
        grade_level_constraints=[
            GradeLevelConstraint(
                id="c1",
                grade=3,
                label="Lunch",
                type="lunch",
                schedule=WeeklyTimeBlock(days=SCHOOL_DAYS, start_time="11:30", end_time="12:00"),
            ),
        ],
        sessions=[
            Session(id="s1", group_id="g1", date=date(2024, 1, 8), time="09:00"),
        ],
        calendar_events=[],
        cycles=[
            InterventionCycle(
                id="cy1",
                name="Cycle 3",
                start_date=date(2024, 1, 1),
                end_date=date(2024, 1, 31),
                status="active",
            ),
        ],
    )


@pytest.fixture
def snapshot():
    return build_snapshot()


@pytest.fixture
def repository(snapshot):
    return InMemoryRepository(snapshot)


@pytest.fixture
def scheduler(repository):
    return InterventionScheduler(repository, start_hour=7, end_hour=17, time_step_minutes=15, default_duration=30)


@pytest.fixture
def booker(repository):
    return SessionBooker(repository, default_duration=30)
