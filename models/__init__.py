"""
Data models and Pydantic schemas for the intervention scheduling API.
"""
from .schemas import (
    WEEKDAYS,
    SCHOOL_DAYS,
    TimeBlock,
    WeeklyTimeBlock,
    Interventionist,
    GradeLevelConstraint,
    SchoolCalendarEvent,
    InterventionCycle,
    Group,
    Session,
    SessionDraft,
    Conflict,
    ExistingSessionConflict,
    InterventionistUnavailableConflict,
    GradeConstraintConflict,
    NonStudentDayConflict,
    SuggestedTimeSlot,
    ScoredTimeSlot,
    ScheduledSession,
    CycleScheduleResult,
    InterventionistWorkload,
    UnavailableSlot,
    CommitResult,
    SchedulingOptions,
    CycleSchedulingOptions,
    SchedulingSnapshot,
)

__all__ = [
    "WEEKDAYS",
    "SCHOOL_DAYS",
    "TimeBlock",
    "WeeklyTimeBlock",
    "Interventionist",
    "GradeLevelConstraint",
    "SchoolCalendarEvent",
    "InterventionCycle",
    "Group",
    "Session",
    "SessionDraft",
    "Conflict",
    "ExistingSessionConflict",
    "InterventionistUnavailableConflict",
    "GradeConstraintConflict",
    "NonStudentDayConflict",
    "SuggestedTimeSlot",
    "ScoredTimeSlot",
    "ScheduledSession",
    "CycleScheduleResult",
    "InterventionistWorkload",
    "UnavailableSlot",
    "CommitResult",
    "SchedulingOptions",
    "CycleSchedulingOptions",
    "SchedulingSnapshot",
]
