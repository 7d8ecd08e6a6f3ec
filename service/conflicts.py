"""
Conflict detection for a single candidate session.

The detector is a pure function of the candidate and a request-scoped
SchedulingContext. Every check runs on every call so the returned list names
every reason a candidate is unusable.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from models.schemas import (
    Conflict,
    ExistingSessionConflict,
    GradeConstraintConflict,
    GradeLevelConstraint,
    Group,
    Interventionist,
    InterventionistUnavailableConflict,
    NonStudentDayConflict,
    Session,
)
from service.calendar import EventsByDate, events_for_date
from service.constraints import is_interventionist_available, overlapping_grade_constraints
from service.time_utils import add_minutes, format_time_display, times_overlap, weekday_for_date

logger = logging.getLogger(__name__)

# Excludes a weekly slot from selection regardless of rank
BLOCKING_CONFLICTS = frozenset({"non_student_day"})

# Refused when previewed candidates are turned into sessions
COMMIT_BLOCKING_CONFLICTS = frozenset({"existing_session", "interventionist_unavailable"})


@dataclass(frozen=True)
class SchedulingContext:
    """Snapshot of everything the detector reads for one group."""
    group: Group
    interventionist: Optional[Interventionist] = None
    grade_constraints: List[GradeLevelConstraint] = field(default_factory=list)
    sessions: List[Session] = field(default_factory=list)
    events_by_date: EventsByDate = field(default_factory=dict)
    default_duration: int = 30

    def session_duration(self, session: Session) -> int:
        return session.duration or self.group.session_duration or self.default_duration


def _existing_session_conflicts(
    candidate_date: date,
    start_time: str,
    end_time: str,
    context: SchedulingContext,
    recurring: bool,
) -> List[Conflict]:
    day = weekday_for_date(candidate_date)
    conflicts: List[Conflict] = []

    for session in context.sessions:
        if session.group_id != context.group.id or session.status == "cancelled" or not session.time:
            continue

        if recurring:
            # A weekly slot repeats, so any upcoming session on the same weekday counts
            if session.date < candidate_date or weekday_for_date(session.date) != day:
                continue
        elif session.date != candidate_date:
            continue

        session_end = add_minutes(session.time, context.session_duration(session))
        if times_overlap(start_time, end_time, session.time, session_end):
            conflicts.append(ExistingSessionConflict(
                description=(
                    f"Overlaps session on {session.date.isoformat()} at "
                    f"{format_time_display(session.time)}"
                ),
                session_id=session.id,
            ))

    return conflicts


def _interventionist_conflicts(day: str, start_time: str, end_time: str, context: SchedulingContext) -> List[Conflict]:
    interventionist = context.interventionist
    if context.group.interventionist_id is None or interventionist is None:
        return []

    if is_interventionist_available(interventionist, day, start_time, end_time):
        return []

    return [InterventionistUnavailableConflict(
        description=f"{interventionist.name} is not available",
        interventionist_id=interventionist.id,
    )]


def _grade_constraint_conflicts(day: str, start_time: str, end_time: str, context: SchedulingContext) -> List[Conflict]:
    matches = overlapping_grade_constraints(
        context.grade_constraints, day, start_time, end_time, grade=context.group.grade
    )
    return [
        GradeConstraintConflict(
            description=(
                f"{constraint.label} for grade {constraint.grade} "
                f"({constraint.schedule.start_time}-{constraint.schedule.end_time})"
            ),
            constraint_id=constraint.id,
            label=constraint.label,
        )
        for constraint in matches
    ]


def _non_student_day_conflicts(candidate_date: date, context: SchedulingContext) -> List[Conflict]:
    events = events_for_date(candidate_date, context.events_by_date, context.group.grade)
    if not events:
        return []

    return [NonStudentDayConflict(
        description=", ".join(event.title for event in events),
        event_ids=[event.id for event in events],
    )]


def detect_conflicts(
    candidate_date: date,
    start_time: str,
    end_time: str,
    context: SchedulingContext,
    recurring: bool = False,
) -> List[Conflict]:
    """
    Detect every conflict for a candidate session.

    Args:
        candidate_date: Date the session would occur on
        start_time: Candidate start, "HH:MM"
        end_time: Candidate end (exclusive), "HH:MM"
        context: Group and already-loaded records to check against
        recurring: If True, the candidate stands for a weekly slot and collides
            with sessions on the same weekday from candidate_date onwards

    Returns:
        Conflicts in check order: existing session, interventionist,
        grade constraint, non-student day. Empty when the slot is clear.
    """
    day = weekday_for_date(candidate_date)

    conflicts: List[Conflict] = []
    conflicts.extend(_existing_session_conflicts(candidate_date, start_time, end_time, context, recurring))
    conflicts.extend(_interventionist_conflicts(day, start_time, end_time, context))
    conflicts.extend(_grade_constraint_conflicts(day, start_time, end_time, context))
    conflicts.extend(_non_student_day_conflicts(candidate_date, context))

    if conflicts:
        logger.debug(
            f"{candidate_date.isoformat()} {start_time}-{end_time} for group {context.group.id}: "
            f"{[conflict.type for conflict in conflicts]}"
        )
    return conflicts


def is_blocking(conflicts: List[Conflict]) -> bool:
    return any(conflict.type in BLOCKING_CONFLICTS for conflict in conflicts)


def blocks_commit(conflicts: List[Conflict]) -> bool:
    return any(conflict.type in COMMIT_BLOCKING_CONFLICTS for conflict in conflicts)
