"""
Collaborator interfaces consumed by the scheduler, plus an in-memory
implementation backed by a request snapshot.

The scheduler never performs I/O itself: everything it reads comes through
these protocols, already loaded by the host application.
"""
import logging
from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from models.schemas import (
    GradeLevelConstraint,
    Group,
    InterventionCycle,
    Interventionist,
    SchedulingSnapshot,
    SchoolCalendarEvent,
    Session,
    SessionDraft,
)

logger = logging.getLogger(__name__)


class GroupRepository(Protocol):
    def get_group(self, group_id: str) -> Optional[Group]: ...

    def list_groups_for_interventionist(self, interventionist_id: str) -> List[Group]: ...


class SessionRepository(Protocol):
    def list_sessions_for_group(self, group_id: str) -> List[Session]: ...

    def create_session(self, draft: SessionDraft) -> Session: ...


class InterventionistRepository(Protocol):
    def get_interventionist(self, interventionist_id: str) -> Optional[Interventionist]: ...

    def get_interventionist_for_group(self, group_id: str) -> Optional[Interventionist]: ...


class ConstraintRepository(Protocol):
    def list_grade_level_constraints(self, grade: int) -> List[GradeLevelConstraint]: ...


class CalendarRepository(Protocol):
    def list_calendar_events(self) -> List[SchoolCalendarEvent]: ...


class CycleRepository(Protocol):
    def get_cycle(self, cycle_id: str) -> Optional[InterventionCycle]: ...

    def list_cycles(self) -> List[InterventionCycle]: ...


class SchedulingRepository(
    GroupRepository,
    SessionRepository,
    InterventionistRepository,
    ConstraintRepository,
    CalendarRepository,
    CycleRepository,
    Protocol,
):
    """Everything the scheduler and the booking layer read or write."""


class InMemoryRepository:
    """Snapshot-backed repository; one instance per request."""

    def __init__(self, snapshot: SchedulingSnapshot):
        self.groups: Dict[str, Group] = {group.id: group for group in snapshot.groups}
        self.interventionists: Dict[str, Interventionist] = {
            interventionist.id: interventionist for interventionist in snapshot.interventionists
        }
        self.constraints: List[GradeLevelConstraint] = list(snapshot.grade_level_constraints)
        self.sessions: List[Session] = list(snapshot.sessions)
        self.calendar_events: List[SchoolCalendarEvent] = list(snapshot.calendar_events)
        self.cycles: Dict[str, InterventionCycle] = {cycle.id: cycle for cycle in snapshot.cycles}

    def get_group(self, group_id: str) -> Optional[Group]:
        return self.groups.get(group_id)

    def list_groups_for_interventionist(self, interventionist_id: str) -> List[Group]:
        return [group for group in self.groups.values() if group.interventionist_id == interventionist_id]

    def list_sessions_for_group(self, group_id: str) -> List[Session]:
        return [session for session in self.sessions if session.group_id == group_id]

    def create_session(self, draft: SessionDraft) -> Session:
        session = Session(id=str(uuid4()), **draft.model_dump())
        self.sessions.append(session)
        logger.debug(f"Created session {session.id} for group {session.group_id} on {session.date} {session.time}")
        return session

    def get_interventionist(self, interventionist_id: str) -> Optional[Interventionist]:
        return self.interventionists.get(interventionist_id)

    def get_interventionist_for_group(self, group_id: str) -> Optional[Interventionist]:
        group = self.groups.get(group_id)
        if group is None or group.interventionist_id is None:
            return None
        interventionist = self.interventionists.get(group.interventionist_id)
        if interventionist is None:
            logger.warning(
                f"Group {group_id} references unknown interventionist {group.interventionist_id}"
            )
        return interventionist

    def list_grade_level_constraints(self, grade: int) -> List[GradeLevelConstraint]:
        return [constraint for constraint in self.constraints if constraint.grade == grade]

    def list_calendar_events(self) -> List[SchoolCalendarEvent]:
        return list(self.calendar_events)

    def get_cycle(self, cycle_id: str) -> Optional[InterventionCycle]:
        return self.cycles.get(cycle_id)

    def list_cycles(self) -> List[InterventionCycle]:
        return list(self.cycles.values())
