"""
Commit previewed candidates as sessions.

The scheduler only proposes; this layer writes. Before every create it re-lists
the group's sessions so a slot booked elsewhere since the preview is reported
as unavailable instead of being double-booked.
"""
import logging
from datetime import date
from typing import Optional, Sequence

from config.settings import settings
from models.schemas import (
    CommitResult,
    CycleScheduleResult,
    Group,
    Session,
    SessionDraft,
    SuggestedTimeSlot,
    UnavailableSlot,
)
from service.calendar import events_for_date, expand_event_dates
from service.conflicts import COMMIT_BLOCKING_CONFLICTS, blocks_commit
from service.constraints import is_interventionist_available
from service.errors import NotFoundError, ScheduleMismatchError, SlotUnavailableError
from service.repositories import SchedulingRepository
from service.time_utils import add_minutes, duration_minutes, next_date_for_day, times_overlap

logger = logging.getLogger(__name__)


class SessionBooker:
    """Turns accepted schedule candidates into sessions."""

    def __init__(self, repository: SchedulingRepository, default_duration: int = settings.default_session_duration):
        self.repository = repository
        self.default_duration = default_duration

    def _get_group(self, group_id: str) -> Group:
        group = self.repository.get_group(group_id)
        if group is None:
            raise NotFoundError("Group", group_id)
        return group

    def book(self, group: Group, on: date, time: str, duration: int) -> Session:
        """
        Create one session after re-checking the group's current sessions.

        Raises:
            SlotUnavailableError: If a non-cancelled session now overlaps the slot
        """
        end_time = add_minutes(time, duration)
        for session in self.repository.list_sessions_for_group(group.id):
            if session.date != on or session.status == "cancelled" or not session.time:
                continue
            session_end = add_minutes(session.time, session.duration or group.session_duration or self.default_duration)
            if times_overlap(time, end_time, session.time, session_end):
                raise SlotUnavailableError(on, time, f"overlaps session {session.id} at {session.time}")

        return self.repository.create_session(SessionDraft(
            group_id=group.id,
            date=on,
            time=time,
            status="planned",
            curriculum_position=group.current_position,
            duration=duration,
        ))

    def commit_cycle_schedule(
        self,
        group_id: str,
        schedule: CycleScheduleResult,
    ) -> CommitResult:
        """
        Create sessions for a previewed cycle schedule.

        Dates previewed with an existing-session or interventionist conflict are
        not booked; grade-constraint conflicts stay the caller's call and are
        booked.

        Raises:
            ScheduleMismatchError: If the schedule was generated for another group
        """
        group = self._get_group(group_id)
        if schedule.group_id != group_id:
            raise ScheduleMismatchError(group_id, schedule.group_id)
        result = CommitResult()

        for candidate in schedule.dates:
            if blocks_commit(candidate.conflicts):
                reasons = [c.type for c in candidate.conflicts if c.type in COMMIT_BLOCKING_CONFLICTS]
                result.unavailable.append(UnavailableSlot(
                    date=candidate.date, time=candidate.time, reason=", ".join(reasons)
                ))
                continue

            length = duration_minutes(candidate.time, candidate.end_time)
            try:
                result.created.append(self.book(group, candidate.date, candidate.time, length))
            except SlotUnavailableError as e:
                logger.info(str(e))
                result.unavailable.append(UnavailableSlot(date=e.date, time=e.time, reason=e.reason))

        logger.info(
            f"Group {group_id}: committed {len(result.created)} cycle sessions, "
            f"{len(result.unavailable)} unavailable"
        )
        return result

    def commit_weekly_slots(
        self,
        group_id: str,
        slots: Sequence[SuggestedTimeSlot],
        weeks: int,
        reference_date: Optional[date] = None,
    ) -> CommitResult:
        """
        Create sessions for recurring weekly slots over a number of weeks.

        Every (week, slot) pair is projected onto its own date and booked
        independently. Occurrences that fall on a non-student day are skipped, and
        slots outside the interventionist's availability are never booked, the
        same as a cycle commit.
        """
        group = self._get_group(group_id)
        interventionist = self.repository.get_interventionist_for_group(group_id)
        reference = reference_date or date.today()
        events_by_date = expand_event_dates(self.repository.list_calendar_events())
        result = CommitResult()

        for week in range(weeks):
            for slot in slots:
                on = next_date_for_day(slot.day, reference, week)

                if interventionist is not None and not is_interventionist_available(
                    interventionist, slot.day, slot.start_time, slot.end_time
                ):
                    result.unavailable.append(UnavailableSlot(
                        date=on, time=slot.start_time, reason="interventionist_unavailable"
                    ))
                    continue

                events = events_for_date(on, events_by_date, group.grade)
                if events:
                    result.unavailable.append(UnavailableSlot(
                        date=on,
                        time=slot.start_time,
                        reason="non_student_day: " + ", ".join(event.title for event in events),
                    ))
                    continue

                duration = duration_minutes(slot.start_time, slot.end_time)
                try:
                    result.created.append(self.book(group, on, slot.start_time, duration))
                except SlotUnavailableError as e:
                    logger.info(str(e))
                    result.unavailable.append(UnavailableSlot(date=e.date, time=e.time, reason=e.reason))

        logger.info(
            f"Group {group_id}: committed {len(result.created)} weekly sessions over {weeks} weeks, "
            f"{len(result.unavailable)} unavailable"
        )
        return result

