"""
Intervention session scheduler.

Implements the scheduling modes on top of the conflict detector:

- Weekly suggestions: scan the weekday x time grid for recurring slots and rank
  them by how few conflicts they carry.
- Gap finding: score the same grid by time of day, how busy each start time
  already is for the interventionist, and conflicts.
- Cycle generation: walk every date of an intervention cycle, drop non-student
  days outright and tag the remaining candidates with their conflicts.
"""
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Set, Tuple

from config.settings import settings
from models.schemas import (
    WEEKDAYS,
    SCHOOL_DAYS,
    CycleScheduleResult,
    CycleSchedulingOptions,
    InterventionCycle,
    InterventionistWorkload,
    ScheduledSession,
    SchedulingOptions,
    ScoredTimeSlot,
    SuggestedTimeSlot,
    TimeBlock,
)
from service.calendar import expand_event_dates, is_date_in_events
from service.conflicts import SchedulingContext, detect_conflicts, is_blocking
from service.errors import NotFoundError
from service.repositories import SchedulingRepository
from service.time_utils import (
    add_minutes,
    count_school_days,
    generate_time_slots,
    iter_dates,
    next_date_for_day,
    score_time_of_day,
    times_overlap,
    weekday_for_date,
)

logger = logging.getLogger(__name__)


def rank_suggestions(slots: Sequence[SuggestedTimeSlot]) -> List[SuggestedTimeSlot]:
    """
    Order slots by conflict count.

    The sort is stable, so slots with equal counts keep grid order
    (earliest weekday, then earliest time).
    """
    return sorted(slots, key=lambda slot: len(slot.conflicts))


def select_default_slots(ranked: Sequence[SuggestedTimeSlot], count: int) -> List[SuggestedTimeSlot]:
    """
    Pre-select the top conflict-free slots.

    The first pass takes at most one slot per weekday so a group's sessions
    spread across the week; the second pass fills any remainder in rank order.
    """
    clear = [slot for slot in ranked if not slot.conflicts]
    selected: List[SuggestedTimeSlot] = []
    used_days: Set[str] = set()

    for slot in clear:
        if len(selected) >= count:
            break
        if slot.day not in used_days:
            selected.append(slot)
            used_days.add(slot.day)

    for slot in clear:
        if len(selected) >= count:
            break
        if slot not in selected:
            selected.append(slot)

    return selected


class InterventionScheduler:
    """
    Conflict-aware scheduler for intervention groups.

    Holds only its repository and grid settings; every call loads a fresh
    SchedulingContext, so results always reflect the repository's current data.
    """

    def __init__(
        self,
        repository: SchedulingRepository,
        start_hour: int = settings.day_start_hour,
        end_hour: int = settings.day_end_hour,
        time_step_minutes: int = settings.time_step_minutes,
        default_duration: int = settings.default_session_duration,
    ):
        """
        Initialize the scheduler.

        Args:
            repository: Source of groups, sessions, constraints, calendar and cycles
            start_hour: Default start of the working-hours window
            end_hour: Default end of the working-hours window
            time_step_minutes: Granularity of the candidate time grid
            default_duration: Session length assumed when nothing else says
        """
        self.repository = repository
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.time_step_minutes = time_step_minutes
        self.default_duration = default_duration

    # ===========================
    # Context
    # ===========================

    def load_context(self, group_id: str) -> SchedulingContext:
        """Load everything the conflict detector needs for one group."""
        group = self.repository.get_group(group_id)
        if group is None:
            raise NotFoundError("Group", group_id)

        return SchedulingContext(
            group=group,
            interventionist=self.repository.get_interventionist_for_group(group_id),
            grade_constraints=self.repository.list_grade_level_constraints(group.grade),
            sessions=self.repository.list_sessions_for_group(group_id),
            events_by_date=expand_event_dates(self.repository.list_calendar_events()),
            default_duration=self.default_duration,
        )

    def _time_slots(self, duration: int, start_hour: Optional[int], end_hour: Optional[int]) -> List[TimeBlock]:
        return generate_time_slots(
            duration,
            self.start_hour if start_hour is None else start_hour,
            self.end_hour if end_hour is None else end_hour,
            self.time_step_minutes,
        )

    # ===========================
    # Weekly Suggestions
    # ===========================

    def calculate_suggestions(self, group_id: str, options: SchedulingOptions) -> List[SuggestedTimeSlot]:
        """
        Rank recurring weekly slots for a group.

        Each weekday is checked against its next date after the reference date,
        which is also the first date a committed weekly slot would land on.
        Non-student days stay in the list, ranked by conflict count and marked
        blocking.

        Args:
            group_id: Group to schedule
            options: Sessions per week, duration, days and working hours

        Returns:
            Every grid slot, conflict-free first, then by ascending conflict
            count, ties in grid order
        """
        context = self.load_context(group_id)

        if options.sessions_per_week == 0:
            return []

        requested = set(SCHOOL_DAYS if options.preferred_days is None else options.preferred_days)
        days = [day for day in WEEKDAYS if day in requested]
        reference = options.reference_date or date.today()
        time_slots = self._time_slots(options.session_duration, options.start_hour, options.end_hour)

        suggestions = []
        for day in days:
            candidate_date = next_date_for_day(day, reference)
            for slot in time_slots:
                conflicts = detect_conflicts(
                    candidate_date, slot.start_time, slot.end_time, context, recurring=True
                )
                suggestions.append(SuggestedTimeSlot(
                    day=day,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    date=candidate_date,
                    conflicts=conflicts,
                    blocking=is_blocking(conflicts),
                ))

        ranked = rank_suggestions(suggestions)
        logger.info(
            f"Group {group_id}: {len(ranked)} weekly slots scanned, "
            f"{sum(1 for slot in ranked if not slot.conflicts)} conflict-free"
        )
        return ranked

    def suggest_optimal_times(
        self,
        group_id: str,
        options: SchedulingOptions,
        limit: int = 30,
    ) -> List[ScoredTimeSlot]:
        """
        Find gaps for a group by steering away from busy start times.

        Each grid slot scores its time-of-day preference, plus 2 for every
        planned session already starting at that time across the
        interventionist's groups, plus 10 per conflict. Lower is better and
        ties keep grid order.

        Args:
            group_id: Group to schedule
            options: Duration, days, working hours and reference date
            limit: Number of best slots to return
        """
        context = self.load_context(group_id)

        requested = set(SCHOOL_DAYS if options.preferred_days is None else options.preferred_days)
        days = [day for day in WEEKDAYS if day in requested]
        reference = options.reference_date or date.today()
        time_slots = self._time_slots(options.session_duration, options.start_hour, options.end_hour)
        popularity = self._start_time_popularity(context)

        scored = []
        for day in days:
            candidate_date = next_date_for_day(day, reference)
            for slot in time_slots:
                conflicts = detect_conflicts(
                    candidate_date, slot.start_time, slot.end_time, context, recurring=True
                )
                scored.append(ScoredTimeSlot(
                    day=day,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    date=candidate_date,
                    conflicts=conflicts,
                    blocking=is_blocking(conflicts),
                    score=(
                        score_time_of_day(slot.start_time)
                        + 2 * popularity.get(slot.start_time, 0)
                        + 10 * len(conflicts)
                    ),
                ))

        scored.sort(key=lambda slot: slot.score)
        logger.info(f"Group {group_id}: {len(scored)} slots scored for gap finding, returning {min(limit, len(scored))}")
        return scored[:limit]

    def _start_time_popularity(self, context: SchedulingContext) -> Dict[str, int]:
        """Planned sessions per start time for the group's interventionist (or the group alone)."""
        if context.interventionist is not None:
            groups = self.repository.list_groups_for_interventionist(context.interventionist.id)
        else:
            groups = [context.group]

        popularity: Dict[str, int] = {}
        for group in groups:
            for session in self.repository.list_sessions_for_group(group.id):
                if session.status == "cancelled" or not session.time:
                    continue
                popularity[session.time] = popularity.get(session.time, 0) + 1
        return popularity

    # ===========================
    # Cycle Generation
    # ===========================

    def resolve_cycle(self, cycle_id: Optional[str], reference_date: Optional[date] = None) -> InterventionCycle:
        """
        Look up a cycle by id, or find the current one.

        The current cycle is an active cycle containing the reference date,
        falling back to any cycle containing it.
        """
        if cycle_id is not None:
            cycle = self.repository.get_cycle(cycle_id)
            if cycle is None:
                raise NotFoundError("Cycle", cycle_id)
            return cycle

        today = reference_date or date.today()
        containing = [
            cycle for cycle in self.repository.list_cycles()
            if cycle.start_date <= today <= cycle.end_date
        ]
        for cycle in containing:
            if cycle.status == "active":
                return cycle
        if containing:
            return containing[0]
        raise NotFoundError("Cycle", f"current ({today.isoformat()})")

    def _cycle_range(self, cycle: InterventionCycle, options: CycleSchedulingOptions) -> Tuple[date, date]:
        start = cycle.start_date
        end = cycle.end_date
        if options.custom_start_date is not None:
            start = max(start, options.custom_start_date)
        if options.custom_end_date is not None:
            end = min(end, options.custom_end_date)
        return start, end

    def _best_slot(
        self,
        on: date,
        time_slots: List[TimeBlock],
        context: SchedulingContext,
    ) -> Optional[ScheduledSession]:
        """Fewest conflicts wins; ties go to the earliest time."""
        best: Optional[ScheduledSession] = None
        for slot in time_slots:
            conflicts = detect_conflicts(on, slot.start_time, slot.end_time, context)
            if best is None or len(conflicts) < len(best.conflicts):
                best = ScheduledSession(
                    date=on,
                    day=weekday_for_date(on),
                    time=slot.start_time,
                    end_time=slot.end_time,
                    conflicts=conflicts,
                )
                if not conflicts:
                    break
        return best

    def generate_cycle_schedule(self, group_id: str, options: CycleSchedulingOptions) -> CycleScheduleResult:
        """
        Generate candidate sessions for a group across an intervention cycle.

        Steps:
        1. Resolve the cycle's date range (narrowed by custom start/end dates)
        2. Keep dates whose weekday is a preferred day
        3. Skip non-student days for the group's grade entirely
        4. Tag every remaining date with its conflicts; advisory conflicts do
           not remove the date
        5. Count the dates with no conflicts at all

        Raises:
            NotFoundError: If the group or cycle does not exist
        """
        context = self.load_context(group_id)
        cycle = self.resolve_cycle(options.cycle_id, options.reference_date)
        start, end = self._cycle_range(cycle, options)
        preferred_days = set(options.preferred_days)
        grade = context.group.grade

        time_slots: List[TimeBlock] = []
        if options.preferred_time is None:
            time_slots = self._time_slots(options.session_duration, options.start_hour, options.end_hour)

        scheduled: List[ScheduledSession] = []
        skipped: List[date] = []

        for current in iter_dates(start, end):
            day = weekday_for_date(current)
            if day not in preferred_days:
                continue

            if is_date_in_events(current, context.events_by_date, grade):
                skipped.append(current)
                continue

            if options.preferred_time is not None:
                end_time = add_minutes(options.preferred_time, options.session_duration)
                scheduled.append(ScheduledSession(
                    date=current,
                    day=day,
                    time=options.preferred_time,
                    end_time=end_time,
                    conflicts=detect_conflicts(current, options.preferred_time, end_time, context),
                ))
            else:
                best = self._best_slot(current, time_slots, context)
                if best is not None:
                    scheduled.append(best)

        result = CycleScheduleResult(
            group_id=group_id,
            cycle_id=cycle.id,
            dates=scheduled,
            skipped_dates=skipped,
            total_sessions=sum(1 for session in scheduled if not session.conflicts),
        )
        logger.info(
            f"Group {group_id} cycle {cycle.id} ({start} to {end}): {len(scheduled)} dates, "
            f"{len(skipped)} skipped, {result.total_sessions} conflict-free"
        )
        return result

    def auto_schedule_groups_for_cycle(
        self,
        group_ids: Sequence[str],
        cycle_id: str,
        options: CycleSchedulingOptions,
        balance_workload: bool = False,
    ) -> Dict[str, CycleScheduleResult]:
        """
        Generate cycle schedules for several groups.

        With balance_workload, groups sharing an interventionist are kept from
        landing on overlapping times on the same date: a clashing session moves
        to the free grid slot with the fewest conflicts, earliest first.
        """
        group_options = options.model_copy(update={"cycle_id": cycle_id})
        # (interventionist id, date) -> taken (start, end) ranges
        taken: Dict[Tuple[str, date], List[Tuple[str, str]]] = {}
        results: Dict[str, CycleScheduleResult] = {}

        for group_id in group_ids:
            result = self.generate_cycle_schedule(group_id, group_options)
            context = self.load_context(group_id)

            if balance_workload and context.interventionist is not None:
                interventionist_id = context.interventionist.id
                time_slots = self._time_slots(options.session_duration, options.start_hour, options.end_hour)
                balanced = []

                for session in result.dates:
                    used = taken.setdefault((interventionist_id, session.date), [])
                    if any(times_overlap(session.time, session.end_time, start, end) for start, end in used):
                        session = self._move_to_free_slot(session, time_slots, used, context)
                    used.append((session.time, session.end_time))
                    balanced.append(session)

                result = result.model_copy(update={
                    "dates": balanced,
                    "total_sessions": sum(1 for session in balanced if not session.conflicts),
                })

            results[group_id] = result

        return results

    def _move_to_free_slot(
        self,
        session: ScheduledSession,
        time_slots: List[TimeBlock],
        used: List[Tuple[str, str]],
        context: SchedulingContext,
    ) -> ScheduledSession:
        free_slots = [
            slot for slot in time_slots
            if not any(times_overlap(slot.start_time, slot.end_time, start, end) for start, end in used)
        ]
        moved = self._best_slot(session.date, free_slots, context)
        if moved is None:
            logger.warning(f"No free slot left for group {context.group.id} on {session.date}")
            return session

        logger.debug(f"Moving group {context.group.id} on {session.date} from {session.time} to {moved.time}")
        return moved

    # ===========================
    # Workload
    # ===========================

    def get_interventionist_workload(
        self,
        interventionist_id: str,
        start_date: date,
        end_date: date,
    ) -> InterventionistWorkload:
        """Count an interventionist's planned sessions by weekday and hour."""
        if self.repository.get_interventionist(interventionist_id) is None:
            raise NotFoundError("Interventionist", interventionist_id)

        sessions = [
            session
            for group in self.repository.list_groups_for_interventionist(interventionist_id)
            for session in self.repository.list_sessions_for_group(group.id)
            if session.status != "cancelled" and session.time and start_date <= session.date <= end_date
        ]

        sessions_by_day = {day: 0 for day in SCHOOL_DAYS}
        sessions_by_hour: Dict[int, int] = {}
        for session in sessions:
            day = weekday_for_date(session.date)
            sessions_by_day[day] = sessions_by_day.get(day, 0) + 1
            hour = int(session.time.split(":")[0])
            sessions_by_hour[hour] = sessions_by_hour.get(hour, 0) + 1

        school_days = count_school_days(start_date, end_date)
        return InterventionistWorkload(
            interventionist_id=interventionist_id,
            total_sessions=len(sessions),
            sessions_by_day=sessions_by_day,
            sessions_by_hour=sessions_by_hour,
            average_per_day=len(sessions) / school_days if school_days > 0 else 0.0,
        )
