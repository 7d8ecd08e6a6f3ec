from fastapi import APIRouter
from models.schemas import (
    BatchCycleScheduleRequest,
    BatchCycleScheduleResponse,
    CommitResult,
    ConflictCheckRequest,
    ConflictCheckResponse,
    CycleCommitRequest,
    CycleScheduleRequest,
    CycleScheduleResult,
    InterventionistWorkload,
    OptimalTimesRequest,
    OptimalTimesResponse,
    SuggestionRequest,
    SuggestionResponse,
    WeeklyCommitRequest,
    WorkloadRequest,
)
from service.booking import SessionBooker
from service.conflicts import detect_conflicts, is_blocking
from service.repositories import InMemoryRepository
from service.scheduler import InterventionScheduler, select_default_slots

# Create a router instance
router = APIRouter()


@router.post("/schedule/suggestions", response_model=SuggestionResponse)
async def calculate_suggestions(request: SuggestionRequest):
    """
    Rank recurring weekly slots for a group.

    Slots without conflicts come first; the default selection is the top
    conflict-free slot per weekday up to the requested sessions per week.
    """
    scheduler = InterventionScheduler(InMemoryRepository(request))
    suggestions = scheduler.calculate_suggestions(request.group_id, request.options)
    return SuggestionResponse(
        group_id=request.group_id,
        suggestions=suggestions,
        selected=select_default_slots(suggestions, request.options.sessions_per_week),
    )


@router.post("/schedule/optimal-times", response_model=OptimalTimesResponse)
async def suggest_optimal_times(request: OptimalTimesRequest):
    """
    Score grid slots for a new group, steering away from start times the
    interventionist already uses.
    """
    scheduler = InterventionScheduler(InMemoryRepository(request))
    suggestions = scheduler.suggest_optimal_times(request.group_id, request.options, request.limit)
    return OptimalTimesResponse(group_id=request.group_id, suggestions=suggestions)


@router.post("/schedule/cycle", response_model=CycleScheduleResult)
async def generate_cycle_schedule(request: CycleScheduleRequest):
    """
    Preview a group's sessions across an intervention cycle.

    Non-student days are skipped outright; other conflicts are reported on
    each date for the caller to accept or reject.
    """
    scheduler = InterventionScheduler(InMemoryRepository(request))
    return scheduler.generate_cycle_schedule(request.group_id, request.options)


@router.post("/schedule/cycle/batch", response_model=BatchCycleScheduleResponse)
async def generate_cycle_schedules(request: BatchCycleScheduleRequest):
    """Preview cycle schedules for several groups, optionally balancing interventionist load."""
    scheduler = InterventionScheduler(InMemoryRepository(request))
    results = scheduler.auto_schedule_groups_for_cycle(
        request.group_ids,
        request.cycle_id,
        request.options,
        balance_workload=request.balance_workload,
    )
    return BatchCycleScheduleResponse(results=results)


@router.post("/schedule/conflicts", response_model=ConflictCheckResponse)
async def check_conflicts(request: ConflictCheckRequest):
    """List every conflict for one candidate date and time range."""
    scheduler = InterventionScheduler(InMemoryRepository(request))
    context = scheduler.load_context(request.group_id)
    conflicts = detect_conflicts(request.date, request.start_time, request.end_time, context)
    return ConflictCheckResponse(conflicts=conflicts, blocking=is_blocking(conflicts))


@router.post("/schedule/cycle/commit", response_model=CommitResult)
async def commit_cycle_schedule(request: CycleCommitRequest):
    """Create sessions for a previewed cycle schedule."""
    booker = SessionBooker(InMemoryRepository(request))
    return booker.commit_cycle_schedule(request.group_id, request.schedule)


@router.post("/schedule/weekly/commit", response_model=CommitResult)
async def commit_weekly_slots(request: WeeklyCommitRequest):
    """Create sessions for selected weekly slots over a number of weeks."""
    booker = SessionBooker(InMemoryRepository(request))
    return booker.commit_weekly_slots(request.group_id, request.slots, request.weeks, request.reference_date)


@router.post("/schedule/workload", response_model=InterventionistWorkload)
async def interventionist_workload(request: WorkloadRequest):
    """Summarize an interventionist's sessions within a date range."""
    scheduler = InterventionScheduler(InMemoryRepository(request))
    return scheduler.get_interventionist_workload(
        request.interventionist_id, request.start_date, request.end_date
    )
