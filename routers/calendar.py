from fastapi import APIRouter, Query
from config.settings import settings
from models.schemas import CalendarExpandRequest, CalendarExpandResponse, TimeOption, TimeOptionsResponse
from service.calendar import expand_event_dates, non_student_days_in_range
from service.time_utils import format_time_display, generate_time_options

router = APIRouter()


@router.post("/calendar/expand", response_model=CalendarExpandResponse)
async def expand_calendar(request: CalendarExpandRequest):
    """
    Expand calendar events into a per-date lookup.

    When a start and end date are given, also list the non-student days in
    that range for the requested grade. An inverted range fails request
    validation.
    """
    events_by_date = expand_event_dates(request.events)

    non_student_days = []
    if request.start_date is not None and request.end_date is not None:
        non_student_days = non_student_days_in_range(
            request.start_date, request.end_date, events_by_date, request.grade
        )

    return CalendarExpandResponse(events_by_date=events_by_date, non_student_days=non_student_days)


@router.get("/calendar/time-options", response_model=TimeOptionsResponse)
async def time_options(
    start_hour: int = Query(settings.day_start_hour, ge=0, le=23),
    end_hour: int = Query(settings.day_end_hour, ge=0, le=23),
    step: int = Query(settings.time_step_minutes, gt=0, le=120),
):
    """Time grid values with 12-hour display labels."""
    options = [
        TimeOption(value=value, label=format_time_display(value))
        for value in generate_time_options(start_hour, end_hour, step)
    ]
    return TimeOptionsResponse(options=options)
