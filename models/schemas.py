from pydantic import BaseModel, Field, model_validator
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
import datetime
from datetime import date


TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"  # zero-padded 24h "HH:MM"

WeekDay = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

WEEKDAYS: List[str] = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
SCHOOL_DAYS: List[str] = WEEKDAYS[:5]

ConstraintType = Literal["lunch", "core_instruction", "specials", "therapy", "other"]

NonStudentDayType = Literal[
    "holiday",
    "pd_day",
    "institute_day",
    "early_dismissal",
    "late_start",
    "testing_day",
    "emergency_closure",
    "break",
]

SessionStatus = Literal["planned", "completed", "cancelled"]
CycleStatus = Literal["planning", "active", "completed"]

ConflictType = Literal[
    "existing_session",
    "interventionist_unavailable",
    "grade_constraint",
    "non_student_day",
]


# ===========================
# Time Block Models
# ===========================

class TimeBlock(BaseModel):
    """Same-day time range, start inclusive and end exclusive"""
    start_time: str = Field(pattern=TIME_PATTERN)  # HH:MM format, e.g., "08:00"
    end_time: str = Field(pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def check_start_before_end(self):
        # Zero-padded 24h strings sort the same way the times do
        if self.start_time >= self.end_time:
            raise ValueError(
                f"start time ({self.start_time}) must be before end time ({self.end_time})"
            )
        return self


class WeeklyTimeBlock(TimeBlock):
    """Recurring block applied on each listed weekday"""
    days: List[WeekDay]  # lowercase: "monday", "tuesday", etc.


# ===========================
# Staff & Constraint Models
# ===========================

class Interventionist(BaseModel):
    id: str
    name: str
    color: str = "#6366f1"  # Hex color for calendar display
    email: Optional[str] = None
    availability: List[WeeklyTimeBlock] = []  # union of blocks; empty means unrestricted


class GradeLevelConstraint(BaseModel):
    """Window during which students of a grade cannot be pulled out"""
    id: str
    grade: int
    label: str  # "Lunch", "Core Reading", "Specials", etc.
    type: ConstraintType
    schedule: WeeklyTimeBlock


# ===========================
# Calendar & Cycle Models
# ===========================

class SchoolCalendarEvent(BaseModel):
    id: str
    date: date
    end_date: Optional[date] = None  # inclusive, for ranges such as winter break
    type: NonStudentDayType
    title: str
    affects_grades: Optional[List[int]] = None  # None = all grades
    modified_start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)  # late starts
    modified_end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)    # early dismissals
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_end_not_before_start(self):
        if self.end_date is not None and self.end_date < self.date:
            raise ValueError(f"end date ({self.end_date}) must not be before date ({self.date})")
        return self


class InterventionCycle(BaseModel):
    id: str
    name: str  # "Cycle 3"
    start_date: date
    end_date: date
    status: CycleStatus = "active"
    grade_band: Optional[str] = None  # "K-2", "3-5", ... or None for all
    weeks_count: Optional[int] = None

    @model_validator(mode="after")
    def check_end_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"cycle end date ({self.end_date}) must not be before start date ({self.start_date})"
            )
        return self


# ===========================
# Group & Session Models
# ===========================

class Group(BaseModel):
    id: str
    name: str = ""
    grade: int
    interventionist_id: Optional[str] = None
    session_duration: Optional[int] = Field(None, gt=0)  # minutes
    current_position: Optional[Dict[str, Any]] = None  # curriculum position copied onto new sessions


class Session(BaseModel):
    id: str
    group_id: str
    date: date
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    status: SessionStatus = "planned"
    curriculum_position: Optional[Dict[str, Any]] = None
    duration: Optional[int] = Field(None, gt=0)  # minutes, falls back to group then default
    notes: Optional[str] = None


class SessionDraft(BaseModel):
    """Payload handed to the session repository when committing a slot"""
    group_id: str
    date: date
    time: str = Field(pattern=TIME_PATTERN)
    status: SessionStatus = "planned"
    curriculum_position: Optional[Dict[str, Any]] = None
    duration: Optional[int] = Field(None, gt=0)


# ===========================
# Conflict Models
# ===========================

class ExistingSessionConflict(BaseModel):
    type: Literal["existing_session"] = "existing_session"
    description: str
    session_id: Optional[str] = None


class InterventionistUnavailableConflict(BaseModel):
    type: Literal["interventionist_unavailable"] = "interventionist_unavailable"
    description: str
    interventionist_id: Optional[str] = None


class GradeConstraintConflict(BaseModel):
    type: Literal["grade_constraint"] = "grade_constraint"
    description: str
    constraint_id: Optional[str] = None
    label: str = ""


class NonStudentDayConflict(BaseModel):
    type: Literal["non_student_day"] = "non_student_day"
    description: str
    event_ids: List[str] = []


Conflict = Annotated[
    Union[
        ExistingSessionConflict,
        InterventionistUnavailableConflict,
        GradeConstraintConflict,
        NonStudentDayConflict,
    ],
    Field(discriminator="type"),
]


# ===========================
# Scheduler Output Models
# ===========================

class SuggestedTimeSlot(BaseModel):
    """Recurring weekly slot proposed by the suggestion engine"""
    day: WeekDay
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    # the field name shadows the date type inside this class body
    date: Optional[datetime.date] = None  # reference-week date the slot was checked against
    conflicts: List[Conflict] = []
    blocking: bool = False

    @model_validator(mode="after")
    def check_start_before_end(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"start time ({self.start_time}) must be before end time ({self.end_time})"
            )
        return self


class ScoredTimeSlot(SuggestedTimeSlot):
    """Gap-finding suggestion; lower score is better"""
    score: int = 0


class ScheduledSession(BaseModel):
    """One candidate date produced by the cycle generator"""
    date: date
    day: WeekDay
    time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    conflicts: List[Conflict] = []

    @model_validator(mode="after")
    def check_start_before_end(self):
        if self.time >= self.end_time:
            raise ValueError(f"time ({self.time}) must be before end time ({self.end_time})")
        return self


class CycleScheduleResult(BaseModel):
    group_id: str
    cycle_id: str
    dates: List[ScheduledSession] = []
    skipped_dates: List[date] = []  # non-student days on preferred weekdays
    total_sessions: int = 0  # dates with zero conflicts


class InterventionistWorkload(BaseModel):
    interventionist_id: str
    total_sessions: int
    sessions_by_day: Dict[str, int]
    sessions_by_hour: Dict[int, int]
    average_per_day: float


class UnavailableSlot(BaseModel):
    """Candidate that could not be booked at commit time"""
    date: date
    time: str
    reason: str


class CommitResult(BaseModel):
    created: List[Session] = []
    unavailable: List[UnavailableSlot] = []


# ===========================
# Scheduling Options
# ===========================

class SchedulingOptions(BaseModel):
    """Weekly suggestion options"""
    sessions_per_week: int = Field(3, ge=0, le=5)
    session_duration: int = Field(30, gt=0, le=240)  # minutes
    preferred_days: Optional[List[WeekDay]] = None  # defaults to monday-friday
    start_hour: Optional[int] = Field(None, ge=0, le=22)
    end_hour: Optional[int] = Field(None, ge=1, le=23)
    reference_date: Optional[date] = None  # defaults to today

    @model_validator(mode="after")
    def check_hours_in_order(self):
        if self.start_hour is not None and self.end_hour is not None and self.start_hour >= self.end_hour:
            raise ValueError(f"start hour ({self.start_hour}) must be before end hour ({self.end_hour})")
        return self


class CycleSchedulingOptions(BaseModel):
    """Cycle-wide scheduling options"""
    cycle_id: Optional[str] = None  # None = current cycle
    session_duration: int = Field(30, gt=0, le=240)
    preferred_days: List[WeekDay] = []
    preferred_time: Optional[str] = Field(None, pattern=TIME_PATTERN)  # None = best slot per date
    start_hour: Optional[int] = Field(None, ge=0, le=22)
    end_hour: Optional[int] = Field(None, ge=1, le=23)
    custom_start_date: Optional[date] = None  # mid-cycle start
    custom_end_date: Optional[date] = None
    reference_date: Optional[date] = None  # used to find the current cycle

    @model_validator(mode="after")
    def check_hours_in_order(self):
        if self.start_hour is not None and self.end_hour is not None and self.start_hour >= self.end_hour:
            raise ValueError(f"start hour ({self.start_hour}) must be before end hour ({self.end_hour})")
        return self

    @model_validator(mode="after")
    def check_preferred_time_fits_day(self):
        if self.preferred_time is not None:
            hours, minutes = self.preferred_time.split(":")
            if int(hours) * 60 + int(minutes) + self.session_duration >= 24 * 60:
                raise ValueError(
                    f"a {self.session_duration} minute session at {self.preferred_time} runs past midnight"
                )
        return self


# ===========================
# Request Schemas
# ===========================

class SchedulingSnapshot(BaseModel):
    """Already-loaded records a scheduling request runs against"""
    groups: List[Group] = []
    interventionists: List[Interventionist] = []
    grade_level_constraints: List[GradeLevelConstraint] = []
    sessions: List[Session] = []
    calendar_events: List[SchoolCalendarEvent] = []
    cycles: List[InterventionCycle] = []


class SuggestionRequest(SchedulingSnapshot):
    group_id: str
    options: SchedulingOptions = SchedulingOptions()


class OptimalTimesRequest(SchedulingSnapshot):
    group_id: str
    options: SchedulingOptions = SchedulingOptions()
    limit: int = Field(30, ge=1, le=500)


class CycleScheduleRequest(SchedulingSnapshot):
    group_id: str
    options: CycleSchedulingOptions


class BatchCycleScheduleRequest(SchedulingSnapshot):
    group_ids: List[str]
    cycle_id: str
    options: CycleSchedulingOptions
    balance_workload: bool = False


class ConflictCheckRequest(SchedulingSnapshot):
    group_id: str
    date: date
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)


class CycleCommitRequest(SchedulingSnapshot):
    group_id: str
    schedule: CycleScheduleResult

    @model_validator(mode="after")
    def check_schedule_belongs_to_group(self):
        if self.schedule.group_id != self.group_id:
            raise ValueError(
                f"schedule was generated for group {self.schedule.group_id}, not {self.group_id}"
            )
        return self


class WeeklyCommitRequest(SchedulingSnapshot):
    group_id: str
    slots: List[SuggestedTimeSlot]
    weeks: int = Field(4, ge=1, le=52)
    reference_date: Optional[date] = None


class WorkloadRequest(SchedulingSnapshot):
    interventionist_id: str
    start_date: date
    end_date: date


class CalendarExpandRequest(BaseModel):
    events: List[SchoolCalendarEvent]
    grade: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_range_in_order(self):
        if self.start_date is not None and self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(f"end date ({self.end_date}) must not be before start date ({self.start_date})")
        return self


# ===========================
# Response Schemas
# ===========================

class SuggestionResponse(BaseModel):
    group_id: str
    suggestions: List[SuggestedTimeSlot]
    selected: List[SuggestedTimeSlot]  # default pick: top conflict-free slots


class OptimalTimesResponse(BaseModel):
    group_id: str
    suggestions: List[ScoredTimeSlot]  # best score first


class BatchCycleScheduleResponse(BaseModel):
    results: Dict[str, CycleScheduleResult]


class ConflictCheckResponse(BaseModel):
    conflicts: List[Conflict]
    blocking: bool


class CalendarExpandResponse(BaseModel):
    events_by_date: Dict[str, List[SchoolCalendarEvent]]
    non_student_days: List[date] = []


class TimeOption(BaseModel):
    value: str
    label: str


class TimeOptionsResponse(BaseModel):
    options: List[TimeOption]
