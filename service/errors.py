"""
Exceptions raised by the scheduling service.
"""
from datetime import date


class SchedulingError(Exception):
    """Base class for scheduling failures surfaced to the caller."""


class NotFoundError(SchedulingError):
    """A referenced group, cycle or interventionist does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' was not found.")


class SlotUnavailableError(SchedulingError):
    """A previewed slot was taken or blocked by the time it was committed."""

    def __init__(self, on: date, time: str, reason: str):
        self.date = on
        self.time = time
        self.reason = reason
        super().__init__(f"Slot {on.isoformat()} {time} is no longer available: {reason}")


class ScheduleMismatchError(SchedulingError):
    """A previewed schedule was handed in for a different group than it was generated for."""

    def __init__(self, group_id: str, schedule_group_id: str):
        self.group_id = group_id
        self.schedule_group_id = schedule_group_id
        super().__init__(f"Schedule for group '{schedule_group_id}' cannot be committed to group '{group_id}'.")
