from scheduling.domain.models import (
    Assignment,
    AssignmentDetail,
    Event,
    EventTemplate,
    Slot,
    SlotTemplate,
    User,
)
from scheduling.domain.value_objects import (
    MANUAL_REMINDER_OFFSET,
    AssignmentId,
    Capacity,
    EventId,
    EventType,
    RecurrenceRule,
    RecurrenceType,
    Role,
    SlotId,
    UserId,
)

__all__ = [
    "Assignment",
    "AssignmentDetail",
    "Event",
    "EventTemplate",
    "Slot",
    "SlotTemplate",
    "User",
    "AssignmentId",
    "EventId",
    "SlotId",
    "UserId",
    "Capacity",
    "EventType",
    "RecurrenceRule",
    "RecurrenceType",
    "Role",
    "MANUAL_REMINDER_OFFSET",
]
