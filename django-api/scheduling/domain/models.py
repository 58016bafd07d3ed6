"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in scheduling/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time

from scheduling.domain.value_objects import (
    AssignmentId,
    Capacity,
    EventId,
    EventType,
    RecurrenceType,
    Role,
    SlotId,
    UserId,
)

# Fields a parent event shares with its generated instances. Each instance
# keeps its own event_date.
TEMPLATE_FIELDS = (
    "title",
    "description",
    "event_type",
    "start_time",
    "end_time",
    "location",
)
EDITABLE_EVENT_FIELDS = TEMPLATE_FIELDS + ("event_date",)


@dataclass(frozen=True)
class User:
    """Domain representation of a User."""

    id: UserId
    name: str
    phone: str
    email: str | None
    role: Role
    is_active: bool
    notifications_enabled: bool
    created_at: datetime


@dataclass(frozen=True)
class Slot:
    """Domain representation of a Slot.

    ``assigned_count`` is computed from live assignment rows. Capacity is
    advisory: the count may exceed it.
    """

    id: SlotId
    event_id: EventId
    name: str
    capacity: Capacity
    notes: str | None
    created_at: datetime
    assigned_count: int = 0

    @property
    def open_spots(self) -> int:
        return max(self.capacity.value - self.assigned_count, 0)

    @property
    def is_full(self) -> bool:
        return self.assigned_count >= self.capacity.value


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event."""

    id: EventId
    title: str
    description: str | None
    event_type: EventType
    event_date: date
    start_time: time
    end_time: time | None
    location: str | None
    recurrence_type: RecurrenceType
    recurrence_end_date: date | None
    parent_event_id: EventId | None
    created_by: UserId | None
    created_at: datetime
    updated_at: datetime
    slots: tuple[Slot, ...] = ()

    @property
    def is_series_parent(self) -> bool:
        return self.recurrence_type.is_recurring and self.parent_event_id is None


@dataclass(frozen=True)
class Assignment:
    """Domain representation of an Assignment."""

    id: AssignmentId
    slot_id: SlotId
    user_id: UserId
    notes: str | None
    created_by: UserId | None
    reminders_sent: frozenset[int]
    created_at: datetime

    def reminder_sent(self, offset: int) -> bool:
        return offset in self.reminders_sent


@dataclass(frozen=True)
class AssignmentDetail:
    """An assignment with its volunteer, slot and event resolved."""

    assignment: Assignment
    user: User
    slot: Slot
    event: Event


# ── Inputs ──


@dataclass(frozen=True)
class EventTemplate:
    """Descriptive fields shared by every instance of a new event."""

    title: str
    event_type: EventType
    event_date: date
    start_time: time
    description: str | None = None
    end_time: time | None = None
    location: str | None = None


@dataclass(frozen=True)
class SlotTemplate:
    name: str
    capacity: Capacity = field(default_factory=lambda: Capacity(1))
    notes: str | None = None


@dataclass(frozen=True)
class NewEvent:
    """Row-level input for the store: a template pinned to one date."""

    template: EventTemplate
    event_date: date
    recurrence_type: RecurrenceType
    recurrence_end_date: date | None
    parent_event_id: EventId | None
    created_by: UserId | None


# ── Results ──


@dataclass(frozen=True)
class EventSeries:
    """A materialized event: the parent plus its generated instances."""

    parent: Event
    children: tuple[Event, ...] = ()

    @property
    def total_created(self) -> int:
        return 1 + len(self.children)


@dataclass(frozen=True)
class CascadeResult:
    event: Event
    updated_children: tuple[EventId, ...] = ()


@dataclass(frozen=True)
class DeletionResult:
    deleted_events: tuple[EventId, ...]
    deleted_slots: int
    deleted_assignments: int


@dataclass(frozen=True)
class AssignmentResult:
    assignment: AssignmentDetail
    warnings: tuple[str, ...] = ()


@dataclass
class ReminderDayStats:
    sent: int = 0
    failed: int = 0
    skipped: int = 0


@dataclass
class ReminderSweepResult:
    """Outcome of one reminder sweep, in total and per day-offset."""

    reminder_days: tuple[int, ...]
    by_day: dict[int, ReminderDayStats] = field(default_factory=dict)

    @property
    def sent(self) -> int:
        return sum(s.sent for s in self.by_day.values())

    @property
    def failed(self) -> int:
        return sum(s.failed for s in self.by_day.values())

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.by_day.values())
