"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Self
from uuid import UUID

# Reserved day-offset for ad-hoc reminders. Scheduled offsets are 1..30 days ahead.
MANUAL_REMINDER_OFFSET = -1


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SlotId:
    """Unique identifier for a Slot."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class UserId:
    """Unique identifier for a User."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class AssignmentId:
    """Unique identifier for an Assignment."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Capacity:
    """Number of volunteers a slot is meant to hold. Always at least one."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Capacity must be an integer")
        if self.value < 1:
            raise ValueError("Capacity must be at least 1")


class EventType(Enum):
    MASS = "mass"
    CLOW = "clow"
    VOLUNTEER = "volunteer"
    MINISTRY = "ministry"
    OTHER = "other"


class RecurrenceType(Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def is_recurring(self) -> bool:
        return self is not RecurrenceType.NONE


class Role(Enum):
    """User roles. Capabilities are declared here rather than compared as strings."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    PEER_MINISTER = "peer_minister"

    @property
    def can_manage_schedule(self) -> bool:
        return self in (Role.SUPER_ADMIN, Role.ADMIN)

    @property
    def can_manage_admins(self) -> bool:
        return self is Role.SUPER_ADMIN

    @property
    def is_volunteer(self) -> bool:
        return self is Role.PEER_MINISTER

    @property
    def requires_email(self) -> bool:
        return self.can_manage_schedule


@dataclass(frozen=True)
class RecurrenceRule:
    """How an event repeats. The end date is checked against the start date by the expander."""

    type: RecurrenceType = RecurrenceType.NONE
    end_date: date | None = None

    @classmethod
    def none(cls) -> Self:
        return cls(type=RecurrenceType.NONE, end_date=None)
