"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from typing import Any

from scheduling.domain import (
    Assignment,
    AssignmentDetail,
    AssignmentId,
    Event,
    EventId,
    EventType,
    Role,
    Slot,
    SlotId,
    SlotTemplate,
    User,
    UserId,
)
from scheduling.domain.models import NewEvent


class SchedulingStore(ABC):
    """Interface for scheduling persistence operations."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[Any]:
        """Return a context manager delimiting one unit of work.

        Everything written inside commits together or not at all. Nested
        use opens a savepoint that can fail without aborting the outer unit.
        """
        ...

    # ── Users ──

    @abstractmethod
    def get_user(self, user_id: UserId) -> User | None:
        """Return a user by ID, or None if not found."""
        ...

    @abstractmethod
    def get_user_by_phone(self, phone: str) -> User | None:
        """Return the user holding a normalized phone number, or None."""
        ...

    @abstractmethod
    def create_user(
        self, name: str, phone: str, role: Role, email: str | None
    ) -> User:
        """Insert a user.

        Raises:
            ConflictError: If the phone or email is already taken.
        """
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> User | None:
        """Return the user holding a lower-cased email, or None."""
        ...

    @abstractmethod
    def list_users(self, role: Role | None = None) -> list[User]:
        """Return users ordered by name, optionally filtered by role."""
        ...

    @abstractmethod
    def update_user(self, user_id: UserId, fields: dict[str, Any]) -> User | None:
        """Apply field changes to a user. Returns None if the user is missing.

        Raises:
            ConflictError: If the new phone or email is already taken.
        """
        ...

    # ── Events ──

    @abstractmethod
    def create_event(self, event: NewEvent) -> Event:
        """Insert one event row."""
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event with its slots and their assigned counts, or None."""
        ...

    @abstractmethod
    def list_events(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        event_type: EventType | None = None,
        limit: int | None = None,
        ascending: bool = False,
    ) -> list[Event]:
        """Return events (with slots) in the date range, newest first unless ``ascending``."""
        ...

    @abstractmethod
    def list_child_events(self, parent_id: EventId) -> list[Event]:
        """Return the generated instances of a parent event, ordered by date."""
        ...

    @abstractmethod
    def update_event(self, event_id: EventId, fields: dict[str, Any]) -> Event | None:
        """Overwrite the given columns of one event. Returns None if not found."""
        ...

    @abstractmethod
    def delete_event(self, event_id: EventId) -> bool:
        """Delete one event row. Returns False if not found."""
        ...

    # ── Slots ──

    @abstractmethod
    def create_slots(
        self, event_id: EventId, templates: list[SlotTemplate]
    ) -> list[Slot]:
        """Insert one slot per template, owned by ``event_id``."""
        ...

    @abstractmethod
    def get_slot(self, slot_id: SlotId) -> Slot | None:
        """Return a slot with its assigned count, or None."""
        ...

    @abstractmethod
    def list_slots(self, event_id: EventId) -> list[Slot]:
        """Return the slots of one event."""
        ...

    @abstractmethod
    def update_slot(self, slot_id: SlotId, fields: dict[str, Any]) -> Slot | None:
        """Overwrite the given columns of one slot. Returns None if not found."""
        ...

    @abstractmethod
    def delete_slot(self, slot_id: SlotId) -> bool:
        """Delete one slot row. Returns False if not found."""
        ...

    # ── Assignments ──

    @abstractmethod
    def create_assignment(
        self,
        slot_id: SlotId,
        user_id: UserId,
        notes: str | None,
        created_by: UserId | None,
    ) -> Assignment:
        """Insert an assignment.

        Raises:
            AlreadyAssignedError: If the (slot, user) unique constraint is violated.
        """
        ...

    @abstractmethod
    def get_assignment(self, assignment_id: AssignmentId) -> AssignmentDetail | None:
        """Return an assignment with user, slot and event resolved, or None."""
        ...

    @abstractmethod
    def list_assignments(
        self,
        user_id: UserId | None = None,
        slot_id: SlotId | None = None,
        event_id: EventId | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AssignmentDetail]:
        """Return matching assignments ordered by event date and start time."""
        ...

    @abstractmethod
    def delete_assignment(self, assignment_id: AssignmentId) -> bool:
        """Delete one assignment row. Returns False if not found."""
        ...

    @abstractmethod
    def delete_assignments_for_slot(self, slot_id: SlotId) -> int:
        """Delete every assignment of a slot. Returns the number deleted."""
        ...

    @abstractmethod
    def set_reminders_sent(
        self, assignment_id: AssignmentId, offsets: frozenset[int]
    ) -> Assignment | None:
        """Persist the set of reminder offsets already sent. Returns None if not found."""
        ...

    # ── SMS log ──

    @abstractmethod
    def record_sms(
        self,
        user_id: UserId | None,
        phone: str,
        message_type: str,
        message_body: str,
        provider_sid: str | None,
    ) -> None:
        """Append one outbound SMS attempt; a missing SID records a failure."""
        ...
