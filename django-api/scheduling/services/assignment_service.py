"""Assignment service - slot/volunteer consistency rules and reminder tracking.

Capacity is advisory: a slot may be booked past its capacity on purpose.
The (slot, user) pair is unique; the store's unique constraint is the
actual guarantee and the check here is the fast path.
"""

import logging
from datetime import date

from scheduling.domain import (
    Assignment,
    AssignmentDetail,
    AssignmentId,
    Event,
)
from scheduling.domain.errors import (
    AlreadyAssignedError,
    InvalidIdError,
    NotFoundError,
)
from scheduling.domain.models import AssignmentResult
from scheduling.services.event_service import (
    parse_event_id,
    parse_slot_id,
    parse_user_id,
)
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)

DOUBLE_BOOKING_WARNING = "User may be double-booked at this time"


def parse_assignment_id(value: str) -> AssignmentId:
    try:
        return AssignmentId.from_string(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIdError("assignment") from exc


def overlaps(existing: Event, candidate: Event) -> bool:
    """True when two different events share a date and a start time.

    Several slots of the same event at the same time are not a conflict.
    """
    return (
        existing.id != candidate.id
        and existing.event_date == candidate.event_date
        and existing.start_time == candidate.start_time
    )


class AssignmentService:
    """Service for assigning volunteers to slots."""

    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    def assign(
        self,
        slot_id: str,
        user_id: str,
        notes: str | None = None,
        created_by: str | None = None,
    ) -> AssignmentResult:
        """Assign a volunteer to a slot.

        Checks run in order: slot exists, user exists, pair not already
        assigned. A double-booking against another event at the same date
        and start time produces a warning but does not block.

        Raises:
            InvalidIdError: If an identifier is not a valid UUID.
            NotFoundError: If the slot, the user or the creator does not exist.
            AlreadyAssignedError: If the user already holds this slot.
        """
        sid = parse_slot_id(slot_id)
        uid = parse_user_id(user_id)
        creator = parse_user_id(created_by) if created_by else None

        slot = self._store.get_slot(sid)
        if slot is None:
            raise NotFoundError("slot", slot_id)
        user = self._store.get_user(uid)
        if user is None:
            raise NotFoundError("user", user_id)
        if creator is not None and self._store.get_user(creator) is None:
            raise NotFoundError("user", created_by)

        existing = self._store.list_assignments(user_id=uid)
        if any(d.slot.id == sid for d in existing):
            raise AlreadyAssignedError(str(sid), str(uid))

        event = self._store.get_event(slot.event_id)
        if event is None:
            raise NotFoundError("event", str(slot.event_id))

        warnings: list[str] = []
        if any(overlaps(d.event, event) for d in existing):
            warnings.append(DOUBLE_BOOKING_WARNING)
            logger.warning(
                "Double-booking: user=%s, date=%s, start=%s",
                uid, event.event_date, event.start_time,
            )

        with self._store.atomic():
            created = self._store.create_assignment(sid, uid, notes, creator)

        if slot.assigned_count + 1 > slot.capacity.value:
            logger.info(
                "Slot over capacity: slot=%s, assigned=%d, capacity=%d",
                sid, slot.assigned_count + 1, slot.capacity.value,
            )
        logger.info("Assignment created: id=%s, slot=%s, user=%s", created.id, sid, uid)

        detail = self._store.get_assignment(created.id)
        return AssignmentResult(assignment=detail, warnings=tuple(warnings))

    def unassign(self, assignment_id: str) -> None:
        """Delete an assignment. The slot's assigned count recomputes from the remaining rows.

        Raises:
            NotFoundError: If the assignment does not exist.
        """
        aid = parse_assignment_id(assignment_id)
        if not self._store.delete_assignment(aid):
            raise NotFoundError("assignment", assignment_id)
        logger.info("Assignment deleted: id=%s", aid)

    def get_assignment(self, assignment_id: str) -> AssignmentDetail:
        detail = self._store.get_assignment(parse_assignment_id(assignment_id))
        if detail is None:
            raise NotFoundError("assignment", assignment_id)
        return detail

    def list_assignments(
        self,
        user_id: str | None = None,
        event_id: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AssignmentDetail]:
        """Return assignments ordered by event date, filtered as requested."""
        return self._store.list_assignments(
            user_id=parse_user_id(user_id) if user_id else None,
            event_id=parse_event_id(event_id) if event_id else None,
            start_date=start_date,
            end_date=end_date,
        )

    # ── Reminder tracking ──

    def has_reminder_been_sent(self, assignment_id: str, offset: int) -> bool:
        return self.get_assignment(assignment_id).assignment.reminder_sent(offset)

    def mark_reminder_sent(self, assignment_id: str, offset: int) -> Assignment:
        """Record that the reminder for ``offset`` went out. Marking twice is a no-op."""
        detail = self.get_assignment(assignment_id)
        current = detail.assignment
        if current.reminder_sent(offset):
            return current
        updated = self._store.set_reminders_sent(
            current.id, current.reminders_sent | {offset}
        )
        if updated is None:
            raise NotFoundError("assignment", assignment_id)
        return updated
