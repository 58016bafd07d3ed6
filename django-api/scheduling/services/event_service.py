"""Event service - recurrence materialization, cascades and slot maintenance.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
from datetime import date
from typing import Any

from scheduling.domain import (
    Capacity,
    Event,
    EventId,
    EventTemplate,
    EventType,
    RecurrenceRule,
    RecurrenceType,
    Slot,
    SlotId,
    SlotTemplate,
    UserId,
)
from scheduling.domain.errors import (
    DomainError,
    InvalidIdError,
    NotFoundError,
    PartialCascadeFailure,
    ValidationError,
)
from scheduling.domain.models import (
    EDITABLE_EVENT_FIELDS,
    TEMPLATE_FIELDS,
    CascadeResult,
    DeletionResult,
    EventSeries,
    NewEvent,
)
from scheduling.domain.recurrence import expand
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)


def parse_event_id(value: str) -> EventId:
    try:
        return EventId.from_string(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIdError("event") from exc


def parse_slot_id(value: str) -> SlotId:
    try:
        return SlotId.from_string(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIdError("slot") from exc


def parse_user_id(value: str) -> UserId:
    try:
        return UserId.from_string(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIdError("user") from exc


def _capacity(value: Any) -> Capacity:
    if isinstance(value, Capacity):
        return value
    try:
        return Capacity(value)
    except ValueError as exc:
        raise ValidationError(str(exc), field="capacity") from exc


class EventService:
    """Service for events, their generated instances and their slots."""

    def __init__(self, store: SchedulingStore) -> None:
        self._store = store

    # ── Queries ──

    def get_event(self, event_id: str) -> Event:
        """Return an event with its slots.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            NotFoundError: If the event does not exist.
        """
        event = self._store.get_event(parse_event_id(event_id))
        if event is None:
            raise NotFoundError("event", event_id)
        return event

    def list_events(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        event_type: EventType | None = None,
    ) -> list[Event]:
        """Return events newest first, optionally within a date range."""
        return self._store.list_events(
            start_date=start_date, end_date=end_date, event_type=event_type
        )

    def list_upcoming(
        self,
        today: date,
        event_type: EventType | None = None,
        limit: int = 20,
    ) -> list[Event]:
        """Return events on or after ``today``, soonest first."""
        return self._store.list_events(
            start_date=today, event_type=event_type, limit=limit, ascending=True
        )

    def get_series(self, event_id: str) -> EventSeries:
        """Return an event together with the instances generated from it."""
        event = self.get_event(event_id)
        children = tuple(self._store.list_child_events(event.id))
        return EventSeries(parent=event, children=children)

    # ── Creation ──

    def create_event(
        self,
        template: EventTemplate,
        rule: RecurrenceRule | None = None,
        slots: list[SlotTemplate] | None = None,
        created_by: str | None = None,
    ) -> EventSeries:
        """Create an event and, for a recurring rule, one instance per further date.

        The parent keeps the rule. Every instance is a full event with
        recurrence type ``none``, a link to the parent and its own copy of
        the slot templates. The whole series is one unit of work.

        Raises:
            ValidationError: If the title is blank or the rule cannot be expanded.
            NotFoundError: If ``created_by`` names no known user.
        """
        rule = rule or RecurrenceRule.none()
        slots = slots or []
        if not template.title or not template.title.strip():
            raise ValidationError("Title is required", field="title")
        creator = parse_user_id(created_by) if created_by else None
        dates = expand(template.event_date, rule)
        if creator is not None and self._store.get_user(creator) is None:
            raise NotFoundError("user", created_by)

        with self._store.atomic():
            parent = self._store.create_event(
                NewEvent(
                    template=template,
                    event_date=dates[0],
                    recurrence_type=rule.type,
                    recurrence_end_date=rule.end_date if rule.type.is_recurring else None,
                    parent_event_id=None,
                    created_by=creator,
                )
            )
            self._store.create_slots(parent.id, slots)

            children: list[Event] = []
            for occurrence in dates[1:]:
                child = self._store.create_event(
                    NewEvent(
                        template=template,
                        event_date=occurrence,
                        recurrence_type=RecurrenceType.NONE,
                        recurrence_end_date=None,
                        parent_event_id=parent.id,
                        created_by=creator,
                    )
                )
                self._store.create_slots(child.id, slots)
                children.append(child)

        logger.info(
            "Event created: id=%s, type=%s, instances=%d, slots_per_instance=%d",
            parent.id, rule.type.value, len(dates), len(slots),
        )
        return EventSeries(
            parent=self._store.get_event(parent.id) or parent,
            children=tuple(children),
        )

    # ── Cascading edits ──

    def update_event(
        self,
        event_id: str,
        fields: dict[str, Any],
        apply_to_future: bool = False,
    ) -> CascadeResult:
        """Update an event and optionally push the template fields to its instances.

        Instances never receive ``event_date``. Each instance is updated in
        its own savepoint; the event itself and the instances that succeeded
        stay committed even if others fail.

        Raises:
            ValidationError: On unknown fields or a blank title.
            NotFoundError: If the event does not exist.
            PartialCascadeFailure: If one or more instances could not be updated.
        """
        eid = parse_event_id(event_id)
        self._validate_event_fields(fields)

        with self._store.atomic():
            updated = self._store.update_event(eid, fields)
            if updated is None:
                raise NotFoundError("event", event_id)

        child_fields = {k: v for k, v in fields.items() if k in TEMPLATE_FIELDS}
        if not (apply_to_future and updated.recurrence_type.is_recurring and child_fields):
            logger.info("Event updated: id=%s, fields=%s", eid, sorted(fields))
            return CascadeResult(event=updated)

        succeeded: list[EventId] = []
        failed: dict[str, str] = {}
        for child in self._store.list_child_events(eid):
            try:
                with self._store.atomic():
                    if self._store.update_event(child.id, child_fields) is None:
                        raise NotFoundError("event", str(child.id))
            except DomainError as exc:
                logger.warning("Instance update failed: parent=%s, child=%s, error=%s", eid, child.id, exc)
                failed[str(child.id)] = str(exc)
            else:
                succeeded.append(child.id)

        if failed:
            raise PartialCascadeFailure(
                event_id=str(eid),
                succeeded=[str(c) for c in succeeded],
                failed=failed,
            )
        logger.info(
            "Event updated with instances: id=%s, fields=%s, instances=%d",
            eid, sorted(child_fields), len(succeeded),
        )
        return CascadeResult(event=updated, updated_children=tuple(succeeded))

    def _validate_event_fields(self, fields: dict[str, Any]) -> None:
        unknown = set(fields) - set(EDITABLE_EVENT_FIELDS)
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        if "title" in fields and not (fields["title"] or "").strip():
            raise ValidationError("Title is required", field="title")
        for required in ("event_date", "start_time", "event_type"):
            if required in fields and fields[required] is None:
                raise ValidationError(f"{required} cannot be empty", field=required)

    # ── Cascading deletes ──

    def delete_event(
        self, event_id: str, delete_future_instances: bool = False
    ) -> DeletionResult:
        """Delete an event bottom-up (assignments, slots, event).

        With ``delete_future_instances`` every generated instance goes first.
        Deleting a single instance never touches its siblings or parent.
        Everything happens in one unit of work.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            NotFoundError: If the event does not exist.
        """
        eid = parse_event_id(event_id)
        with self._store.atomic():
            event = self._store.get_event(eid)
            if event is None:
                raise NotFoundError("event", event_id)

            targets: list[Event] = []
            if delete_future_instances:
                targets.extend(self._store.list_child_events(eid))
            targets.append(event)

            slots_deleted = 0
            assignments_deleted = 0
            for target in targets:
                for slot in target.slots:
                    assignments_deleted += self._store.delete_assignments_for_slot(slot.id)
                    self._store.delete_slot(slot.id)
                    slots_deleted += 1
                self._store.delete_event(target.id)

        logger.info(
            "Event deleted: id=%s, events=%d, slots=%d, assignments=%d",
            eid, len(targets), slots_deleted, assignments_deleted,
        )
        return DeletionResult(
            deleted_events=tuple(t.id for t in targets),
            deleted_slots=slots_deleted,
            deleted_assignments=assignments_deleted,
        )

    # ── Slots ──

    def add_slot(
        self,
        event_id: str,
        name: str,
        capacity: int = 1,
        notes: str | None = None,
    ) -> Slot:
        """Add a slot to one event only."""
        eid = parse_event_id(event_id)
        if not name or not name.strip():
            raise ValidationError("Name is required", field="name")
        template = SlotTemplate(name=name, capacity=_capacity(capacity), notes=notes)
        with self._store.atomic():
            if self._store.get_event(eid) is None:
                raise NotFoundError("event", event_id)
            (slot,) = self._store.create_slots(eid, [template])
        logger.info("Slot created: id=%s, event=%s, name=%s", slot.id, eid, name)
        return slot

    def update_slot(self, slot_id: str, fields: dict[str, Any]) -> Slot:
        """Update one slot's name, capacity or notes."""
        sid = parse_slot_id(slot_id)
        unknown = set(fields) - {"name", "capacity", "notes"}
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationError("Name is required", field="name")
        if "capacity" in fields:
            fields = {**fields, "capacity": _capacity(fields["capacity"])}
        slot = self._store.update_slot(sid, fields)
        if slot is None:
            raise NotFoundError("slot", slot_id)
        return slot

    def delete_slot(self, slot_id: str) -> int:
        """Delete a slot and its assignments. Returns the number of assignments removed."""
        sid = parse_slot_id(slot_id)
        with self._store.atomic():
            removed = self._store.delete_assignments_for_slot(sid)
            if not self._store.delete_slot(sid):
                raise NotFoundError("slot", slot_id)
        logger.info("Slot deleted: id=%s, assignments=%d", sid, removed)
        return removed
