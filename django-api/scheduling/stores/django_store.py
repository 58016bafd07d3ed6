"""Django ORM implementation of the SchedulingStore."""

from datetime import date
from typing import Any

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Prefetch, QuerySet

from scheduling import models as orm
from scheduling.domain import (
    Assignment,
    AssignmentDetail,
    AssignmentId,
    Capacity,
    Event,
    EventId,
    EventType,
    RecurrenceType,
    Role,
    Slot,
    SlotId,
    SlotTemplate,
    User,
    UserId,
)
from scheduling.domain.errors import AlreadyAssignedError, ConflictError, StorageError
from scheduling.domain.models import NewEvent
from scheduling.stores.interfaces import SchedulingStore

# Domain field name -> ORM column for the writable event fields.
_EVENT_COLUMNS = {
    "title": "title",
    "description": "description",
    "event_type": "event_type",
    "event_date": "event_date",
    "start_time": "start_time",
    "end_time": "end_time",
    "location": "location",
}
_SLOT_COLUMNS = {"name": "name", "capacity": "capacity", "notes": "notes"}


# ── Row -> domain conversion ──


def _user(row: orm.User) -> User:
    return User(
        id=UserId(row.id),
        name=row.name,
        phone=row.phone,
        email=row.email,
        role=Role(row.role),
        is_active=row.is_active,
        notifications_enabled=row.notifications_enabled,
        created_at=row.created_at,
    )


def _slot(row: orm.Slot) -> Slot:
    assigned = getattr(row, "assigned_count", None)
    if assigned is None:
        assigned = row.assignments.count()
    return Slot(
        id=SlotId(row.id),
        event_id=EventId(row.event_id),
        name=row.name,
        capacity=Capacity(row.capacity),
        notes=row.notes,
        created_at=row.created_at,
        assigned_count=assigned,
    )


def _event(row: orm.Event, with_slots: bool = True) -> Event:
    slots: tuple[Slot, ...] = ()
    if with_slots:
        slots = tuple(_slot(s) for s in row.slots.all())
    return Event(
        id=EventId(row.id),
        title=row.title,
        description=row.description,
        event_type=EventType(row.event_type),
        event_date=row.event_date,
        start_time=row.start_time,
        end_time=row.end_time,
        location=row.location,
        recurrence_type=RecurrenceType(row.recurrence_type),
        recurrence_end_date=row.recurrence_end_date,
        parent_event_id=EventId(row.parent_event_id) if row.parent_event_id else None,
        created_by=UserId(row.created_by_id) if row.created_by_id else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
        slots=slots,
    )


def _assignment(row: orm.Assignment) -> Assignment:
    return Assignment(
        id=AssignmentId(row.id),
        slot_id=SlotId(row.slot_id),
        user_id=UserId(row.user_id),
        notes=row.notes,
        created_by=UserId(row.created_by_id) if row.created_by_id else None,
        reminders_sent=frozenset(int(o) for o in row.reminders_sent or ()),
        created_at=row.created_at,
    )


def _assignment_detail(row: orm.Assignment) -> AssignmentDetail:
    return AssignmentDetail(
        assignment=_assignment(row),
        user=_user(row.user),
        slot=_slot(row.slot),
        event=_event(row.slot.event, with_slots=False),
    )


def _slots_with_counts() -> QuerySet:
    return orm.Slot.objects.annotate(assigned_count=Count("assignments"))


class DjangoSchedulingStore(SchedulingStore):
    """Relational store backed by the Django ORM."""

    def atomic(self):
        return transaction.atomic()

    # ── Users ──

    def get_user(self, user_id: UserId) -> User | None:
        row = orm.User.objects.filter(pk=user_id.value).first()
        return _user(row) if row else None

    def get_user_by_phone(self, phone: str) -> User | None:
        row = orm.User.objects.filter(phone=phone).first()
        return _user(row) if row else None

    def get_user_by_email(self, email: str) -> User | None:
        row = orm.User.objects.filter(email=email).first()
        return _user(row) if row else None

    def create_user(
        self, name: str, phone: str, role: Role, email: str | None
    ) -> User:
        try:
            with transaction.atomic():
                row = orm.User.objects.create(
                    name=name, phone=phone, role=role.value, email=email
                )
        except IntegrityError as exc:
            raise ConflictError(
                "A user with this phone number or email already exists"
            ) from exc
        return _user(row)

    def list_users(self, role: Role | None = None) -> list[User]:
        qs = orm.User.objects.all()
        if role is not None:
            qs = qs.filter(role=role.value)
        return [_user(row) for row in qs.order_by("name")]

    def update_user(self, user_id: UserId, fields: dict[str, Any]) -> User | None:
        row = orm.User.objects.filter(pk=user_id.value).first()
        if row is None:
            return None
        for name, value in fields.items():
            setattr(row, name, value)
        try:
            with transaction.atomic():
                row.save(update_fields=list(fields) + ["updated_at"])
        except IntegrityError as exc:
            raise ConflictError(
                "A user with this phone number or email already exists"
            ) from exc
        return _user(row)

    # ── Events ──

    def _events(self) -> QuerySet:
        return orm.Event.objects.prefetch_related(
            Prefetch("slots", queryset=_slots_with_counts().order_by("created_at"))
        )

    def create_event(self, event: NewEvent) -> Event:
        template = event.template
        row = orm.Event.objects.create(
            title=template.title,
            description=template.description,
            event_type=template.event_type.value,
            event_date=event.event_date,
            start_time=template.start_time,
            end_time=template.end_time,
            location=template.location,
            recurrence_type=event.recurrence_type.value,
            recurrence_end_date=event.recurrence_end_date,
            parent_event_id=event.parent_event_id.value if event.parent_event_id else None,
            created_by_id=event.created_by.value if event.created_by else None,
        )
        return _event(row, with_slots=False)

    def get_event(self, event_id: EventId) -> Event | None:
        row = self._events().filter(pk=event_id.value).first()
        return _event(row) if row else None

    def list_events(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        event_type: EventType | None = None,
        limit: int | None = None,
        ascending: bool = False,
    ) -> list[Event]:
        qs = self._events()
        if start_date is not None:
            qs = qs.filter(event_date__gte=start_date)
        if end_date is not None:
            qs = qs.filter(event_date__lte=end_date)
        if event_type is not None:
            qs = qs.filter(event_type=event_type.value)
        if ascending:
            qs = qs.order_by("event_date", "start_time")
        else:
            qs = qs.order_by("-event_date", "start_time")
        if limit is not None:
            qs = qs[:limit]
        return [_event(row) for row in qs]

    def list_child_events(self, parent_id: EventId) -> list[Event]:
        qs = self._events().filter(parent_event_id=parent_id.value)
        return [_event(row) for row in qs.order_by("event_date")]

    def update_event(self, event_id: EventId, fields: dict[str, Any]) -> Event | None:
        row = orm.Event.objects.filter(pk=event_id.value).first()
        if row is None:
            return None
        for name, value in fields.items():
            if isinstance(value, (EventType, RecurrenceType)):
                value = value.value
            setattr(row, _EVENT_COLUMNS[name], value)
        try:
            row.save(update_fields=[_EVENT_COLUMNS[n] for n in fields] + ["updated_at"])
        except DatabaseError as exc:
            raise StorageError(f"Failed to update event {event_id}") from exc
        return self.get_event(event_id)

    def delete_event(self, event_id: EventId) -> bool:
        deleted, _ = orm.Event.objects.filter(pk=event_id.value).delete()
        return deleted > 0

    # ── Slots ──

    def create_slots(
        self, event_id: EventId, templates: list[SlotTemplate]
    ) -> list[Slot]:
        rows = [
            orm.Slot.objects.create(
                event_id=event_id.value,
                name=t.name,
                capacity=t.capacity.value,
                notes=t.notes,
            )
            for t in templates
        ]
        return [_slot(row) for row in rows]

    def get_slot(self, slot_id: SlotId) -> Slot | None:
        row = _slots_with_counts().filter(pk=slot_id.value).first()
        return _slot(row) if row else None

    def list_slots(self, event_id: EventId) -> list[Slot]:
        qs = _slots_with_counts().filter(event_id=event_id.value).order_by("created_at")
        return [_slot(row) for row in qs]

    def update_slot(self, slot_id: SlotId, fields: dict[str, Any]) -> Slot | None:
        row = orm.Slot.objects.filter(pk=slot_id.value).first()
        if row is None:
            return None
        for name, value in fields.items():
            if isinstance(value, Capacity):
                value = value.value
            setattr(row, _SLOT_COLUMNS[name], value)
        row.save(update_fields=[_SLOT_COLUMNS[n] for n in fields])
        return self.get_slot(slot_id)

    def delete_slot(self, slot_id: SlotId) -> bool:
        deleted, _ = orm.Slot.objects.filter(pk=slot_id.value).delete()
        return deleted > 0

    # ── Assignments ──

    def create_assignment(
        self,
        slot_id: SlotId,
        user_id: UserId,
        notes: str | None,
        created_by: UserId | None,
    ) -> Assignment:
        try:
            with transaction.atomic():
                row = orm.Assignment.objects.create(
                    slot_id=slot_id.value,
                    user_id=user_id.value,
                    notes=notes,
                    created_by_id=created_by.value if created_by else None,
                    reminders_sent=[],
                )
        except IntegrityError as exc:
            duplicate = orm.Assignment.objects.filter(
                slot_id=slot_id.value, user_id=user_id.value
            ).exists()
            if duplicate:
                raise AlreadyAssignedError(str(slot_id), str(user_id)) from exc
            raise StorageError("Failed to create assignment") from exc
        return _assignment(row)

    def _assignments(self) -> QuerySet:
        return orm.Assignment.objects.select_related("user", "slot", "slot__event")

    def get_assignment(self, assignment_id: AssignmentId) -> AssignmentDetail | None:
        row = self._assignments().filter(pk=assignment_id.value).first()
        return _assignment_detail(row) if row else None

    def list_assignments(
        self,
        user_id: UserId | None = None,
        slot_id: SlotId | None = None,
        event_id: EventId | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[AssignmentDetail]:
        qs = self._assignments()
        if user_id is not None:
            qs = qs.filter(user_id=user_id.value)
        if slot_id is not None:
            qs = qs.filter(slot_id=slot_id.value)
        if event_id is not None:
            qs = qs.filter(slot__event_id=event_id.value)
        if start_date is not None:
            qs = qs.filter(slot__event__event_date__gte=start_date)
        if end_date is not None:
            qs = qs.filter(slot__event__event_date__lte=end_date)
        qs = qs.order_by("slot__event__event_date", "slot__event__start_time", "created_at")
        return [_assignment_detail(row) for row in qs]

    def delete_assignment(self, assignment_id: AssignmentId) -> bool:
        deleted, _ = orm.Assignment.objects.filter(pk=assignment_id.value).delete()
        return deleted > 0

    def delete_assignments_for_slot(self, slot_id: SlotId) -> int:
        deleted, _ = orm.Assignment.objects.filter(slot_id=slot_id.value).delete()
        return deleted

    def set_reminders_sent(
        self, assignment_id: AssignmentId, offsets: frozenset[int]
    ) -> Assignment | None:
        row = orm.Assignment.objects.filter(pk=assignment_id.value).first()
        if row is None:
            return None
        row.reminders_sent = sorted(offsets)
        row.save(update_fields=["reminders_sent"])
        return _assignment(row)

    # ── SMS log ──

    def record_sms(
        self,
        user_id: UserId | None,
        phone: str,
        message_type: str,
        message_body: str,
        provider_sid: str | None,
    ) -> None:
        orm.SmsLog.objects.create(
            user_id=user_id.value if user_id else None,
            phone=phone,
            message_type=message_type,
            message_body=message_body,
            provider_sid=provider_sid,
            status=orm.SmsLog.Status.SENT if provider_sid else orm.SmsLog.Status.FAILED,
        )
