"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import hmac
import logging
from collections import defaultdict
from datetime import date

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from scheduling.domain import (
    Capacity,
    EventTemplate,
    EventType,
    RecurrenceRule,
    RecurrenceType,
    Role,
    SlotTemplate,
)
from scheduling.domain.errors import (
    ConflictError,
    DomainError,
    ErrorCode,
    NotFoundError,
    PartialCascadeFailure,
    SmsDeliveryError,
    ValidationError,
)
from scheduling.handlers.serializers import (
    AssignmentCreateSerializer,
    AssignmentSerializer,
    EventCreateSerializer,
    EventSerializer,
    EventUpdateSerializer,
    ManualReminderSerializer,
    PublicEventSerializer,
    SlotCreateSerializer,
    SlotSerializer,
    SlotUpdateSerializer,
    UserCreateSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from scheduling.services.assignment_service import AssignmentService
from scheduling.services.event_service import EventService
from scheduling.services.reminder_service import ReminderService
from scheduling.services.sms_client import SmsClient
from scheduling.services.user_service import UserService
from scheduling.stores.django_store import DjangoSchedulingStore

logger = logging.getLogger(__name__)


def _error(code: str, message: str, http_status: int, **extra) -> Response:
    return Response({"code": code, "message": message, **extra}, status=http_status)


def error_response(exc: DomainError) -> Response:
    """Map a domain error to its HTTP response."""
    if isinstance(exc, PartialCascadeFailure):
        return _error(
            exc.code.value,
            exc.message,
            status.HTTP_207_MULTI_STATUS,
            event_id=exc.event_id,
            succeeded=exc.succeeded,
            failed=sorted(exc.failed),
        )
    if isinstance(exc, ValidationError):
        return _error(exc.code.value, exc.message, status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, NotFoundError):
        return _error(exc.code.value, exc.message, status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ConflictError):
        return _error(exc.code.value, exc.message, status.HTTP_409_CONFLICT)
    if isinstance(exc, SmsDeliveryError):
        return _error(exc.code.value, exc.message, status.HTTP_502_BAD_GATEWAY)
    logger.error("Unhandled domain error: %s", exc)
    return _error(
        ErrorCode.STORAGE_ERROR.value,
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def invalid_input(errors: dict) -> Response:
    field = next(iter(errors), None)
    return _error(
        ErrorCode.VALIDATION_ERROR.value,
        f"Invalid value for {field}" if field else "Invalid request",
        status.HTTP_400_BAD_REQUEST,
        fields=sorted(errors),
    )


def _parse_date(value: str | None, name: str) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid date for {name}", field=name) from exc


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def _event_type(value: str | None) -> EventType | None:
    if not value:
        return None
    try:
        return EventType(value)
    except ValueError as exc:
        raise ValidationError("Invalid event type", field="type") from exc


class SchedulingView(APIView):
    """Base view wiring the services to the Django store."""

    def initial(self, request: Request, *args, **kwargs) -> None:
        super().initial(request, *args, **kwargs)
        store = DjangoSchedulingStore()
        self.store = store
        self.events = EventService(store)
        self.assignments = AssignmentService(store)
        self.users = UserService(store)

    def handle_exception(self, exc: Exception) -> Response:
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)


# ── Events ──


class EventListView(SchedulingView):
    """Handler for GET/POST /api/events"""

    def get(self, request: Request) -> Response:
        events = self.events.list_events(
            start_date=_parse_date(request.query_params.get("start_date"), "start_date"),
            end_date=_parse_date(request.query_params.get("end_date"), "end_date"),
            event_type=_event_type(request.query_params.get("type")),
        )
        return Response({"events": EventSerializer(events, many=True).data})

    def post(self, request: Request) -> Response:
        serializer = EventCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        data = serializer.validated_data

        template = EventTemplate(
            title=data["title"],
            event_type=EventType(data["event_type"]),
            event_date=data["event_date"],
            start_time=data["start_time"],
            description=data.get("description") or None,
            end_time=data.get("end_time"),
            location=data.get("location") or None,
        )
        rule = RecurrenceRule(
            type=RecurrenceType(data["recurrence_type"]),
            end_date=data.get("recurrence_end_date"),
        )
        slots = [
            SlotTemplate(name=s["name"], capacity=Capacity(s["capacity"]), notes=s.get("notes"))
            for s in data["slots"]
        ]
        created_by = data.get("created_by")

        series = self.events.create_event(
            template, rule, slots, created_by=str(created_by) if created_by else None
        )
        return Response(
            {
                "event": EventSerializer(series.parent).data,
                "instances_created": series.total_created,
            },
            status=status.HTTP_201_CREATED,
        )


class EventDetailView(SchedulingView):
    """Handler for GET/PUT/DELETE /api/events/{event_id}"""

    def get(self, request: Request, event_id: str) -> Response:
        series = self.events.get_series(event_id)
        return Response(
            {
                "event": EventSerializer(series.parent).data,
                "instances": EventSerializer(series.children, many=True).data,
            }
        )

    def put(self, request: Request, event_id: str) -> Response:
        serializer = EventUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        fields = dict(serializer.validated_data)
        apply_to_future = fields.pop("update_future_instances", False)
        if "event_type" in fields:
            fields["event_type"] = EventType(fields["event_type"])

        result = self.events.update_event(event_id, fields, apply_to_future=apply_to_future)
        return Response(
            {
                "event": EventSerializer(result.event).data,
                "instances_updated": len(result.updated_children),
            }
        )

    def delete(self, request: Request, event_id: str) -> Response:
        result = self.events.delete_event(
            event_id,
            delete_future_instances=_parse_bool(
                request.query_params.get("delete_future_instances")
            ),
        )
        return Response(
            {
                "events_deleted": len(result.deleted_events),
                "slots_deleted": result.deleted_slots,
                "assignments_deleted": result.deleted_assignments,
            }
        )


# ── Slots ──


class SlotListView(SchedulingView):
    """Handler for POST /api/slots"""

    def post(self, request: Request) -> Response:
        serializer = SlotCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        data = serializer.validated_data
        slot = self.events.add_slot(
            data["event_id"], data["name"], data["capacity"], data.get("notes")
        )
        return Response({"slot": SlotSerializer(slot).data}, status=status.HTTP_201_CREATED)


class SlotDetailView(SchedulingView):
    """Handler for PUT/DELETE /api/slots/{slot_id}"""

    def put(self, request: Request, slot_id: str) -> Response:
        serializer = SlotUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        slot = self.events.update_slot(slot_id, dict(serializer.validated_data))
        return Response({"slot": SlotSerializer(slot).data})

    def delete(self, request: Request, slot_id: str) -> Response:
        removed = self.events.delete_slot(slot_id)
        return Response({"assignments_deleted": removed})


# ── Assignments ──


class AssignmentListView(SchedulingView):
    """Handler for GET/POST /api/assignments"""

    def get(self, request: Request) -> Response:
        params = request.query_params
        details = self.assignments.list_assignments(
            user_id=params.get("user_id") or None,
            event_id=params.get("event_id") or None,
            start_date=_parse_date(params.get("start_date"), "start_date"),
            end_date=_parse_date(params.get("end_date"), "end_date"),
        )
        return Response({"assignments": AssignmentSerializer(details, many=True).data})

    def post(self, request: Request) -> Response:
        serializer = AssignmentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        data = serializer.validated_data
        result = self.assignments.assign(
            data["slot_id"],
            data["user_id"],
            notes=data.get("notes") or None,
            created_by=data.get("created_by") or None,
        )
        return Response(
            {
                "assignment": AssignmentSerializer(result.assignment).data,
                "warnings": list(result.warnings),
            },
            status=status.HTTP_201_CREATED,
        )


class AssignmentDetailView(SchedulingView):
    """Handler for DELETE /api/assignments/{assignment_id}"""

    def delete(self, request: Request, assignment_id: str) -> Response:
        self.assignments.unassign(assignment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ── Reminders ──


class ReminderSendView(SchedulingView):
    """Handler for POST /api/reminders/send, called by the external cron."""

    def post(self, request: Request) -> Response:
        secret = settings.SCHEDULING["CRON_SECRET"]
        if secret:
            header = request.headers.get("Authorization", "")
            if not hmac.compare_digest(header.encode(), f"Bearer {secret}".encode()):
                return _error("UNAUTHORIZED", "Unauthorized", status.HTTP_401_UNAUTHORIZED)

        result = ReminderService(self.store, SmsClient()).send_due_reminders()
        return Response(
            {
                "sent": result.sent,
                "failed": result.failed,
                "skipped": result.skipped,
                "reminder_days": list(result.reminder_days),
                "by_day": {
                    str(days): {"sent": s.sent, "failed": s.failed, "skipped": s.skipped}
                    for days, s in result.by_day.items()
                },
            }
        )


class ManualReminderView(SchedulingView):
    """Handler for POST /api/reminders/manual"""

    def post(self, request: Request) -> Response:
        serializer = ManualReminderSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        data = serializer.validated_data
        detail = ReminderService(self.store, SmsClient()).send_manual_reminder(
            data["assignment_id"], data.get("custom_message")
        )
        return Response({"assignment": AssignmentSerializer(detail).data})


# ── Public schedule ──


class PublicScheduleView(SchedulingView):
    """Handler for GET /api/public/schedule. Shows volunteer names only."""

    def get(self, request: Request) -> Response:
        today = timezone.localdate()
        events = self.events.list_upcoming(
            today, limit=settings.SCHEDULING["PUBLIC_SCHEDULE_LIMIT"]
        )
        assignees: dict[str, list[str]] = defaultdict(list)
        if events:
            last = max(e.event_date for e in events)
            for detail in self.assignments.list_assignments(start_date=today, end_date=last):
                assignees[str(detail.slot.id)].append(detail.user.name)

        data = PublicEventSerializer(
            events, many=True, context={"assignees": assignees}
        ).data
        return Response({"events": data})


# ── Users ──


class UserListView(SchedulingView):
    """Handler for GET/POST /api/users"""

    def get(self, request: Request) -> Response:
        role = request.query_params.get("role")
        try:
            role_filter = Role(role) if role else None
        except ValueError as exc:
            raise ValidationError("Invalid role", field="role") from exc
        users = self.users.list_users(role_filter)
        return Response({"users": UserSerializer(users, many=True).data})

    def post(self, request: Request) -> Response:
        serializer = UserCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        data = serializer.validated_data
        user = self.users.register_user(
            data["name"], data["phone"], Role(data["role"]), data.get("email") or None
        )
        return Response({"user": UserSerializer(user).data}, status=status.HTTP_201_CREATED)


class UserDetailView(SchedulingView):
    """Handler for GET/PUT/DELETE /api/users/{user_id}

    DELETE deactivates; the user and their assignment history stay.
    """

    def get(self, request: Request, user_id: str) -> Response:
        user = self.users.get_user(user_id)
        assignments = self.assignments.list_assignments(user_id=user_id)
        return Response(
            {
                "user": UserSerializer(user).data,
                "assignments": AssignmentSerializer(assignments, many=True).data,
            }
        )

    def put(self, request: Request, user_id: str) -> Response:
        serializer = UserUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        user = self.users.update_user(user_id, dict(serializer.validated_data))
        return Response({"user": UserSerializer(user).data})

    def delete(self, request: Request, user_id: str) -> Response:
        user = self.users.deactivate_user(user_id)
        return Response({"user": UserSerializer(user).data})
