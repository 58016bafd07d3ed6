"""Reminder service - SMS reminders for upcoming assignments.

The sweep is triggered from outside (a cron job hitting the reminders
endpoint). Each assignment remembers which day-offsets were already
notified, so running the sweep twice sends nothing new.
"""

import logging
from datetime import date, time

from django.conf import settings
from django.utils import timezone

from scheduling.domain import (
    MANUAL_REMINDER_OFFSET,
    AssignmentDetail,
)
from scheduling.domain.dates import add_days
from scheduling.domain.errors import SmsDeliveryError, ValidationError
from scheduling.domain.models import ReminderDayStats, ReminderSweepResult
from scheduling.services.assignment_service import AssignmentService
from scheduling.services.sms_client import SmsClient
from scheduling.stores.interfaces import SchedulingStore

logger = logging.getLogger(__name__)

MESSAGE_TYPE_REMINDER = "reminder"
PARISH_SIGNATURE = "Saint Helen Parish"

MIN_DAYS_AHEAD = 1
MAX_DAYS_AHEAD = 30
MIN_REMINDER_DAYS = 1
MAX_REMINDER_DAYS = 5


def _format_date(value: date) -> str:
    return f"{value:%A, %B} {value.day}"


def _format_time(value: time) -> str:
    hour = value.hour % 12 or 12
    return f"{hour}:{value:%M} {'PM' if value.hour >= 12 else 'AM'}"


def validate_reminder_days(days: list[int]) -> tuple[int, ...]:
    """Check the configured reminder offsets.

    Between one and five distinct whole days, each 1..30 ahead, which keeps
    them apart from the manual-reminder marker.

    Raises:
        ValidationError: If the list breaks any of those rules.
    """
    days = list(days)
    if not MIN_REMINDER_DAYS <= len(days) <= MAX_REMINDER_DAYS:
        raise ValidationError(
            f"Between {MIN_REMINDER_DAYS} and {MAX_REMINDER_DAYS} reminder days are required",
            field="reminder_days",
        )
    for value in days:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("Reminder days must be whole numbers", field="reminder_days")
        if not MIN_DAYS_AHEAD <= value <= MAX_DAYS_AHEAD:
            raise ValidationError(
                f"Reminder days must be between {MIN_DAYS_AHEAD} and {MAX_DAYS_AHEAD}",
                field="reminder_days",
            )
    if len(set(days)) != len(days):
        raise ValidationError("Duplicate reminder days are not allowed", field="reminder_days")
    return tuple(days)


def build_reminder_message(detail: AssignmentDetail) -> str:
    """Default reminder text for one assignment."""
    event = detail.event
    message = (
        f'Hi {detail.user.name}! Reminder: You\'re scheduled for "{detail.slot.name}" '
        f"at {event.title} on {_format_date(event.event_date)} "
        f"at {_format_time(event.start_time)}"
    )
    if event.location:
        message += f" at {event.location}"
    return f"{message}. Thank you for serving! - {PARISH_SIGNATURE}"


class ReminderService:
    """Service for sending scheduled and manual reminders."""

    def __init__(
        self,
        store: SchedulingStore,
        sms_client: SmsClient,
        reminder_days: list[int] | None = None,
    ) -> None:
        self._store = store
        self._sms = sms_client
        self._assignments = AssignmentService(store)
        if reminder_days is None:
            reminder_days = settings.SCHEDULING["REMINDER_DAYS"]
        self._reminder_days = validate_reminder_days(reminder_days)

    def send_due_reminders(self, today: date | None = None) -> ReminderSweepResult:
        """Send every reminder that is due today, once per assignment and offset.

        Users who are inactive, have opted out of notifications or have no
        phone are counted as skipped. A failed send is recorded and the
        sweep moves on; the offset stays unmarked so the next run retries.
        """
        today = today or timezone.localdate()
        result = ReminderSweepResult(reminder_days=self._reminder_days)

        for days_ahead in self._reminder_days:
            stats = result.by_day.setdefault(days_ahead, ReminderDayStats())
            target = add_days(today, days_ahead)
            for detail in self._store.list_assignments(start_date=target, end_date=target):
                if detail.assignment.reminder_sent(days_ahead):
                    continue
                user = detail.user
                if not (user.is_active and user.notifications_enabled and user.phone):
                    stats.skipped += 1
                    continue
                if self._deliver(detail, build_reminder_message(detail)):
                    self._assignments.mark_reminder_sent(str(detail.assignment.id), days_ahead)
                    stats.sent += 1
                else:
                    stats.failed += 1

        logger.info(
            "Reminder sweep finished: date=%s, days=%s, sent=%d, failed=%d, skipped=%d",
            today, list(self._reminder_days), result.sent, result.failed, result.skipped,
        )
        return result

    def send_manual_reminder(
        self, assignment_id: str, custom_message: str | None = None
    ) -> AssignmentDetail:
        """Send a reminder right now, outside the scheduled offsets.

        Raises:
            NotFoundError: If the assignment does not exist.
            ValidationError: If the volunteer has no phone number.
            SmsDeliveryError: If the provider did not accept the message.
        """
        detail = self._assignments.get_assignment(assignment_id)
        if not detail.user.phone:
            raise ValidationError("User has no phone number", field="phone")

        message = (custom_message or "").strip() or build_reminder_message(detail)
        if not self._deliver(detail, message):
            raise SmsDeliveryError()

        self._assignments.mark_reminder_sent(assignment_id, MANUAL_REMINDER_OFFSET)
        return self._assignments.get_assignment(assignment_id)

    def _deliver(self, detail: AssignmentDetail, message: str) -> bool:
        sid = self._sms.send(detail.user.phone, message)
        self._store.record_sms(
            user_id=detail.user.id,
            phone=detail.user.phone,
            message_type=MESSAGE_TYPE_REMINDER,
            message_body=message,
            provider_sid=sid,
        )
        if sid is None:
            logger.warning(
                "Reminder failed: assignment=%s, user=%s", detail.assignment.id, detail.user.id
            )
            return False
        logger.info("Reminder sent: assignment=%s, sid=%s", detail.assignment.id, sid)
        return True
