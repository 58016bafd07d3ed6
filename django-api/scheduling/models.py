"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models


class User(models.Model):
    """Persistence model for admins and peer ministers."""

    class Role(models.TextChoices):
        SUPER_ADMIN = "super_admin"
        ADMIN = "admin"
        PEER_MINISTER = "peer_minister"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(max_length=254, unique=True, blank=True, null=True)
    role = models.CharField(
        max_length=20, choices=Role.choices, default=Role.PEER_MINISTER
    )
    is_active = models.BooleanField(default=True)
    notifications_enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Event(models.Model):
    """Persistence model for events and their generated instances."""

    class EventType(models.TextChoices):
        MASS = "mass"
        CLOW = "clow"
        VOLUNTEER = "volunteer"
        MINISTRY = "ministry"
        OTHER = "other"

    class RecurrenceType(models.TextChoices):
        NONE = "none"
        DAILY = "daily"
        WEEKLY = "weekly"
        BIWEEKLY = "biweekly"
        MONTHLY = "monthly"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    event_type = models.CharField(
        max_length=20, choices=EventType.choices, default=EventType.OTHER
    )
    event_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField(blank=True, null=True)
    location = models.CharField(max_length=255, blank=True, null=True)
    recurrence_type = models.CharField(
        max_length=10, choices=RecurrenceType.choices, default=RecurrenceType.NONE
    )
    recurrence_end_date = models.DateField(blank=True, null=True)
    parent_event = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        related_name="child_events",
        blank=True,
        null=True,
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        related_name="created_events",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "events"
        ordering = ["-event_date", "start_time"]
        indexes = [
            models.Index(fields=["event_date", "start_time"], name="ix_event_date_start"),
            models.Index(fields=["parent_event"], name="ix_event_parent"),
        ]

    def __str__(self) -> str:
        return f"{self.title} - {self.event_date}"


class Slot(models.Model):
    """Persistence model for staffing slots within an event."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="slots")
    name = models.CharField(max_length=100)
    capacity = models.PositiveIntegerField(default=1)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "slots"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(capacity__gte=1), name="ck_slot_capacity_positive"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.capacity})"


class Assignment(models.Model):
    """Persistence model linking one volunteer to one slot."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slot = models.ForeignKey(Slot, on_delete=models.CASCADE, related_name="assignments")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="assignments")
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        related_name="created_assignments",
        blank=True,
        null=True,
    )
    # Sorted list of day-offsets already reminded for this assignment.
    reminders_sent = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "assignments"
        constraints = [
            models.UniqueConstraint(
                fields=["slot", "user"], name="uq_assignment_slot_user"
            ),
        ]
        indexes = [
            models.Index(fields=["user"], name="ix_assignment_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} -> {self.slot_id}"


class SmsLog(models.Model):
    """Persistence model for every outbound SMS attempt."""

    class Status(models.TextChoices):
        SENT = "sent"
        FAILED = "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User, on_delete=models.SET_NULL, related_name="sms_logs", blank=True, null=True
    )
    phone = models.CharField(max_length=20)
    message_type = models.CharField(max_length=20)
    message_body = models.TextField()
    provider_sid = models.CharField(max_length=64, blank=True, null=True)
    status = models.CharField(max_length=10, choices=Status.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sms_log"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.message_type} to {self.phone}: {self.status}"
