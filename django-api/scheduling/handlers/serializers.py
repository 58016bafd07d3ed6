"""Serializers for request validation and for rendering domain models.

Input serializers check wire format only (types, required keys, choices).
Business rules live in the services. Output serializers read straight off
the frozen domain dataclasses.
"""

from rest_framework import serializers

from scheduling.domain import EventType, RecurrenceType, Role

DATE_FORMATS = ["%Y-%m-%d"]
TIME_FORMATS = ["%H:%M", "%H:%M:%S"]

EVENT_TYPE_CHOICES = [t.value for t in EventType]
RECURRENCE_CHOICES = [r.value for r in RecurrenceType]
ROLE_CHOICES = [r.value for r in Role]


# ── Input ──


class SlotInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    capacity = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class EventCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    event_type = serializers.ChoiceField(choices=EVENT_TYPE_CHOICES)
    event_date = serializers.DateField(input_formats=DATE_FORMATS)
    start_time = serializers.TimeField(input_formats=TIME_FORMATS)
    end_time = serializers.TimeField(input_formats=TIME_FORMATS, required=False, allow_null=True)
    location = serializers.CharField(
        max_length=200, required=False, allow_null=True, allow_blank=True
    )
    recurrence_type = serializers.ChoiceField(choices=RECURRENCE_CHOICES, default="none")
    recurrence_end_date = serializers.DateField(
        input_formats=DATE_FORMATS, required=False, allow_null=True
    )
    slots = SlotInputSerializer(many=True, required=False, default=list)
    created_by = serializers.UUIDField(required=False, allow_null=True)


class EventUpdateSerializer(serializers.Serializer):
    """Partial update. Only the keys present in the request are applied."""

    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    event_type = serializers.ChoiceField(choices=EVENT_TYPE_CHOICES, required=False)
    event_date = serializers.DateField(input_formats=DATE_FORMATS, required=False)
    start_time = serializers.TimeField(input_formats=TIME_FORMATS, required=False)
    end_time = serializers.TimeField(input_formats=TIME_FORMATS, required=False, allow_null=True)
    location = serializers.CharField(
        max_length=200, required=False, allow_null=True, allow_blank=True
    )
    update_future_instances = serializers.BooleanField(required=False, default=False)


class SlotCreateSerializer(SlotInputSerializer):
    event_id = serializers.CharField()


class SlotUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    capacity = serializers.IntegerField(min_value=1, required=False)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class AssignmentCreateSerializer(serializers.Serializer):
    slot_id = serializers.CharField()
    user_id = serializers.CharField()
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    created_by = serializers.CharField(required=False, allow_null=True)


class ManualReminderSerializer(serializers.Serializer):
    assignment_id = serializers.CharField()
    custom_message = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, max_length=1600
    )


class UserCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=32)
    role = serializers.ChoiceField(choices=ROLE_CHOICES, default=Role.PEER_MINISTER.value)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)


class UserUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    phone = serializers.CharField(max_length=32, required=False)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    notifications_enabled = serializers.BooleanField(required=False)


# ── Output ──


class UserSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    phone = serializers.CharField()
    email = serializers.CharField(allow_null=True)
    role = serializers.CharField(source="role.value")
    is_active = serializers.BooleanField()
    notifications_enabled = serializers.BooleanField()


class SlotSerializer(serializers.Serializer):
    id = serializers.CharField()
    event_id = serializers.CharField()
    name = serializers.CharField()
    capacity = serializers.IntegerField(source="capacity.value")
    notes = serializers.CharField(allow_null=True)
    assigned_count = serializers.IntegerField()
    open_spots = serializers.IntegerField()
    is_full = serializers.BooleanField()


class EventSerializer(serializers.Serializer):
    id = serializers.CharField()
    title = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    event_type = serializers.CharField(source="event_type.value")
    event_date = serializers.DateField()
    start_time = serializers.TimeField(format="%H:%M")
    end_time = serializers.TimeField(format="%H:%M", allow_null=True)
    location = serializers.CharField(allow_null=True)
    recurrence_type = serializers.CharField(source="recurrence_type.value")
    recurrence_end_date = serializers.DateField(allow_null=True)
    parent_event_id = serializers.CharField(allow_null=True)
    slots = SlotSerializer(many=True)


class AssignmentSerializer(serializers.Serializer):
    id = serializers.CharField(source="assignment.id")
    notes = serializers.CharField(source="assignment.notes", allow_null=True)
    reminders_sent = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField(source="assignment.created_at")
    user = UserSerializer()
    slot = SlotSerializer()
    event = EventSerializer()

    def get_reminders_sent(self, detail) -> list[int]:
        return sorted(detail.assignment.reminders_sent)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        # The event is rendered without its slot list here.
        data["event"].pop("slots", None)
        return data


class PublicSlotSerializer(serializers.Serializer):
    """Slot as shown on the public schedule: volunteer names only."""

    id = serializers.CharField()
    name = serializers.CharField()
    capacity = serializers.IntegerField(source="capacity.value")
    assigned_count = serializers.IntegerField()
    assignees = serializers.SerializerMethodField()

    def get_assignees(self, slot) -> list[str]:
        return self.context.get("assignees", {}).get(str(slot.id), [])


class PublicEventSerializer(serializers.Serializer):
    id = serializers.CharField()
    title = serializers.CharField()
    event_type = serializers.CharField(source="event_type.value")
    event_date = serializers.DateField()
    start_time = serializers.TimeField(format="%H:%M")
    end_time = serializers.TimeField(format="%H:%M", allow_null=True)
    location = serializers.CharField(allow_null=True)
    slots = PublicSlotSerializer(many=True)
