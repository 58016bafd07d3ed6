from django.contrib import admin

from scheduling.models import Assignment, Event, Slot, SmsLog, User


class SlotInline(admin.TabularInline):
    model = Slot
    extra = 1


class AssignmentInline(admin.TabularInline):
    model = Assignment
    extra = 0
    fk_name = "slot"
    raw_id_fields = ["user", "created_by"]


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ["name", "phone", "email", "role", "is_active"]
    list_filter = ["role", "is_active"]
    search_fields = ["name", "phone", "email"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["title", "event_type", "event_date", "start_time", "recurrence_type"]
    list_filter = ["event_type", "recurrence_type"]
    search_fields = ["title", "location"]
    raw_id_fields = ["parent_event", "created_by"]
    inlines = [SlotInline]


@admin.register(Slot)
class SlotAdmin(admin.ModelAdmin):
    list_display = ["name", "event", "capacity"]
    list_filter = ["event__event_type"]
    inlines = [AssignmentInline]


@admin.register(SmsLog)
class SmsLogAdmin(admin.ModelAdmin):
    list_display = ["phone", "message_type", "status", "created_at"]
    list_filter = ["status", "message_type"]
