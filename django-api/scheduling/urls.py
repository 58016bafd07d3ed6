from django.urls import path

from scheduling.handlers import (
    AssignmentDetailView,
    AssignmentListView,
    EventDetailView,
    EventListView,
    ManualReminderView,
    PublicScheduleView,
    ReminderSendView,
    SlotDetailView,
    SlotListView,
    UserDetailView,
    UserListView,
)

urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path("slots", SlotListView.as_view(), name="slot-list"),
    path("slots/<str:slot_id>", SlotDetailView.as_view(), name="slot-detail"),
    path("assignments", AssignmentListView.as_view(), name="assignment-list"),
    path(
        "assignments/<str:assignment_id>",
        AssignmentDetailView.as_view(),
        name="assignment-detail",
    ),
    path("reminders/send", ReminderSendView.as_view(), name="reminder-send"),
    path("reminders/manual", ManualReminderView.as_view(), name="reminder-manual"),
    path("public/schedule", PublicScheduleView.as_view(), name="public-schedule"),
    path("users", UserListView.as_view(), name="user-list"),
    path("users/<str:user_id>", UserDetailView.as_view(), name="user-detail"),
]
