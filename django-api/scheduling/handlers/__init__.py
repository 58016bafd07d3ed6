from scheduling.handlers.views import (
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

__all__ = [
    "AssignmentDetailView",
    "AssignmentListView",
    "EventDetailView",
    "EventListView",
    "ManualReminderView",
    "PublicScheduleView",
    "ReminderSendView",
    "SlotDetailView",
    "SlotListView",
    "UserDetailView",
    "UserListView",
]
