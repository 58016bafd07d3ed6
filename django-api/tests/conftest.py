"""Pytest configuration and shared fixtures."""

from datetime import date, time

import pytest
from rest_framework.test import APIClient

from scheduling.domain import (
    Capacity,
    EventTemplate,
    EventType,
    RecurrenceRule,
    RecurrenceType,
    Role,
    SlotTemplate,
)
from scheduling.services.assignment_service import AssignmentService
from scheduling.services.event_service import EventService
from scheduling.services.user_service import UserService
from scheduling.stores.django_store import DjangoSchedulingStore


class FakeSmsClient:
    """Records outgoing messages instead of calling the provider."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.sent: list[tuple[str, str]] = []

    def send(self, phone: str, message: str) -> str | None:
        if phone in self.fail_for:
            return None
        self.sent.append((phone, message))
        return f"SM{len(self.sent):04d}"


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def store() -> DjangoSchedulingStore:
    return DjangoSchedulingStore()


@pytest.fixture
def event_service(store) -> EventService:
    return EventService(store)


@pytest.fixture
def assignment_service(store) -> AssignmentService:
    return AssignmentService(store)


@pytest.fixture
def user_service(store) -> UserService:
    return UserService(store)


@pytest.fixture
def sms_client() -> FakeSmsClient:
    return FakeSmsClient()


@pytest.fixture
def failing_sms_client():
    """Build a client whose sends to the given phones fail."""

    def _make(*phones: str) -> FakeSmsClient:
        return FakeSmsClient(fail_for=set(phones))

    return _make


@pytest.fixture
def make_user(user_service):
    counter = iter(range(1000))

    def _make(name: str = "Maria Lopez", phone: str | None = None, **kwargs):
        phone = phone or f"555010{next(counter):04d}"
        return user_service.register_user(name, phone, kwargs.pop("role", Role.PEER_MINISTER), **kwargs)

    return _make


@pytest.fixture
def make_series(event_service):
    def _make(
        title: str = "Sunday Mass",
        start: date = date(2025, 1, 5),
        recurrence: RecurrenceType = RecurrenceType.NONE,
        end: date | None = None,
        start_time: time = time(9, 0),
        slots: list[SlotTemplate] | None = None,
    ):
        template = EventTemplate(
            title=title,
            event_type=EventType.MASS,
            event_date=start,
            start_time=start_time,
            location="Main Church",
        )
        if slots is None:
            slots = [
                SlotTemplate(name="Lector", capacity=Capacity(2)),
                SlotTemplate(name="Usher", capacity=Capacity(1)),
            ]
        return event_service.create_event(template, RecurrenceRule(recurrence, end), slots)

    return _make
