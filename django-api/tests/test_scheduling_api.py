"""Integration tests for the scheduling HTTP API.

Run with: pytest tests/test_scheduling_api.py -v
"""

from datetime import date, timedelta
from uuid import uuid4

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from scheduling import models as orm
from scheduling.domain import RecurrenceType, Role
from scheduling.domain.errors import StorageError
from scheduling.stores.django_store import DjangoSchedulingStore


def _event_payload(**overrides):
    payload = {
        "title": "Sunday Mass",
        "event_type": "mass",
        "event_date": "2025-01-01",
        "start_time": "09:00",
        "location": "Main Church",
        "slots": [{"name": "Lector", "capacity": 2}, {"name": "Usher"}],
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestEventEndpoints:
    """Tests for /api/events"""

    def test_create_recurring_event(self, api_client: APIClient):
        response = api_client.post(
            "/api/events",
            _event_payload(recurrence_type="weekly", recurrence_end_date="2025-01-22"),
            format="json",
        )
        assert response.status_code == 201
        body = response.json()
        assert body["instances_created"] == 4
        assert body["event"]["recurrence_type"] == "weekly"
        assert body["event"]["start_time"] == "09:00"
        assert sorted(s["capacity"] for s in body["event"]["slots"]) == [1, 2]
        assert orm.Event.objects.count() == 4

    def test_create_recurring_without_end_date(self, api_client: APIClient):
        response = api_client.post(
            "/api/events", _event_payload(recurrence_type="daily"), format="json"
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_create_rejects_bad_time_format(self, api_client: APIClient):
        response = api_client.post(
            "/api/events", _event_payload(start_time="9am"), format="json"
        )
        assert response.status_code == 400
        assert "start_time" in response.json()["fields"]

    def test_get_event_with_instances(self, api_client: APIClient, make_series):
        series = make_series(
            start=date(2025, 1, 1), recurrence=RecurrenceType.DAILY, end=date(2025, 1, 3)
        )
        response = api_client.get(f"/api/events/{series.parent.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["event"]["id"] == str(series.parent.id)
        assert [i["event_date"] for i in body["instances"]] == ["2025-01-02", "2025-01-03"]
        assert all(i["parent_event_id"] == str(series.parent.id) for i in body["instances"])

    def test_get_event_not_found(self, api_client: APIClient):
        response = api_client.get(f"/api/events/{uuid4()}")
        assert response.status_code == 404
        assert response.json() == {"code": "NOT_FOUND", "message": "Event not found"}

    def test_get_event_invalid_id_format(self, api_client: APIClient):
        response = api_client.get("/api/events/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"

    def test_list_events_by_range(self, api_client: APIClient, make_series):
        make_series(start=date(2025, 1, 5))
        make_series(start=date(2025, 2, 5))
        response = api_client.get("/api/events?start_date=2025-02-01&end_date=2025-02-28")
        assert response.status_code == 200
        assert [e["event_date"] for e in response.json()["events"]] == ["2025-02-05"]

    def test_update_cascades_to_future_instances(self, api_client: APIClient, make_series, store):
        series = make_series(
            start=date(2025, 1, 1), recurrence=RecurrenceType.DAILY, end=date(2025, 1, 3)
        )
        response = api_client.put(
            f"/api/events/{series.parent.id}",
            {"title": "Vigil", "update_future_instances": True},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["instances_updated"] == 2
        assert all(store.get_event(c.id).title == "Vigil" for c in series.children)

    def test_partial_cascade_failure_returns_207(
        self, api_client: APIClient, make_series, monkeypatch
    ):
        series = make_series(
            start=date(2025, 1, 1), recurrence=RecurrenceType.DAILY, end=date(2025, 1, 3)
        )
        broken = series.children[0].id
        original = DjangoSchedulingStore.update_event

        def flaky_update(self, event_id, fields):
            if event_id == broken:
                raise StorageError()
            return original(self, event_id, fields)

        monkeypatch.setattr(DjangoSchedulingStore, "update_event", flaky_update)
        response = api_client.put(
            f"/api/events/{series.parent.id}",
            {"title": "Vigil", "update_future_instances": True},
            format="json",
        )

        assert response.status_code == 207
        body = response.json()
        assert body["code"] == "PARTIAL_CASCADE_FAILURE"
        assert body["failed"] == [str(broken)]
        assert body["succeeded"] == [str(series.children[1].id)]

    def test_delete_series(self, api_client: APIClient, make_series):
        series = make_series(
            start=date(2025, 1, 1), recurrence=RecurrenceType.DAILY, end=date(2025, 1, 3)
        )
        response = api_client.delete(
            f"/api/events/{series.parent.id}?delete_future_instances=true"
        )
        assert response.status_code == 200
        assert response.json() == {
            "events_deleted": 3,
            "slots_deleted": 6,
            "assignments_deleted": 0,
        }
        assert orm.Event.objects.count() == 0


@pytest.mark.django_db
class TestSlotEndpoints:
    def test_add_update_delete_slot(self, api_client: APIClient, make_series):
        event = make_series().parent

        created = api_client.post(
            "/api/slots", {"event_id": str(event.id), "name": "Cantor"}, format="json"
        )
        assert created.status_code == 201
        slot_id = created.json()["slot"]["id"]

        updated = api_client.put(f"/api/slots/{slot_id}", {"capacity": 3}, format="json")
        assert updated.status_code == 200
        assert updated.json()["slot"]["capacity"] == 3

        deleted = api_client.delete(f"/api/slots/{slot_id}")
        assert deleted.status_code == 200
        assert orm.Slot.objects.filter(pk=slot_id).count() == 0

    def test_add_slot_to_missing_event(self, api_client: APIClient):
        response = api_client.post(
            "/api/slots", {"event_id": str(uuid4()), "name": "Cantor"}, format="json"
        )
        assert response.status_code == 404


@pytest.mark.django_db
class TestAssignmentEndpoints:
    def test_assign_then_conflict(self, api_client: APIClient, make_series, make_user):
        slot = make_series().parent.slots[0]
        user = make_user()
        payload = {"slot_id": str(slot.id), "user_id": str(user.id)}

        first = api_client.post("/api/assignments", payload, format="json")
        second = api_client.post("/api/assignments", payload, format="json")

        assert first.status_code == 201
        assert first.json()["warnings"] == []
        assert first.json()["assignment"]["user"]["name"] == user.name
        assert second.status_code == 409
        assert second.json()["code"] == "ALREADY_ASSIGNED"

    def test_double_booking_warning(self, api_client: APIClient, make_series, make_user):
        first = make_series(title="Mass A")
        second = make_series(title="Mass B")
        user = make_user()

        api_client.post(
            "/api/assignments",
            {"slot_id": str(first.parent.slots[0].id), "user_id": str(user.id)},
            format="json",
        )
        response = api_client.post(
            "/api/assignments",
            {"slot_id": str(second.parent.slots[0].id), "user_id": str(user.id)},
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["warnings"] == ["User may be double-booked at this time"]

    def test_list_and_delete(self, api_client: APIClient, make_series, make_user, assignment_service):
        slot = make_series().parent.slots[0]
        user = make_user()
        result = assignment_service.assign(str(slot.id), str(user.id))

        listed = api_client.get(f"/api/assignments?user_id={user.id}")
        assert listed.status_code == 200
        assert [a["id"] for a in listed.json()["assignments"]] == [
            str(result.assignment.assignment.id)
        ]

        deleted = api_client.delete(f"/api/assignments/{result.assignment.assignment.id}")
        assert deleted.status_code == 204
        missing = api_client.delete(f"/api/assignments/{result.assignment.assignment.id}")
        assert missing.status_code == 404


@pytest.mark.django_db
class TestReminderEndpoints:
    def test_cron_secret_required(self, api_client: APIClient, settings):
        settings.SCHEDULING = {**settings.SCHEDULING, "CRON_SECRET": "s3cret"}
        response = api_client.post("/api/reminders/send")
        assert response.status_code == 401

    def test_sweep_with_secret(self, api_client: APIClient, settings):
        settings.SCHEDULING = {
            **settings.SCHEDULING,
            "CRON_SECRET": "s3cret",
            "SMS_DRY_RUN": True,
            "REMINDER_DAYS": [1, 7],
        }
        response = api_client.post(
            "/api/reminders/send", HTTP_AUTHORIZATION="Bearer s3cret"
        )
        assert response.status_code == 200
        body = response.json()
        assert body["reminder_days"] == [1, 7]
        assert body["sent"] == 0
        assert set(body["by_day"]) == {"1", "7"}

    def test_sweep_with_misconfigured_days(self, api_client: APIClient, settings):
        settings.SCHEDULING = {**settings.SCHEDULING, "CRON_SECRET": "", "REMINDER_DAYS": [0]}
        response = api_client.post("/api/reminders/send")
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert orm.SmsLog.objects.count() == 0

    def test_manual_reminder_delivery_failure(
        self, api_client: APIClient, settings, make_series, make_user, assignment_service
    ):
        settings.SCHEDULING = {
            **settings.SCHEDULING,
            "TWILIO_ACCOUNT_SID": "",
            "SMS_DRY_RUN": False,
        }
        slot = make_series().parent.slots[0]
        result = assignment_service.assign(str(slot.id), str(make_user().id))

        response = api_client.post(
            "/api/reminders/manual",
            {"assignment_id": str(result.assignment.assignment.id)},
            format="json",
        )

        assert response.status_code == 502
        assert response.json()["code"] == "SMS_DELIVERY_FAILED"

    def test_manual_reminder_dry_run(
        self, api_client: APIClient, settings, make_series, make_user, assignment_service
    ):
        settings.SCHEDULING = {
            **settings.SCHEDULING,
            "TWILIO_ACCOUNT_SID": "",
            "SMS_DRY_RUN": True,
        }
        slot = make_series().parent.slots[0]
        result = assignment_service.assign(str(slot.id), str(make_user().id))

        response = api_client.post(
            "/api/reminders/manual",
            {"assignment_id": str(result.assignment.assignment.id), "custom_message": "Hi"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["assignment"]["reminders_sent"] == [-1]


@pytest.mark.django_db
class TestPublicSchedule:
    def test_upcoming_events_with_names_only(
        self, api_client: APIClient, make_series, make_user, assignment_service
    ):
        today = timezone.localdate()
        make_series(title="Last Week", start=today - timedelta(days=7))
        upcoming = make_series(title="Next Sunday", start=today + timedelta(days=3))
        slot = upcoming.parent.slots[0]
        user = make_user(name="Ana Ruiz")
        assignment_service.assign(str(slot.id), str(user.id))

        response = api_client.get("/api/public/schedule")

        assert response.status_code == 200
        events = response.json()["events"]
        assert [e["title"] for e in events] == ["Next Sunday"]
        (public_slot,) = [s for s in events[0]["slots"] if s["id"] == str(slot.id)]
        assert public_slot["assignees"] == ["Ana Ruiz"]
        assert public_slot["assigned_count"] == 1
        assert "phone" not in str(events)


@pytest.mark.django_db
class TestUserEndpoints:
    def test_register_and_list(self, api_client: APIClient):
        created = api_client.post(
            "/api/users", {"name": "Ana", "phone": "(555) 010-2000"}, format="json"
        )
        assert created.status_code == 201
        assert created.json()["user"]["phone"] == "+15550102000"

        duplicate = api_client.post(
            "/api/users", {"name": "Ana 2", "phone": "555-010-2000"}, format="json"
        )
        assert duplicate.status_code == 409

        listed = api_client.get("/api/users?role=peer_minister")
        assert [u["name"] for u in listed.json()["users"]] == ["Ana"]

    def test_admin_without_email(self, api_client: APIClient):
        response = api_client.post(
            "/api/users",
            {"name": "Fr. Tom", "phone": "5550103000", "role": "admin"},
            format="json",
        )
        assert response.status_code == 400

    def test_get_update_and_deactivate(
        self, api_client: APIClient, make_user, make_series, assignment_service
    ):
        user = make_user(name="Ana")
        assignment_service.assign(str(make_series().parent.slots[0].id), str(user.id))

        fetched = api_client.get(f"/api/users/{user.id}")
        assert fetched.status_code == 200
        assert fetched.json()["user"]["name"] == "Ana"
        assert len(fetched.json()["assignments"]) == 1

        updated = api_client.put(
            f"/api/users/{user.id}",
            {"phone": "(555) 010-9999", "notifications_enabled": False},
            format="json",
        )
        assert updated.status_code == 200
        assert updated.json()["user"]["phone"] == "+15550109999"
        assert updated.json()["user"]["notifications_enabled"] is False

        deactivated = api_client.delete(f"/api/users/{user.id}")
        assert deactivated.status_code == 200
        assert deactivated.json()["user"]["is_active"] is False
        assert orm.User.objects.filter(pk=user.id.value).exists()
        assert orm.Assignment.objects.filter(user_id=user.id.value).count() == 1

    def test_update_phone_conflict(self, api_client: APIClient, make_user):
        make_user(name="Ana", phone="5550102000")
        other = make_user(name="Ben", phone="5550103000")
        response = api_client.put(
            f"/api/users/{other.id}", {"phone": "555-010-2000"}, format="json"
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Phone number already in use"

    def test_update_rejects_bad_email(self, api_client: APIClient, make_user):
        user = make_user()
        response = api_client.put(
            f"/api/users/{user.id}", {"email": "not-an-email"}, format="json"
        )
        assert response.status_code == 400
        assert "email" in response.json()["fields"]

    def test_unknown_user(self, api_client: APIClient):
        assert api_client.get(f"/api/users/{uuid4()}").status_code == 404
        assert api_client.delete(f"/api/users/{uuid4()}").status_code == 404


@pytest.mark.django_db(transaction=True)
class TestUnknownCreator:
    """Rows are committed for real here, so foreign keys are checked."""

    def test_event_with_unknown_creator(self, api_client: APIClient):
        response = api_client.post(
            "/api/events", _event_payload(created_by=str(uuid4())), format="json"
        )
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
        assert orm.Event.objects.count() == 0

    def test_assignment_with_unknown_creator(self, api_client: APIClient, make_series, make_user):
        slot = make_series().parent.slots[0]
        user = make_user()
        response = api_client.post(
            "/api/assignments",
            {"slot_id": str(slot.id), "user_id": str(user.id), "created_by": str(uuid4())},
            format="json",
        )
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
        assert orm.Assignment.objects.count() == 0

    def test_assignment_with_known_creator(self, api_client: APIClient, make_series, make_user):
        slot = make_series().parent.slots[0]
        user = make_user()
        admin = make_user(name="Fr. Tom", role=Role.ADMIN, email="tom@example.org")
        response = api_client.post(
            "/api/assignments",
            {"slot_id": str(slot.id), "user_id": str(user.id), "created_by": str(admin.id)},
            format="json",
        )
        assert response.status_code == 201
        assert orm.Assignment.objects.get().created_by_id == admin.id.value
