import json
from datetime import timedelta
from http import HTTPStatus

import pytest
from django.urls import reverse
from django.utils import timezone
from freezegun import freeze_time

from cercle.adapters.db.django.models import Event, EventRegistration
from cercle.gates.web.django.functions import LocalTransport
from cercle.inits import DependencyInjector
from tests.integration.factories import EventFactory, EventRegistrationFactory
from tests.integration.utils import assert_response, sent_emails


def _call(client, name, body=None, *, authorization=None, raw=None):
    headers = {"Authorization": authorization} if authorization else {}
    return client.post(
        reverse(f"functions:{name}"),
        data=raw if raw is not None else json.dumps(body or {}),
        content_type="application/json",
        headers=headers,
    )


class TestAuthentication:
    def test_missing_caller(self, client):
        response = _call(client, "get-users")

        assert_response(
            response, HTTPStatus.UNAUTHORIZED, json={"error": "Unauthorized"}
        )

    def test_malformed_header(self, client):
        response = _call(client, "get-users", authorization="Token abc")

        assert_response(
            response,
            HTTPStatus.UNAUTHORIZED,
            json={"error": "Missing authorization header"},
        )

    def test_expired_token(self, client, admin_member, bearer):
        response = _call(
            client, "get-users", authorization=bearer(admin_member, ttl=-60)
        )

        assert response.status_code == HTTPStatus.UNAUTHORIZED

    def test_forged_token(self, client):
        response = _call(client, "get-users", authorization="Bearer forged")

        assert response.status_code == HTTPStatus.UNAUTHORIZED

    def test_non_admin(self, client, active_user, bearer):
        response = _call(client, "get-users", authorization=bearer(active_user))

        assert_response(
            response, HTTPStatus.FORBIDDEN, json={"error": "Admin access required"}
        )

    def test_session_cookie(self, panel_client, admin_member):
        response = _call(panel_client, "get-users")

        data = response.json()
        assert data["success"]
        assert [u["pk"] for u in data["users"]] == [admin_member.pk]

    def test_get_is_not_allowed(self, client):
        response = client.get(reverse("functions:get-users"))

        assert response.status_code == HTTPStatus.METHOD_NOT_ALLOWED


class TestRequestBody:
    def test_invalid_json(self, client, admin_member, bearer):
        response = _call(
            client, "delete-user", authorization=bearer(admin_member), raw="{oops"
        )

        assert_response(
            response, HTTPStatus.BAD_REQUEST, json={"error": "Invalid JSON body"}
        )

    def test_json_list(self, client, admin_member, bearer):
        response = _call(
            client, "delete-user", authorization=bearer(admin_member), raw="[1, 2]"
        )

        assert response.json() == {"error": "Invalid JSON body"}

    def test_form_error(self, client, admin_member, bearer):
        response = _call(client, "delete-user", authorization=bearer(admin_member))

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={"error": "user_id: Ce champ est obligatoire."},
        )


class TestAdminFunctions:
    def test_invite_user(self, client, admin_member, bearer, http_mock):
        response = _call(
            client,
            "invite-user",
            {"email": "new@example.com", "role": "participant"},
            authorization=bearer(admin_member),
        )

        data = response.json()
        assert data["success"]
        assert data["invitation"]["email"] == "new@example.com"
        assert data["invitation"]["status"] == "pending"
        (email,) = sent_emails(http_mock)
        assert email["to"] == ["new@example.com"]

    def test_invite_user_delivery_failure_is_reported(
        self, client, admin_member, bearer, http_mock, settings
    ):
        settings.RESEND_API_KEY = ""

        response = _call(
            client,
            "invite-user",
            {"email": "new@example.com", "role": "admin"},
            authorization=bearer(admin_member),
        )

        data = response.json()
        assert data["success"]
        assert (data["sent"], data["failed"]) == (0, 1)
        assert not data["results"][0]["success"]

    def test_date_change(
        self, client, admin_member, active_user, event, bearer, http_mock
    ):
        EventRegistrationFactory(event=event, user=active_user)
        old_date = event.event_date
        new_date = old_date + timedelta(days=3)

        response = _call(
            client,
            "send-date-change-notification",
            {
                "event_id": event.pk,
                "new_date": new_date.isoformat(),
                "old_date": old_date.isoformat(),
            },
            authorization=bearer(admin_member),
        )

        data = response.json()
        assert data["registrations_cancelled"] == 1
        assert data["sent"] == 2
        assert Event.objects.get(pk=event.pk).event_date == new_date
        assert not EventRegistration.objects.filter(
            status=EventRegistration.Status.CONFIRMED
        ).exists()

    def test_reminder_to_specific_users(
        self, client, admin_member, active_user, event, bearer, http_mock
    ):
        response = _call(
            client,
            "send-event-reminder",
            {
                "custom_message": "À samedi",
                "event_id": event.pk,
                "recipient_type": "specific",
                "user_ids": [active_user.pk],
            },
            authorization=bearer(admin_member),
        )

        assert response.json()["sent"] == 1
        (email,) = sent_emails(http_mock)
        assert email["to"] == [active_user.email]
        assert email["subject"] == f"Rappel : {event.title}"

    @freeze_time("2026-03-14 12:00:00+01:00")
    def test_mark_completed_events(self, client, admin_member, bearer):
        yesterday = EventFactory(event_date=timezone.now() - timedelta(days=1))
        this_morning = EventFactory(event_date=timezone.now() - timedelta(hours=3))

        response = _call(
            client, "mark-completed-events", authorization=bearer(admin_member)
        )

        data = response.json()
        assert data["count"] == 1
        assert data["message"] == "1 event(s) marked as completed"
        assert Event.objects.get(pk=yesterday.pk).status == Event.Status.COMPLETED
        assert Event.objects.get(pk=this_morning.pk).status == Event.Status.PUBLISHED

    def test_mark_completed_events_requires_admin(self, client, active_user, bearer):
        response = _call(
            client, "mark-completed-events", authorization=bearer(active_user)
        )

        assert response.status_code == HTTPStatus.FORBIDDEN


class TestContactFunction:
    def test_without_caller(self, client, http_mock):
        response = _call(
            client,
            "send-contact-email",
            {"message": "Bonjour", "reason": "general_remark"},
        )

        data = response.json()
        assert data["success"]
        assert data["sent"] == 1
        (email,) = sent_emails(http_mock)
        assert email["to"] == ["contact@cercle.test"]
        assert "reply_to" not in email

    @pytest.mark.parametrize("message", ["", "   "])
    def test_blank_message(self, client, message):
        response = _call(
            client, "send-contact-email", {"message": message, "reason": "other"}
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST


class TestLocalTransport:
    @pytest.fixture(name="transport")
    @staticmethod
    def transport_fixture():
        return LocalTransport(DependencyInjector().functions)

    @staticmethod
    def test_runs_function(transport, admin_member, bearer):
        status, payload = transport("get-users", {}, bearer(admin_member))

        assert status == HTTPStatus.OK
        assert payload["success"]
        assert [u["pk"] for u in payload["users"]] == [admin_member.pk]

    @staticmethod
    def test_expired_token(transport, admin_member, bearer):
        status, _ = transport("get-users", {}, bearer(admin_member, ttl=-60))

        assert status == HTTPStatus.UNAUTHORIZED

    @staticmethod
    def test_role_is_checked(transport, active_user, bearer):
        status, payload = transport("get-users", {}, bearer(active_user))

        assert status == HTTPStatus.FORBIDDEN
        assert payload == {"error": "Admin access required"}

    @staticmethod
    def test_form_error(transport, admin_member, bearer):
        status, payload = transport("delete-user", {}, bearer(admin_member))

        assert status == HTTPStatus.BAD_REQUEST
        assert payload["error"].startswith("user_id: ")

    @staticmethod
    def test_unknown_function(transport, admin_member, bearer):
        status, _ = transport("drop-tables", {}, bearer(admin_member))

        assert status == HTTPStatus.NOT_FOUND
