from datetime import timedelta
from http import HTTPStatus

from django.contrib import messages
from django.urls import reverse
from django.utils import timezone

from cercle.adapters.db.django.models import EventRegistration
from tests.integration.factories import (
    EventDocumentFactory,
    EventFactory,
    EventPresenterFactory,
    EventRegistrationFactory,
)
from tests.integration.utils import assert_response


class TestIndexPageView:
    URL = reverse("web:index")

    def test_anonymous_redirects_to_login(self, client):
        response = client.get(self.URL)

        assert_response(
            response, HTTPStatus.FOUND, url=f"{reverse('web:login')}?next={self.URL}"
        )

    def test_ok(self, authenticated_client, active_user, event, draft_event):
        response = authenticated_client.get(self.URL)

        data = response.json()
        assert response.status_code == HTTPStatus.OK
        profile = active_user.profile
        assert data["display_name"] == f"{profile.first_name} {profile.last_name}"
        assert [e["pk"] for e in data["events"]] == [event.pk]


class TestEventListPageView:
    def test_published(self, authenticated_client, event, draft_event):
        past = EventFactory(event_date=timezone.now() - timedelta(days=3))

        response = authenticated_client.get(reverse("web:events"))

        assert response.status_code == HTTPStatus.OK
        assert {e["pk"] for e in response.json()["events"]} == {event.pk, past.pk}

    def test_upcoming_and_past(self, authenticated_client, event):
        past = EventFactory(event_date=timezone.now() - timedelta(days=3))

        upcoming = authenticated_client.get(reverse("web:events-upcoming")).json()
        previous = authenticated_client.get(reverse("web:events-past")).json()

        assert [e["pk"] for e in upcoming["events"]] == [event.pk]
        assert [e["pk"] for e in previous["events"]] == [past.pk]


class TestEventPageView:
    def test_ok(self, authenticated_client, active_user, event):
        EventRegistrationFactory(event=event, user=active_user, attendee_count=2)
        link = EventPresenterFactory(event=event)
        document = EventDocumentFactory(event=event)

        response = authenticated_client.get(
            reverse("web:event", kwargs={"event_id": event.pk})
        )

        data = response.json()
        assert response.status_code == HTTPStatus.OK
        assert data["event"]["pk"] == event.pk
        assert data["registrations_count"] == 2
        assert data["remaining_capacity"] == event.participant_limit - 2
        assert data["user_registration"]["attendee_count"] == 2
        assert [p["pk"] for p in data["presenters"]] == [link.presenter_id]
        assert [d["pk"] for d in data["documents"]] == [document.pk]

    def test_not_found(self, authenticated_client):
        response = authenticated_client.get(
            reverse("web:event", kwargs={"event_id": 404})
        )

        assert_response(
            response,
            HTTPStatus.FOUND,
            messages=[(messages.ERROR, "Événement introuvable")],
            url=reverse("web:events"),
        )


class TestEventRegisterActionView:
    @staticmethod
    def _url(event):
        return reverse("web:event-register", kwargs={"event_id": event.pk})

    def test_ok(self, authenticated_client, active_user, event):
        response = authenticated_client.post(self._url(event), {"attendee_count": 2})

        data = response.json()
        assert response.status_code == HTTPStatus.CREATED
        assert data["message"] == "Inscription confirmée"
        assert data["registration"]["attendee_count"] == 2
        assert EventRegistration.objects.get(user=active_user).attendee_count == 2

    def test_defaults_to_one_attendee(self, authenticated_client, active_user, event):
        authenticated_client.post(self._url(event))

        assert EventRegistration.objects.get(user=active_user).attendee_count == 1

    def test_capacity_exceeded(self, authenticated_client, active_user):
        event = EventFactory(participant_limit=10)
        EventRegistrationFactory(event=event, attendee_count=9)

        response = authenticated_client.post(self._url(event), {"attendee_count": 2})

        assert_response(
            response,
            HTTPStatus.CONFLICT,
            json={"code": "CAPACITY_EXCEEDED", "error": "Cet événement est complet"},
        )
        assert not EventRegistration.objects.filter(user=active_user).exists()

    def test_already_registered(self, authenticated_client, active_user, event):
        EventRegistrationFactory(event=event, user=active_user)

        response = authenticated_client.post(self._url(event))

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={
                "code": "ALREADY_REGISTERED",
                "error": "Vous êtes déjà inscrit à cet événement",
            },
        )

    def test_zero_attendees(self, authenticated_client, event):
        response = authenticated_client.post(self._url(event), {"attendee_count": 0})

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={
                "errors": {"attendee_count": ["Au moins une personne doit être inscrite."]}
            },
        )

    def test_zero_attendees_in_english(self, authenticated_client, event):
        authenticated_client.post(reverse("web:language"), {"language": "en"})

        response = authenticated_client.post(self._url(event), {"attendee_count": 0})

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={"errors": {"attendee_count": ["At least one attendee is required."]}},
        )

    def test_anonymous(self, client, event):
        response = client.post(self._url(event))

        assert_response(
            response,
            HTTPStatus.FOUND,
            url=f"{reverse('web:login')}?next={self._url(event)}",
        )


class TestEventCancelRegistrationActionView:
    @staticmethod
    def _url(event):
        return reverse("web:event-cancel", kwargs={"event_id": event.pk})

    def test_ok(self, authenticated_client, active_user, event):
        EventRegistrationFactory(event=event, user=active_user)

        response = authenticated_client.post(self._url(event))

        assert response.status_code == HTTPStatus.OK
        assert response.json()["message"] == "Votre inscription a été annulée"
        assert (
            EventRegistration.objects.get(user=active_user).status
            == EventRegistration.Status.CANCELLED
        )

    def test_not_registered(self, authenticated_client, event):
        response = authenticated_client.post(self._url(event))

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={"code": "NOT_REGISTERED", "error": "Aucune inscription à annuler"},
        )
