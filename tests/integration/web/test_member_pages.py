from http import HTTPStatus

import responses
from django.contrib import messages
from django.test import Client
from django.urls import reverse

from cercle.adapters.db.django.models import Invitation, Profile, UserRole
from tests.integration.factories import (
    PASSWORD,
    InvitationFactory,
    PresentationFactory,
    ProfileFactory,
)
from tests.integration.utils import RESEND_URL, assert_response, sent_emails


class TestPresenterPages:
    def test_list(self, authenticated_client, presenter_member, active_user):
        flagged = ProfileFactory(is_presenter=True)

        response = authenticated_client.get(reverse("web:presenters"))

        assert response.status_code == HTTPStatus.OK
        assert {p["pk"] for p in response.json()["presenters"]} == {
            presenter_member.pk,
            flagged.pk,
        }

    def test_detail(self, authenticated_client, presenter_member):
        presentation = PresentationFactory(presenter=presenter_member.profile)

        response = authenticated_client.get(
            reverse("web:presenter", kwargs={"presenter_id": presenter_member.pk})
        )

        data = response.json()
        assert data["presenter"]["pk"] == presenter_member.pk
        assert [p["pk"] for p in data["presentations"]] == [presentation.pk]

    def test_detail_not_found(self, authenticated_client):
        response = authenticated_client.get(
            reverse("web:presenter", kwargs={"presenter_id": 404})
        )

        assert_response(
            response,
            HTTPStatus.FOUND,
            messages=[(messages.ERROR, "Profil introuvable")],
            url=reverse("web:presenters"),
        )


class TestProfilePageView:
    URL = reverse("web:profile")

    def test_get(self, authenticated_client, active_user):
        response = authenticated_client.get(self.URL)

        assert response.json()["profile"]["pk"] == active_user.pk

    def test_post(self, authenticated_client, active_user):
        response = authenticated_client.post(
            self.URL,
            {"first_name": " Simone ", "last_name": "Weil", "bio": "Philosophe"},
        )

        data = response.json()
        assert response.status_code == HTTPStatus.OK
        assert data["message"] == "Profil mis à jour"
        assert data["profile"]["first_name"] == "Simone"
        profile = Profile.objects.get(pk=active_user.pk)
        assert (profile.first_name, profile.bio) == ("Simone", "Philosophe")

        state = authenticated_client.get(reverse("web:session")).json()
        assert state["profile"]["first_name"] == "Simone"

    def test_post_requires_names(self, authenticated_client):
        response = authenticated_client.post(self.URL, {"bio": "x"})

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert set(response.json()["errors"]) == {"first_name", "last_name"}

    def test_refresh(self, authenticated_client, active_user):
        Profile.objects.filter(pk=active_user.pk).update(first_name="Rosa")

        response = authenticated_client.post(reverse("web:profile-refresh"))

        assert response.json()["profile"]["first_name"] == "Rosa"


class TestPasswordChangeActionView:
    URL = reverse("web:password")
    NEW_PASSWORD = "un-nouveau-secret-42"

    def _form(self, **overrides):
        return {
            "old_password": PASSWORD,
            "new_password1": self.NEW_PASSWORD,
            "new_password2": self.NEW_PASSWORD,
        } | overrides

    def test_ok(self, authenticated_client, active_user):
        response = authenticated_client.post(self.URL, self._form())

        assert_response(
            response, HTTPStatus.OK, json={"message": "Mot de passe mis à jour"}
        )
        active_user.refresh_from_db()
        assert active_user.check_password(self.NEW_PASSWORD)
        assert not active_user.check_password(PASSWORD)

        state = authenticated_client.get(reverse("web:session")).json()
        assert state["user"]["pk"] == active_user.pk

    def test_new_password_signs_in(self, authenticated_client, active_user):
        authenticated_client.post(self.URL, self._form())

        response = Client().post(
            reverse("web:login"),
            {"email": active_user.email, "password": self.NEW_PASSWORD},
        )

        assert_response(
            response,
            HTTPStatus.FOUND,
            messages=[(messages.SUCCESS, "Connexion réussie")],
            url=reverse("web:index"),
        )

    def test_wrong_old_password(self, authenticated_client, active_user):
        response = authenticated_client.post(
            self.URL, self._form(old_password="pas-le-bon")
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert set(response.json()["errors"]) == {"old_password"}
        active_user.refresh_from_db()
        assert active_user.check_password(PASSWORD)

    def test_weak_new_password(self, authenticated_client):
        response = authenticated_client.post(
            self.URL, self._form(new_password1="court", new_password2="court")
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert set(response.json()["errors"]) == {"new_password2"}

    def test_mismatch(self, authenticated_client):
        response = authenticated_client.post(
            self.URL, self._form(new_password2="autre-chose-encore-99")
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert set(response.json()["errors"]) == {"new_password2"}

    def test_anonymous(self, client):
        response = client.post(self.URL, self._form())

        assert_response(
            response,
            HTTPStatus.FOUND,
            url=f"{reverse('web:login')}?next={self.URL}",
        )


class TestInvitationPageView:
    @staticmethod
    def _url(invitation):
        return reverse("web:invitation", kwargs={"token": invitation.token})

    @staticmethod
    def _form(email, **overrides):
        return {
            "email": email,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "password": "long-enough-password",
            "password_confirm": "long-enough-password",
            **overrides,
        }

    def test_get_valid(self, client):
        invitation = InvitationFactory(
            email="ada@example.com", role=UserRole.Role.PRESENTER
        )

        response = client.get(self._url(invitation))

        assert_response(
            response,
            HTTPStatus.OK,
            json={"email": "ada@example.com", "role": "presenter"},
        )

    def test_get_expired(self, client):
        invitation = InvitationFactory(status=Invitation.Status.EXPIRED)

        response = client.get(self._url(invitation))

        assert_response(
            response,
            HTTPStatus.NOT_FOUND,
            json={"code": "INVITATION_EXPIRED", "error": "Cette invitation a expiré"},
        )

    def test_get_unknown(self, client):
        response = client.get(reverse("web:invitation", kwargs={"token": "nope"}))

        assert_response(
            response,
            HTTPStatus.NOT_FOUND,
            json={
                "code": "INVITATION_INVALID",
                "error": "Invitation invalide ou déjà utilisée",
            },
        )

    def test_accept_signs_in_and_consumes_token(self, client):
        invitation = InvitationFactory(email="ada@example.com")

        response = client.post(self._url(invitation), self._form("ada@example.com"))

        assert_response(
            response,
            HTTPStatus.FOUND,
            messages=[(messages.SUCCESS, "Connexion réussie")],
            url=reverse("web:index"),
        )
        state = client.get(reverse("web:session")).json()
        assert state["user"]["email"] == "ada@example.com"
        assert state["roles"] == ["participant"]

        client.post(reverse("web:logout"))
        again = client.get(self._url(invitation))
        assert again.status_code == HTTPStatus.NOT_FOUND
        assert again.json()["code"] == "INVITATION_INVALID"

    def test_accept_password_mismatch(self, client):
        invitation = InvitationFactory(email="ada@example.com")

        response = client.post(
            self._url(invitation),
            self._form("ada@example.com", password_confirm="something-else"),
        )

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={
                "errors": {
                    "password_confirm": ["Les mots de passe ne correspondent pas."]
                }
            },
        )
        assert Invitation.objects.get(pk=invitation.pk).status == "pending"

    def test_accept_other_email(self, client):
        invitation = InvitationFactory(email="ada@example.com")

        response = client.post(self._url(invitation), self._form("eve@example.com"))

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.json()["code"] == "INVITATION_EMAIL_MISMATCH"


class TestContactPageView:
    URL = reverse("web:contact")

    def test_anonymous(self, client, http_mock):
        response = client.post(
            self.URL,
            {
                "reason": "membership_request",
                "message": "Bonjour,\nje souhaite adhérer.",
                "sender_email": "visitor@example.com",
                "sender_name": "Louise",
            },
        )

        assert_response(
            response, HTTPStatus.OK, json={"message": "Votre message a bien été envoyé"}
        )
        (email,) = sent_emails(http_mock)
        assert email["to"] == ["contact@cercle.test"]
        assert email["subject"] == "[Contact] Demande d'adhésion"
        assert email["reply_to"] == "visitor@example.com"

    def test_signed_in_sender_defaults(self, authenticated_client, active_user, http_mock):
        Profile.objects.filter(pk=active_user.pk).update(first_name="Colette")

        authenticated_client.post(
            self.URL, {"reason": "other", "message": "Merci pour la soirée"}
        )

        (email,) = sent_emails(http_mock)
        assert email["reply_to"] == active_user.email
        assert "Colette" in email["html"]

    def test_delivery_failure(self, client, http_mock):
        http_mock.replace(responses.POST, RESEND_URL, status=500, json={})

        response = client.post(self.URL, {"reason": "other", "message": "Allô ?"})

        assert_response(
            response,
            HTTPStatus.INTERNAL_SERVER_ERROR,
            json={"error": "Could not send message"},
        )

    def test_unknown_reason(self, client):
        response = client.post(self.URL, {"reason": "spam", "message": "x"})

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert set(response.json()["errors"]) == {"reason"}
