from datetime import UTC, datetime

import pytest

from cercle.links.emails import EmailComposer
from cercle.pacts import (
    AppRole,
    ContactReason,
    EventDTO,
    EventStatus,
    ProfileDTO,
    UserDTO,
)

MOMENT = datetime(2026, 3, 14, 17, 30, tzinfo=UTC)


@pytest.fixture(autouse=True)
def paris(settings):
    settings.TIME_ZONE = "Europe/Paris"


@pytest.fixture(name="composer")
def composer_fixture():
    return EmailComposer("https://cercle.example/")


@pytest.fixture(name="event")
def event_fixture():
    return EventDTO(
        pk=9,
        title="Climat & <société>",
        event_date=MOMENT,
        location="Médiathèque",
        status=EventStatus.PUBLISHED,
        created_at=MOMENT,
        updated_at=MOMENT,
    )


@pytest.fixture(name="user")
def user_fixture():
    return UserDTO(pk=1, email="member@example.com")


class TestEmailComposer:
    def test_invitation(self, composer):
        message = composer.invitation(
            "new@example.com", AppRole.PRESENTER, "https://cercle.example/x?a=1&b=2"
        )

        assert message.to == ["new@example.com"]
        assert "intervenant" in message.html
        assert 'href="https://cercle.example/x?a=1&amp;b=2"' in message.html
        assert "valable 7 jours" in message.html

    def test_invitation_validity_follows_setting(self):
        composer = EmailComposer("https://cercle.example", invitation_ttl_days=3)

        message = composer.invitation("new@example.com", AppRole.ADMIN, "https://x")

        assert "valable 3 jours" in message.html
        assert "administrateur" in message.html

    def test_uses_shared_layout(self, composer, event, user):
        message = composer.event_cancellation(event, user, None)

        assert message.html.startswith('<div style="font-family: Georgia, serif;')
        assert '<h1 style="color: #1a1a1a;">Événement annulé</h1>' in message.html
        assert "Cercle Partages</p>" in message.html

    def test_event_invitation_escapes_title(self, composer, event, user):
        message = composer.event_invitation(
            event, user, ProfileDTO(pk=1, first_name="Ada", last_name="Lovelace")
        )

        assert message.subject == "Invitation : Climat & <société>"
        assert "Climat &amp; &lt;société&gt;" in message.html
        assert "<société>" not in message.html
        assert "Bonjour Ada Lovelace," in message.html
        assert "https://cercle.example/evenements/9/" in message.html

    def test_greeting_without_profile(self, composer, event, user):
        message = composer.event_cancellation(event, user, None)

        assert "<p>Bonjour,</p>" in message.html
        assert message.subject == "Annulation : Climat & <société>"

    def test_date_change_shows_both_dates(self, composer, event, user):
        old_date = datetime(2026, 3, 7, 17, 30, tzinfo=UTC)

        message = composer.date_change(event, user, None, old_date)

        assert "samedi 7 mars 2026 à 18h30" in message.html
        assert "samedi 14 mars 2026 à 18h30" in message.html

    def test_reminder_custom_subject_and_message(self, composer, event, user):
        message = composer.reminder(
            event, user, None, "Ligne 1\n<script>alert(1)</script>", "Demain !"
        )

        assert message.subject == "Demain !"
        assert "<script>" not in message.html
        assert "&lt;script&gt;" in message.html
        assert "Ligne 1<br>" in message.html

    def test_reminder_default_subject(self, composer, event, user):
        message = composer.reminder(event, user, None, "Rendez-vous", None)

        assert message.subject == "Rappel : Climat & <société>"

    def test_contact_reply_to(self, composer):
        message = composer.contact(
            "contact@example.com",
            ContactReason.MEMBERSHIP_REQUEST,
            "Je souhaite adhérer",
            "visitor@example.com",
            "Visiteur",
        )

        assert message.to == ["contact@example.com"]
        assert message.subject == "[Contact] Demande d'adhésion"
        assert message.reply_to == "visitor@example.com"

    def test_anonymous_contact_has_no_reply_to(self, composer):
        message = composer.contact(
            "contact@example.com",
            ContactReason.OTHER,
            "Bonjour",
            "visitor@example.com",
            None,
        )

        assert "Anonyme" in message.html
        assert message.reply_to is None
