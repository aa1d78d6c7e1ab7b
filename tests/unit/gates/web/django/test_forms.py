from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import translation

from cercle.gates.web.django.forms import (
    AcceptInvitationForm,
    DocumentUploadForm,
    EventForm,
    ImageUploadForm,
    PresenterSelectionForm,
    RegistrationForm,
    ReminderForm,
)
from cercle.pacts import EventCategory, RecipientType


class TestRegistrationForm:
    def test_defaults_to_one_attendee(self):
        form = RegistrationForm({})

        assert form.is_valid()
        assert form.cleaned_data["attendee_count"] == 1

    def test_rejects_zero(self):
        form = RegistrationForm({"attendee_count": 0})

        assert not form.is_valid()
        assert form.errors["attendee_count"] == [
            "Au moins une personne doit être inscrite."
        ]


class TestEventForm:
    DATA = {
        "title": "  Les océans  ",
        "category": "enjeux_climatiques",
        "event_date": "2026-06-01T18:00:00+02:00",
        "location": "Salle du conseil",
        "participant_limit": "30",
    }

    def test_to_event_data(self):
        form = EventForm(self.DATA)

        assert form.is_valid(), form.errors
        data = form.to_event_data()
        assert data["title"] == "Les océans"
        assert data["category"] == EventCategory.ENJEUX_CLIMATIQUES
        assert data["participant_limit"] == 30
        assert "status" not in data

    def test_status_is_ignored(self):
        form = EventForm(self.DATA | {"status": "published"})

        assert form.is_valid(), form.errors
        assert "status" not in form.to_event_data()

    def test_participant_limit_must_be_positive(self):
        form = EventForm(self.DATA | {"participant_limit": "0"})

        assert not form.is_valid()
        assert "participant_limit" in form.errors

    def test_required_fields(self):
        form = EventForm({})

        assert not form.is_valid()
        assert form.errors["title"] == ["Le titre est obligatoire."]
        assert form.errors["location"] == ["Le lieu est obligatoire."]

    def test_required_fields_in_english(self):
        form = EventForm({})

        with translation.override("en"):
            assert not form.is_valid()
            assert form.errors["title"] == ["Event title is required."]
            assert form.errors["location"] == ["Location is required."]


class TestAcceptInvitationForm:
    DATA = {
        "email": "new@example.com",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "password": "long-enough",
        "password_confirm": "long-enough",
    }

    def test_valid(self):
        assert AcceptInvitationForm(self.DATA).is_valid()

    def test_password_mismatch(self):
        form = AcceptInvitationForm(self.DATA | {"password_confirm": "different"})

        assert not form.is_valid()
        assert form.errors["password_confirm"] == [
            "Les mots de passe ne correspondent pas."
        ]

    def test_short_password(self):
        form = AcceptInvitationForm(
            self.DATA | {"password": "short", "password_confirm": "short"}
        )

        assert not form.is_valid()
        assert "password" in form.errors

    def test_password_validators_apply(self):
        form = AcceptInvitationForm(
            self.DATA | {"password": "password123", "password_confirm": "password123"}
        )

        assert not form.is_valid()
        assert "password" in form.errors

    def test_numeric_password(self):
        form = AcceptInvitationForm(
            self.DATA | {"password": "4815162342", "password_confirm": "4815162342"}
        )

        assert not form.is_valid()
        assert "password" in form.errors


def test_presenter_selection_keeps_order_and_skips_junk():
    form = PresenterSelectionForm({"presenter_ids": ["3", "x", "1"]})

    assert form.is_valid()
    assert form.cleaned_data["presenter_ids"] == [3, 1]


def test_reminder_form_defaults_to_all():
    form = ReminderForm({"custom_message": "À demain"})

    assert form.is_valid()
    assert form.cleaned_data["recipient_type"] == RecipientType.ALL


class TestUploadForms:
    def test_image_accepted(self):
        upload = SimpleUploadedFile("a.png", b"png", content_type="image/png")

        assert ImageUploadForm({}, {"file": upload}).is_valid()

    def test_wrong_type(self):
        upload = SimpleUploadedFile("a.txt", b"text", content_type="text/plain")

        form = DocumentUploadForm({}, {"file": upload})

        assert not form.is_valid()
        assert form.errors["file"] == [
            "Type de fichier non pris en charge, un PDF est attendu."
        ]

    def test_too_large(self, settings):
        settings.MAX_IMAGE_SIZE = 2
        upload = SimpleUploadedFile("a.png", b"large", content_type="image/png")

        form = ImageUploadForm({}, {"file": upload})

        with translation.override("en"):
            assert not form.is_valid()
            assert form.errors["file"] == ["File is too large (max 0 MB)."]
