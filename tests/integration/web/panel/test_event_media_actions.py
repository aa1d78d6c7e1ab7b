"""Tests for event presenters, media and document actions."""

from http import HTTPStatus

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from cercle.adapters.db.django.models import Event, EventDocument
from tests.integration.factories import ProfileFactory
from tests.integration.utils import assert_response


def _png(name="cover.png"):
    return SimpleUploadedFile(name, b"\x89PNG", content_type="image/png")


def _pdf(name="programme.pdf"):
    return SimpleUploadedFile(name, b"%PDF-1.4", content_type="application/pdf")


class TestEventPresentersActionView:
    """Tests for assigning presenters to an event."""

    @staticmethod
    def get_url(event):
        return reverse("panel:event-presenters", kwargs={"event_id": event.pk})

    def test_post_keeps_order(self, panel_client, event):
        """Presenters are stored in the submitted order."""
        first, second = ProfileFactory(), ProfileFactory()

        response = panel_client.post(
            self.get_url(event), {"presenter_ids": [second.pk, first.pk]}
        )

        assert response.json()["message"] == "Intervenants mis à jour"
        listed = panel_client.get(self.get_url(event)).json()["data"]
        assert [p["pk"] for p in listed] == [second.pk, first.pk]
        assert Event.objects.get(pk=event.pk).presenter_id == second.pk

    def test_post_empty_clears(self, panel_client, event):
        """Submitting no presenters clears the list."""
        panel_client.post(self.get_url(event), {"presenter_ids": [ProfileFactory().pk]})

        response = panel_client.post(self.get_url(event))

        assert response.json()["data"] == []
        assert Event.objects.get(pk=event.pk).presenter_id is None


class TestEventImageActionView:
    """Tests for event image upload."""

    def test_post(self, panel_client, event):
        """The image is stored and its URL saved on the event."""
        response = panel_client.post(
            reverse("panel:event-image", kwargs={"event_id": event.pk}),
            {"file": _png()},
        )

        image_url = response.json()["data"]["image_url"]
        assert image_url.startswith(f"/media/event-images/{event.pk}/")
        assert image_url.endswith(".png")
        assert Event.objects.get(pk=event.pk).image_url == image_url

    def test_post_rejects_other_types(self, panel_client, event):
        """Only images are accepted."""
        response = panel_client.post(
            reverse("panel:event-image", kwargs={"event_id": event.pk}),
            {"file": _pdf()},
        )

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={
                "errors": {
                    "file": ["Type de fichier non pris en charge, une image est attendue."]
                }
            },
        )


class TestEventVideoActions:
    """Tests for event video upload and removal."""

    def test_upload_then_remove(self, panel_client, event):
        """The video can be attached and detached."""
        upload = SimpleUploadedFile("teaser.mp4", b"mp4", content_type="video/mp4")
        uploaded = panel_client.post(
            reverse("panel:event-video", kwargs={"event_id": event.pk}),
            {"file": upload},
        ).json()["data"]

        assert uploaded["video_url"].endswith(".mp4")

        response = panel_client.post(
            reverse("panel:event-video-delete", kwargs={"event_id": event.pk})
        )

        assert response.json()["data"]["video_url"] is None
        assert Event.objects.get(pk=event.pk).video_url is None

    def test_upload_too_large(self, panel_client, event, settings):
        """Files over the limit are refused."""
        settings.MAX_VIDEO_SIZE = 2
        upload = SimpleUploadedFile("teaser.mp4", b"mp4", content_type="video/mp4")

        response = panel_client.post(
            reverse("panel:event-video", kwargs={"event_id": event.pk}),
            {"file": upload},
        )

        assert_response(
            response,
            HTTPStatus.BAD_REQUEST,
            json={"errors": {"file": ["Fichier trop volumineux (0 Mo maximum)."]}},
        )


class TestEventDocumentsActionView:
    """Tests for event documents."""

    @staticmethod
    def get_url(event):
        return reverse("panel:event-documents", kwargs={"event_id": event.pk})

    def test_upload_list_delete(self, panel_client, event, admin_member):
        """A PDF can be uploaded, listed and deleted."""
        response = panel_client.post(self.get_url(event), {"file": _pdf()})

        data = response.json()
        assert response.status_code == HTTPStatus.CREATED
        assert data["message"] == "Document ajouté"
        document = EventDocument.objects.get(pk=data["data"]["pk"])
        assert document.uploaded_by == admin_member
        assert document.file_name == "programme.pdf"
        listed = panel_client.get(self.get_url(event)).json()["data"]
        assert [d["pk"] for d in listed] == [document.pk]

        response = panel_client.post(
            reverse("panel:document-delete", kwargs={"document_id": document.pk})
        )

        assert response.json()["message"] == "Document supprimé"
        assert not EventDocument.objects.exists()
        stored = document.file_url.removeprefix("/media/")
        assert not default_storage.exists(stored)

    def test_upload_to_unknown_event(self, panel_client):
        """Uploading to a missing event answers 404."""
        response = panel_client.post(
            reverse("panel:event-documents", kwargs={"event_id": 404}),
            {"file": _pdf()},
        )

        assert_response(
            response, HTTPStatus.NOT_FOUND, json={"error": "Event not found"}
        )


class TestPresenterActions:
    """Tests for presenter management."""

    def test_list_and_remove(self, panel_client, presenter_member):
        """Presenters are listed and can lose the presenter flag."""
        listed = panel_client.get(reverse("panel:presenters")).json()["data"]
        assert [p["pk"] for p in listed] == [presenter_member.pk]

        response = panel_client.post(
            reverse(
                "panel:presenter-delete", kwargs={"presenter_id": presenter_member.pk}
            )
        )

        assert response.json()["message"] == "Intervenant retiré"
        assert not response.json()["data"]["is_presenter"]

    def test_avatar(self, panel_client, presenter_member):
        """The avatar URL is returned and stored on the profile."""
        response = panel_client.post(
            reverse(
                "panel:presenter-avatar", kwargs={"presenter_id": presenter_member.pk}
            ),
            {"file": _png("me.jpg")},
        )

        assert response.json() == {
            "avatar_url": f"/media/avatars/presenters/{presenter_member.pk}.jpg"
        }
