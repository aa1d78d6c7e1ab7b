"""Admin panel views (gates layer).

Privileged work (user management, invitations, notifications) goes through
the secure function client so the functions re-check the caller's role.
"""

from http import HTTPStatus
from typing import Any, ClassVar

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.views.generic.base import View

from cercle.gates.web.django.forms import (
    DocumentUploadForm,
    EventForm,
    EventInvitationsForm,
    ImageUploadForm,
    InviteUserForm,
    PresenterSelectionForm,
    ReminderForm,
    VideoUploadForm,
)
from cercle.gates.web.django.functions import LocalTransport
from cercle.gates.web.django.http import (
    CercleRequest,
    dump,
    dump_all,
    error_response,
    form_errors,
)
from cercle.gates.web.django.views import ProtectedRouteMixin
from cercle.links.functions import FunctionTransport, HttpTransport
from cercle.mills import NOT_FOUND
from cercle.pacts import AppRole, EventStatus, FunctionError, Result


class PanelAccessMixin(ProtectedRouteMixin):
    """Mixin to require the admin role; others are sent home silently."""

    request: CercleRequest
    required_roles: ClassVar[tuple[AppRole, ...]] = (AppRole.ADMIN,)

    def invoke(self, name: str, body: dict[str, Any] | None = None) -> JsonResponse:
        """Call a privileged function on behalf of the signed-in admin.

        The call runs in-process unless ``FUNCTIONS_BASE_URL`` points at a
        separate functions deployment.

        Returns:
            The function's JSON payload, or its error with the same status.
        """
        transport: FunctionTransport
        if settings.FUNCTIONS_BASE_URL:
            transport = HttpTransport(
                settings.FUNCTIONS_BASE_URL, settings.FUNCTIONS_TIMEOUT
            )
        else:
            transport = LocalTransport(self.request.di.functions)

        client = self.request.di.get_function_client(self.request.resolver, transport)
        try:
            data = client.invoke(name, body)
        except FunctionError as exception:
            return error_response(exception.message, status=exception.status)
        return JsonResponse(data)


def _result_response(
    result: Result[Any], status: int = HTTPStatus.OK, **extra: Any  # noqa: ANN401
) -> JsonResponse:
    if result.error:
        return error_response(
            result.error.message,
            status=HTTPStatus.NOT_FOUND
            if result.error.code == NOT_FOUND
            else HTTPStatus.BAD_REQUEST,
        )
    data = result.data
    payload = dump_all(data) if isinstance(data, list) else dump(data)
    return JsonResponse({"data": payload, **extra}, status=status)


class EventListPageView(PanelAccessMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        return _result_response(self.request.di.events.get_all_events())

    def post(self, _request: CercleRequest) -> HttpResponse:
        form = EventForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        event_data = form.to_event_data()
        event_data["created_by_id"] = self.user_id
        event_data["status"] = EventStatus.DRAFT
        return _result_response(
            self.request.di.events.create_event(event_data),
            status=HTTPStatus.CREATED,
            message=self.request.locale.t("events.created"),
        )


class EventPageView(PanelAccessMixin, View):
    """Show or edit one event.

    Moving the date with ``notify_date_change`` set hands the new date to the
    date-change function, which also cancels the registrations.
    """

    request: CercleRequest

    def get(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        return _result_response(self.request.di.events.get_event_by_id(event_id))

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = EventForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        current = self.request.di.events.get_event_by_id(event_id)
        if current.data is None:
            return _result_response(current)

        event_data = form.to_event_data()
        old_date = current.data.event.event_date
        new_date = event_data["event_date"]
        notify = form.cleaned_data["notify_date_change"] and new_date != old_date
        if notify:
            event_data["event_date"] = old_date

        result = self.request.di.events.update_event(event_id, event_data)
        if result.error or not notify:
            return _result_response(
                result, message=self.request.locale.t("events.updated")
            )

        return self.invoke(
            "send-date-change-notification",
            {
                "event_id": event_id,
                "new_date": new_date.isoformat(),
                "old_date": old_date.isoformat(),
            },
        )


class EventDeleteActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        return _result_response(
            self.request.di.events.delete_event(event_id),
            message=self.request.locale.t("events.deleted"),
        )


class EventPresentersActionView(PanelAccessMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        return _result_response(self.request.di.presenters.get_event_presenters(event_id))

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = PresenterSelectionForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        return _result_response(
            self.request.di.presenters.set_event_presenters(
                event_id, form.cleaned_data["presenter_ids"]
            ),
            message=self.request.locale.t("presenters.updated"),
        )


class EventImageActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = ImageUploadForm(self.request.POST, self.request.FILES)
        if not form.is_valid():
            return form_errors(form)

        return _result_response(
            self.request.di.media.upload_event_image(event_id, form.cleaned_data["file"])
        )


class EventVideoActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = VideoUploadForm(self.request.POST, self.request.FILES)
        if not form.is_valid():
            return form_errors(form)

        return _result_response(
            self.request.di.media.upload_event_video(event_id, form.cleaned_data["file"])
        )


class EventVideoDeleteActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        return _result_response(self.request.di.media.remove_event_video(event_id))


class EventDocumentsActionView(PanelAccessMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        return _result_response(self.request.di.documents.get_event_documents(event_id))

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = DocumentUploadForm(self.request.POST, self.request.FILES)
        if not form.is_valid():
            return form_errors(form)

        return _result_response(
            self.request.di.documents.upload_event_document(
                event_id, form.cleaned_data["file"], self.user_id
            ),
            status=HTTPStatus.CREATED,
            message=self.request.locale.t("documents.uploaded"),
        )


class DocumentDeleteActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, document_id: int) -> HttpResponse:
        return _result_response(
            self.request.di.documents.delete_event_document(document_id),
            message=self.request.locale.t("documents.deleted"),
        )


class EventInvitationsActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = EventInvitationsForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        return self.invoke(
            "send-event-invitations",
            {
                "event_id": event_id,
                "send_to_all": form.cleaned_data["send_to_all"],
                "user_ids": form.cleaned_data["user_ids"],
            },
        )


class EventCancelActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        return self.invoke("send-event-cancellation", {"event_id": event_id})


class EventReminderActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = ReminderForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        return self.invoke(
            "send-event-reminder",
            {
                "custom_message": form.cleaned_data["custom_message"],
                "event_id": event_id,
                "recipient_type": form.cleaned_data["recipient_type"].value,
                "subject": form.cleaned_data["subject"] or None,
                "user_ids": form.cleaned_data["user_ids"],
            },
        )


class PresenterListPageView(PanelAccessMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        return _result_response(self.request.di.presenters.get_presenters())


class PresenterDeleteActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, presenter_id: int) -> HttpResponse:
        return _result_response(
            self.request.di.presenters.delete_presenter(presenter_id),
            message=self.request.locale.t("presenters.removed"),
        )


class PresenterAvatarActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, presenter_id: int) -> HttpResponse:
        form = ImageUploadForm(self.request.POST, self.request.FILES)
        if not form.is_valid():
            return form_errors(form)

        result = self.request.di.presenters.upload_presenter_avatar(
            presenter_id, form.cleaned_data["file"]
        )
        if result.error:
            return _result_response(result)
        return JsonResponse({"avatar_url": result.data})


class ProfileListPageView(PanelAccessMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        return _result_response(self.request.di.profiles.get_all_profiles())


class InvitationListPageView(PanelAccessMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        return _result_response(self.request.di.invitations.get_invitations())

    def post(self, _request: CercleRequest) -> HttpResponse:
        form = InviteUserForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        return self.invoke("invite-user", form.cleaned_data)


class UserListPageView(PanelAccessMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        return self.invoke("get-users")


class UserDeleteActionView(PanelAccessMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, user_id: int) -> HttpResponse:
        return self.invoke("delete-user", {"user_id": user_id})
