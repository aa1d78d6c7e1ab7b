"""Privileged JSON functions, served under ``/functions/v1/<name>``.

Callers authenticate with ``Authorization: Bearer <access token>`` or, from
the browser, with their session cookie. Admin functions re-check the caller's
role on every call.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, ClassVar

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from django.views.generic.base import View

from cercle.gates.web.django.forms import (
    ContactForm,
    DateChangeForm,
    EventInvitationsFunctionForm,
    EventTargetForm,
    InviteUserForm,
    ReminderFunctionForm,
    UserTargetForm,
)
from cercle.gates.web.django.http import dump_all, error_response, read_json_body
from cercle.links.identity import read_bearer_token
from cercle.pacts import AppRole, AuthError, ContactReason, FunctionError

if TYPE_CHECKING:
    from django import forms

    from cercle.mills import FunctionsService

logger = logging.getLogger(__name__)

type Payload = dict[str, Any]


def _caller_id(request: HttpRequest) -> int | None:
    if authorization := request.headers.get("Authorization"):
        return read_bearer_token(authorization)

    if request.user.is_authenticated:
        return request.user.pk  # type: ignore [no-any-return]

    return None


@method_decorator(csrf_exempt, name="dispatch")
class FunctionView(View):
    """Decode the JSON body, identify the caller, validate, then run."""

    http_method_names: ClassVar[list[str]] = ["post", "options"]  # type: ignore [misc]
    form_class: ClassVar[type[forms.Form] | None] = None

    def post(self, request: HttpRequest) -> HttpResponse:
        try:
            body = read_json_body(request)
        except ValueError:
            return error_response("Invalid JSON body")

        try:
            caller_id = _caller_id(request)
        except AuthError as exception:
            logger.warning("Rejected function call: %s", exception.kind)
            return error_response(exception.message, status=HTTPStatus.UNAUTHORIZED)

        status, payload = self.handle(request.di.functions, caller_id, body)  # type: ignore [attr-defined]
        return JsonResponse(payload, status=status)

    def handle(
        self, functions: FunctionsService, caller_id: int | None, body: Payload
    ) -> tuple[int, Payload]:
        """Validate the body and run the function for an identified caller.

        Returns:
            The HTTP status and the JSON payload to answer with.
        """
        data: Payload = body
        if self.form_class is not None:
            form = self.form_class(body)
            if not form.is_valid():
                field, errors = next(iter(form.errors.items()))
                return HTTPStatus.BAD_REQUEST, {"error": f"{field}: {errors[0]}"}
            data = form.cleaned_data

        try:
            payload = self.run(functions, caller_id, data)
        except FunctionError as exception:
            return exception.status, {"error": exception.message}

        return HTTPStatus.OK, {"success": True, **payload}

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        raise NotImplementedError


class GetUsersFunction(FunctionView):
    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        return {"users": dump_all(functions.get_users(caller_id))}


class InviteUserFunction(FunctionView):
    form_class = InviteUserForm

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        invitation, report = functions.invite_user(
            caller_id,
            email=data["email"],
            role=AppRole(data["role"]),
            app_url=settings.APP_URL,
            ttl_days=settings.INVITATION_TTL_DAYS,
        )
        return {
            "invitation": invitation.model_dump(mode="json"),
            **report.model_dump(mode="json"),
        }


class DeleteUserFunction(FunctionView):
    form_class = UserTargetForm

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        functions.delete_user(caller_id, data["user_id"])
        return {}


class SendEventInvitationsFunction(FunctionView):
    form_class = EventInvitationsFunctionForm

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        report = functions.send_event_invitations(
            caller_id,
            data["event_id"],
            data["user_ids"],
            send_to_all=data["send_to_all"],
        )
        return report.model_dump(mode="json")


class SendEventCancellationFunction(FunctionView):
    form_class = EventTargetForm

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        return functions.send_event_cancellation(caller_id, data["event_id"]).model_dump(
            mode="json"
        )


class SendDateChangeNotificationFunction(FunctionView):
    form_class = DateChangeForm

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        report = functions.send_date_change_notification(
            caller_id, data["event_id"], data["old_date"], data["new_date"]
        )
        return report.model_dump(mode="json")


class SendEventReminderFunction(FunctionView):
    form_class = ReminderFunctionForm

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        report = functions.send_event_reminder(
            caller_id,
            data["event_id"],
            recipient_type=data["recipient_type"],
            custom_message=data["custom_message"],
            subject=data["subject"] or None,
            user_ids=data["user_ids"],
        )
        return report.model_dump(mode="json")


class SendContactEmailFunction(FunctionView):
    form_class = ContactForm

    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        report = functions.send_contact_email(
            reason=ContactReason(data["reason"]),
            message=data["message"],
            sender_email=data["sender_email"] or None,
            sender_name=data["sender_name"] or None,
        )
        return report.model_dump(mode="json")


class MarkCompletedEventsFunction(FunctionView):
    def run(
        self, functions: FunctionsService, caller_id: int | None, data: Payload
    ) -> Payload:
        functions.require_admin(caller_id)
        return functions.mark_completed_events().model_dump(mode="json")


FUNCTIONS: dict[str, type[FunctionView]] = {
    "get-users": GetUsersFunction,
    "invite-user": InviteUserFunction,
    "delete-user": DeleteUserFunction,
    "send-event-invitations": SendEventInvitationsFunction,
    "send-event-cancellation": SendEventCancellationFunction,
    "send-date-change-notification": SendDateChangeNotificationFunction,
    "send-event-reminder": SendEventReminderFunction,
    "send-contact-email": SendContactEmailFunction,
    "mark-completed-events": MarkCompletedEventsFunction,
}


class LocalTransport:
    """Run function calls in this process, checking the bearer token first.

    The panel uses it so that a call never waits on a worker of its own
    server; the HTTP endpoints remain for outside callers.
    """

    def __init__(self, functions: FunctionsService) -> None:
        self._functions = functions

    def __call__(
        self, name: str, body: Payload, authorization: str
    ) -> tuple[int, Payload]:
        if (view_class := FUNCTIONS.get(name)) is None:
            return HTTPStatus.NOT_FOUND, {"error": f"Unknown function: {name}"}

        try:
            caller_id = read_bearer_token(authorization)
        except AuthError as exception:
            logger.warning("Rejected function call: %s", exception.kind)
            return HTTPStatus.UNAUTHORIZED, {"error": exception.message}

        return view_class().handle(self._functions, caller_id, body)
