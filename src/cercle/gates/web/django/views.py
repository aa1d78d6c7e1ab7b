"""Member-facing pages (gates layer)."""

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING, Any, ClassVar

from django.contrib import messages
from django.contrib.auth import update_session_auth_hash
from django.contrib.auth.forms import PasswordChangeForm
from django.contrib.auth.views import redirect_to_login
from django.http import HttpResponse, HttpResponseBase, JsonResponse
from django.shortcuts import redirect
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.generic.base import View

from cercle.gates.web.django.exceptions import RedirectError
from cercle.gates.web.django.forms import (
    AcceptInvitationForm,
    ContactForm,
    LanguageForm,
    LoginForm,
    ProfileForm,
    RegistrationForm,
)
from cercle.gates.web.django.http import (
    CercleRequest,
    dump,
    dump_all,
    error_response,
    form_errors,
)
from cercle.gears import GuardDecision, guard_route
from cercle.i18n import Language
from cercle.mills import INVITATION_EXPIRED, get_profile_display_name
from cercle.pacts import AppRole, AuthError, AuthErrorKind, ContactReason, FunctionError

if TYPE_CHECKING:
    from cercle.gears import AuthState


def state_payload(state: AuthState) -> dict[str, Any]:
    return {
        "is_admin": state.is_admin,
        "is_loading": state.is_loading,
        "is_presenter": state.is_presenter,
        "profile": dump(state.profile),
        "roles": [role.value for role in state.roles],
        "user": dump(state.user),
    }


class ProtectedRouteMixin:
    """Admit a request only once the session is resolved and roles suffice."""

    request: CercleRequest
    required_roles: ClassVar[tuple[AppRole, ...]] = ()

    def dispatch(
        self, request: CercleRequest, *args: Any, **kwargs: Any  # noqa: ANN401
    ) -> HttpResponseBase:
        match guard_route(request.resolver.state, self.required_roles):
            case GuardDecision.WAIT:
                return JsonResponse({"loading": True}, status=HTTPStatus.ACCEPTED)
            case GuardDecision.LOGIN:
                return redirect_to_login(
                    request.get_full_path(), login_url=reverse("web:login")
                )
            case GuardDecision.HOME:
                return redirect("web:index")

        return super().dispatch(request, *args, **kwargs)  # type: ignore [misc]

    @property
    def user_id(self) -> int:
        """Primary key of the signed-in member.

        Raises:
            AuthError: If the session lost its user after the guard ran.
        """
        if (user := self.request.resolver.state.user) is None:
            raise AuthError(AuthErrorKind.NOT_AUTHENTICATED, "Not authenticated")
        return user.pk


class IndexPageView(ProtectedRouteMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        result = self.request.di.events.get_upcoming_events()
        return JsonResponse(
            {
                "display_name": get_profile_display_name(
                    self.request.resolver.state.profile,
                    default=self.request.locale.t("common.unknown_name"),
                ),
                "events": dump_all(result.data),
            }
        )


class LoginPageView(View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponseBase:
        if token := self.request.GET.get("invitation"):
            return redirect("web:invitation", token=token)

        if self.request.resolver.state.user is not None:
            return redirect("web:index")

        return JsonResponse({"language": self.request.locale.language.value})

    def post(self, _request: CercleRequest) -> HttpResponseBase:
        form = LoginForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        if self.request.resolver.sign_in(
            form.cleaned_data["email"], form.cleaned_data["password"]
        ):
            return error_response(self.request.locale.t("auth.invalid_credentials"))

        messages.success(self.request, self.request.locale.t("auth.signed_in"))
        next_url = self.request.POST.get("next") or self.request.GET.get("next")
        if next_url and url_has_allowed_host_and_scheme(
            next_url, allowed_hosts={self.request.get_host()}
        ):
            return redirect(next_url)
        return redirect("web:index")


class LogoutActionView(View):
    request: CercleRequest

    def post(self, _request: CercleRequest) -> HttpResponseBase:
        self.request.resolver.sign_out()
        messages.success(self.request, self.request.locale.t("auth.signed_out"))
        return redirect("web:login")


class SessionStateView(View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        return JsonResponse(state_payload(self.request.resolver.state))


class SessionValidateActionView(View):
    request: CercleRequest

    def post(self, _request: CercleRequest) -> HttpResponse:
        valid = self.request.resolver.validate()
        return JsonResponse({"valid": valid})


class ProfileRefreshActionView(ProtectedRouteMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest) -> HttpResponse:
        self.request.resolver.refresh_profile()
        return JsonResponse(state_payload(self.request.resolver.state))


class LanguageSelectActionView(View):
    """Set the language when one is given, toggle it otherwise."""

    request: CercleRequest

    def post(self, _request: CercleRequest) -> HttpResponse:
        form = LanguageForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        if language := form.cleaned_data["language"]:
            self.request.locale.set_language(Language(language))
        else:
            self.request.locale.toggle_language()
        return JsonResponse({"language": self.request.locale.language.value})


class EventListPageView(ProtectedRouteMixin, View):
    request: CercleRequest
    period: ClassVar[str] = "published"

    def get(self, _request: CercleRequest) -> HttpResponse:
        events = self.request.di.events
        match self.period:
            case "upcoming":
                result = events.get_upcoming_events()
            case "past":
                result = events.get_past_events()
            case _:
                result = events.get_published_events()

        if result.error:
            return error_response(
                result.error.message, status=HTTPStatus.INTERNAL_SERVER_ERROR
            )
        return JsonResponse({"events": dump_all(result.data)})


class EventPageView(ProtectedRouteMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        result = self.request.di.events.get_event_by_id(event_id, self.user_id)
        if result.data is None:
            raise RedirectError(
                reverse("web:events"), error=self.request.locale.t("events.not_found")
            )

        documents = self.request.di.documents.get_event_documents(event_id)
        return JsonResponse(
            {
                **result.data.model_dump(mode="json"),
                "documents": dump_all(documents.data),
            }
        )


class EventRegisterActionView(ProtectedRouteMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        form = RegistrationForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        result = self.request.di.events.register_for_event(
            event_id, self.user_id, form.cleaned_data["attendee_count"]
        )
        if result.capacity_error:
            return error_response(
                self.request.locale.t("events.capacity_exceeded"),
                status=HTTPStatus.CONFLICT,
                code=result.error.code if result.error else "",
            )
        if result.error:
            return error_response(result.error.message, code=result.error.code)

        return JsonResponse(
            {
                "message": self.request.locale.t("events.registered"),
                "registration": dump(result.data),
            },
            status=HTTPStatus.CREATED,
        )


class EventCancelRegistrationActionView(ProtectedRouteMixin, View):
    request: CercleRequest

    def post(self, _request: CercleRequest, event_id: int) -> HttpResponse:
        result = self.request.di.events.cancel_registration(event_id, self.user_id)
        if result.error:
            return error_response(result.error.message, code=result.error.code)

        return JsonResponse(
            {
                "message": self.request.locale.t("events.cancelled"),
                "registration": dump(result.data),
            }
        )


class PresenterListPageView(ProtectedRouteMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        result = self.request.di.presenters.get_presenters()
        return JsonResponse({"presenters": dump_all(result.data)})


class PresenterPageView(ProtectedRouteMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest, presenter_id: int) -> HttpResponse:
        profile = self.request.di.profiles.get_profile_by_id(presenter_id)
        if profile.data is None:
            raise RedirectError(
                reverse("web:presenters"),
                error=self.request.locale.t("profile.not_found"),
            )

        presentations = self.request.di.presentations.get_presentations_by_presenter(
            presenter_id
        )
        return JsonResponse(
            {
                "presentations": dump_all(presentations.data),
                "presenter": dump(profile.data),
            }
        )


class ProfilePageView(ProtectedRouteMixin, View):
    request: CercleRequest

    def get(self, _request: CercleRequest) -> HttpResponse:
        return JsonResponse({"profile": dump(self.request.resolver.state.profile)})

    def post(self, _request: CercleRequest) -> HttpResponse:
        form = ProfileForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        result = self.request.di.profiles.update_profile(
            self.user_id, form.to_profile_data()
        )
        if result.error:
            return error_response(result.error.message)

        self.request.resolver.refresh_profile()
        return JsonResponse(
            {
                "message": self.request.locale.t("profile.updated"),
                "profile": dump(result.data),
            }
        )


class PasswordChangeActionView(ProtectedRouteMixin, View):
    """Change the signed-in member's password and keep them signed in."""

    request: CercleRequest

    def post(self, _request: CercleRequest) -> HttpResponse:
        form = PasswordChangeForm(self.request.user, self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        user = form.save()
        update_session_auth_hash(self.request, user)
        return JsonResponse(
            {"message": self.request.locale.t("profile.password_updated")}
        )


class InvitationPageView(View):
    """Public page where an invited person creates their account."""

    request: CercleRequest

    def get(self, _request: CercleRequest, token: str) -> HttpResponse:
        result = self.request.di.invitations.validate_invitation_token(token)
        if result.data is None:
            return self._refused(result.error.code if result.error else "")

        return JsonResponse(
            {"email": result.data.email, "role": result.data.role.value}
        )

    def post(self, _request: CercleRequest, token: str) -> HttpResponseBase:
        form = AcceptInvitationForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        result = self.request.di.invitations.accept_invitation(
            token,
            email=form.cleaned_data["email"],
            first_name=form.cleaned_data["first_name"],
            last_name=form.cleaned_data["last_name"],
            password=form.cleaned_data["password"],
        )
        if result.error:
            return error_response(result.error.message, code=result.error.code)

        self.request.resolver.sign_in(
            form.cleaned_data["email"], form.cleaned_data["password"]
        )
        messages.success(self.request, self.request.locale.t("auth.signed_in"))
        return redirect("web:index")

    def _refused(self, code: str) -> HttpResponse:
        key = "invitations.expired" if code == INVITATION_EXPIRED else "invitations.invalid"
        return error_response(
            self.request.locale.t(key), status=HTTPStatus.NOT_FOUND, code=code
        )


class ContactPageView(View):
    request: CercleRequest

    def post(self, _request: CercleRequest) -> HttpResponse:
        form = ContactForm(self.request.POST)
        if not form.is_valid():
            return form_errors(form)

        state = self.request.resolver.state
        sender_email = form.cleaned_data["sender_email"] or (
            state.user.email if state.user else None
        )
        sender_name = form.cleaned_data["sender_name"] or (
            get_profile_display_name(state.profile, default="") if state.profile else None
        )
        try:
            self.request.di.functions.send_contact_email(
                reason=ContactReason(form.cleaned_data["reason"]),
                message=form.cleaned_data["message"],
                sender_email=sender_email,
                sender_name=sender_name,
            )
        except FunctionError as exception:
            return error_response(exception.message, status=exception.status)

        return JsonResponse({"message": self.request.locale.t("contact.sent")})
