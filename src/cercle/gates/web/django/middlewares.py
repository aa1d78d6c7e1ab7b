import logging
import time
from typing import Protocol

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.views import redirect_to_login
from django.http import HttpRequest, HttpResponseBase, HttpResponseRedirect
from django.urls import reverse
from django.utils import translation

from cercle.gates.web.django.exceptions import RedirectError, ResponseStatusError
from cercle.gears import AUTH_ERROR_STATUSES, SessionResolver
from cercle.i18n import LocaleProvider
from cercle.links.identity import DjangoIdentityProvider
from cercle.pacts import AuthError

logger = logging.getLogger(__name__)

VALIDATED_AT_KEY = "auth_validated_at"


class _GetResponseCallable(Protocol):
    def __call__(self, request: HttpRequest, /) -> HttpResponseBase: ...


def _skips_resolver(request: HttpRequest) -> bool:
    return request.path.startswith(
        (*settings.MIDDLEWARE_SKIP_PREFIXES, settings.FUNCTIONS_PREFIX)
    )


def _login_redirect(request: HttpRequest) -> HttpResponseBase:
    logger.info("Sending %s back to sign in", request.path)
    messages.warning(request, request.locale.t("auth.session_expired"))  # type: ignore [attr-defined]
    return redirect_to_login(request.get_full_path(), login_url=reverse("web:login"))


class LocaleMiddleware:
    def __init__(self, get_response: _GetResponseCallable) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponseBase:
        request.locale = LocaleProvider(request.session)  # type: ignore [attr-defined]
        language = request.locale.language  # type: ignore [attr-defined]
        request.LANGUAGE_CODE = language.value

        with translation.override(language):
            response = self.get_response(request)
        response.headers.setdefault("Content-Language", language.value)
        return response


class SessionResolverMiddleware:
    """Resolve the session, profile and roles before the view runs.

    The session is re-validated with the identity provider at most once per
    ``AUTH_VALIDATION_INTERVAL`` seconds of a browser session.
    """

    def __init__(self, get_response: _GetResponseCallable) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponseBase:
        if _skips_resolver(request):
            return self.get_response(request)

        request.auth_redirect = None  # type: ignore [attr-defined]

        def redirect(url: str) -> None:
            request.auth_redirect = url  # type: ignore [attr-defined]

        resolver = SessionResolver(
            DjangoIdentityProvider(request),
            request.di.uow.profiles,  # type: ignore [attr-defined]
            request.di.uow.roles,  # type: ignore [attr-defined]
            current_path=lambda: request.path,
            redirect=redirect,
            public_routes=settings.AUTH_PUBLIC_PATHS,
        )
        request.resolver = resolver  # type: ignore [attr-defined]
        resolver.initialize()
        resolver.run_pending()

        if resolver.state.user is not None and self._validation_due(request):
            if resolver.validate():
                request.session[VALIDATED_AT_KEY] = int(time.time())

        if request.auth_redirect:  # type: ignore [attr-defined]
            resolver.close()
            return _login_redirect(request)

        try:
            return self.get_response(request)
        finally:
            resolver.close()

    @staticmethod
    def _validation_due(request: HttpRequest) -> bool:
        last = request.session.get(VALIDATED_AT_KEY)
        return last is None or time.time() - last >= settings.AUTH_VALIDATION_INTERVAL


class AuthErrorMiddleware:
    """Turn authentication failures into a forced sign-out."""

    def __init__(self, get_response: _GetResponseCallable) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponseBase:
        response = self.get_response(request)
        if (resolver := getattr(request, "resolver", None)) is None:
            return response

        if response.status_code in AUTH_ERROR_STATUSES:
            resolver.handle_auth_error(ResponseStatusError(response.status_code))

        if getattr(request, "auth_redirect", None):
            return _login_redirect(request)

        return response

    @staticmethod
    def process_exception(
        request: HttpRequest, exception: Exception
    ) -> HttpResponseBase | None:
        if not isinstance(exception, AuthError):
            return None

        if (resolver := getattr(request, "resolver", None)) is None:
            return None

        resolver.handle_auth_error(exception)
        return HttpResponseRedirect(reverse("web:login"))


class RedirectErrorMiddleware:

    def __init__(self, get_response: _GetResponseCallable) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponseBase:
        return self.get_response(request)

    @staticmethod
    def process_exception(  # pylint: disable=no-self-use
        request: HttpRequest, exception: Exception
    ) -> HttpResponseBase | None:
        if isinstance(exception, RedirectError):
            if exception.error:
                messages.error(request, exception.error)
            if exception.warning:
                messages.warning(request, exception.warning)
            return HttpResponseRedirect(exception.url)

        return None
