"""Identity provider backed by Django auth and signed access tokens."""

from __future__ import annotations

import logging
import time
from secrets import token_urlsafe
from typing import TYPE_CHECKING

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth import login as django_login
from django.contrib.auth import logout as django_logout
from django.core import signing

from cercle.pacts import (
    AuthChange,
    AuthError,
    AuthErrorKind,
    IdentityProviderProtocol,
    SessionDTO,
    UserDTO,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from django.contrib.auth.base_user import AbstractBaseUser
    from django.http import HttpRequest

    from cercle.pacts import AuthListener

logger = logging.getLogger(__name__)

SESSION_KEY = "auth_session"
ACCESS_TOKEN_SALT = "cercle.access-token"
BEARER_PREFIX = "Bearer "


def issue_access_token(user_id: int, expires_at: int) -> str:
    return signing.dumps({"sub": user_id, "exp": expires_at}, salt=ACCESS_TOKEN_SALT)


def read_access_token(token: str, *, now: float | None = None) -> int:
    """Return the user id carried by an access token.

    Raises:
        AuthError: If the token is forged or past its expiry.
    """
    try:
        payload = signing.loads(token, salt=ACCESS_TOKEN_SALT)
    except signing.BadSignature as exception:
        raise AuthError(AuthErrorKind.INVALID_TOKEN) from exception

    if payload["exp"] < (time.time() if now is None else now):
        raise AuthError(AuthErrorKind.SESSION_EXPIRED)

    return int(payload["sub"])


def read_bearer_token(authorization: str) -> int:
    if not authorization.startswith(BEARER_PREFIX):
        raise AuthError(AuthErrorKind.NOT_AUTHENTICATED, "Missing authorization header")

    return read_access_token(authorization.removeprefix(BEARER_PREFIX).strip())


class DjangoIdentityProvider(IdentityProviderProtocol):
    """Per-request identity provider.

    Listeners are notified synchronously; they must not call back into the
    provider while being notified.
    """

    def __init__(
        self, request: HttpRequest, *, clock: Callable[[], float] = time.time
    ) -> None:
        self._request = request
        self._clock = clock
        self._listeners: list[AuthListener] = []

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_session(self) -> tuple[SessionDTO | None, AuthError | None]:
        user = getattr(self._request, "user", None)
        if user is None or not user.is_authenticated:
            return None, None

        if not (data := self._request.session.get(SESSION_KEY)):
            # Sessions opened outside sign_in (admin site, tests) get tokens lazily.
            data = self._issue(user)

        if data["user_id"] != user.pk:
            return None, AuthError(AuthErrorKind.SESSION_NOT_FOUND)

        return (
            SessionDTO(
                access_token=data["access_token"],
                expires_at=data["expires_at"],
                refresh_token=data["refresh_token"],
                user=UserDTO.model_validate(user),
            ),
            None,
        )

    def sign_in(self, email: str, password: str) -> AuthError | None:
        user = authenticate(self._request, username=email, password=password)
        if user is None:
            logger.info("Rejected sign-in for %s", email)
            return AuthError(AuthErrorKind.INVALID_CREDENTIALS)

        django_login(self._request, user)
        self._issue(user)
        session, _ = self.get_session()
        self._notify(AuthChange.SIGNED_IN, session)
        return None

    def sign_out(self) -> None:
        django_logout(self._request)
        self._notify(AuthChange.SIGNED_OUT, None)

    def _issue(self, user: AbstractBaseUser) -> dict[str, int | str]:
        expires_at = int(self._clock()) + settings.AUTH_SESSION_TTL
        user_id = user.pk
        data: dict[str, int | str] = {
            "access_token": issue_access_token(user_id, expires_at),
            "expires_at": expires_at,
            "refresh_token": token_urlsafe(32),
            "user_id": user_id,
        }
        self._request.session[SESSION_KEY] = data
        return data

    def _notify(self, change: AuthChange, session: SessionDTO | None) -> None:
        for listener in list(self._listeners):
            listener(change, session)
