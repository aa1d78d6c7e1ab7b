"""Client for the privileged functions, authenticated with the session token.

The client does not care where the functions run: a transport carries the
call, either over HTTP to a separate deployment or straight into this process.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Protocol

import requests

from cercle.pacts import AuthError, AuthErrorKind, FunctionError

if TYPE_CHECKING:
    from collections.abc import Callable

    from cercle.pacts import SessionDTO

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class FunctionTransport(Protocol):
    def __call__(
        self, name: str, body: dict[str, Any], authorization: str
    ) -> tuple[int, dict[str, Any]]: ...


class HttpTransport:
    """Post function calls to ``<base_url>/<name>`` with ``requests``."""

    def __init__(self, base_url: str, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def __call__(
        self, name: str, body: dict[str, Any], authorization: str
    ) -> tuple[int, dict[str, Any]]:
        try:
            response = requests.post(
                f"{self.base_url}/{name}",
                json=body,
                headers={"Authorization": authorization},
                timeout=self.timeout,
            )
        except requests.RequestException as exception:
            logger.exception("Function %s is unreachable", name)
            raise FunctionError(str(exception), HTTPStatus.BAD_GATEWAY) from exception

        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            data = {}

        if not response.ok and not data.get("error"):
            data["error"] = response.reason or "Function call failed"
        return response.status_code, data


class SecureFunctionClient:
    def __init__(
        self,
        transport: FunctionTransport,
        get_session: Callable[[], SessionDTO | None],
        on_auth_error: Callable[[Exception], object],
    ) -> None:
        self._transport = transport
        self._get_session = get_session
        self._on_auth_error = on_auth_error

    def invoke(self, name: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Call a function with the caller's bearer token.

        Returns:
            The decoded JSON body of a successful call.

        Raises:
            AuthError: If there is no session, or the function answers 401.
            FunctionError: For any other failure.
        """
        if (session := self._get_session()) is None:
            raise AuthError(AuthErrorKind.NOT_AUTHENTICATED, "Not authenticated")

        status, data = self._transport(
            name, body or {}, f"Bearer {session.access_token}"
        )

        if status == HTTPStatus.UNAUTHORIZED:
            error = AuthError(AuthErrorKind.SESSION_EXPIRED, "Session expired")
            logger.warning("Function %s rejected the session token", name)
            self._on_auth_error(error)
            raise error

        if status >= HTTPStatus.BAD_REQUEST:
            raise FunctionError(data.get("error") or "Function call failed", status)

        return data
