"""Session & role resolution and route guarding."""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, replace
from enum import StrEnum, auto
from http import HTTPStatus
from typing import TYPE_CHECKING

from cercle.pacts import AppRole, AuthChange, AuthError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from cercle.pacts import (
        IdentityProviderProtocol,
        ProfileDTO,
        ProfileRepositoryProtocol,
        RoleRepositoryProtocol,
        SessionDTO,
        UserDTO,
    )

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/connexion/"
HOME_ROUTE = "/"
DEFAULT_PUBLIC_ROUTES = (LOGIN_ROUTE, "/invitation/")
AUTH_ERROR_STATUSES = frozenset({HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN})


def derive_is_presenter(roles: Iterable[AppRole], profile: ProfileDTO | None) -> bool:
    """Presenter eligibility: a presenter role row OR the profile flag."""
    return AppRole.PRESENTER in roles or bool(profile and profile.is_presenter)


def is_auth_error(error: object) -> bool:
    """Tell whether an error means the session is no longer valid.

    Structured ``AuthError`` values are recognised by type; anything else only
    through an HTTP status of 401 or 403.
    """
    if isinstance(error, AuthError):
        return True

    status = getattr(error, "status", None)
    if status is None and (response := getattr(error, "response", None)) is not None:
        status = getattr(response, "status_code", None)

    return status in AUTH_ERROR_STATUSES


@dataclass(frozen=True)
class AuthState:
    user: UserDTO | None = None
    session: SessionDTO | None = None
    profile: ProfileDTO | None = None
    roles: tuple[AppRole, ...] = ()
    auth_loading: bool = True
    roles_loading: bool = False
    initial_load_complete: bool = False

    @property
    def is_admin(self) -> bool:
        return AppRole.ADMIN in self.roles

    @property
    def is_presenter(self) -> bool:
        return derive_is_presenter(self.roles, self.profile)

    @property
    def is_loading(self) -> bool:
        return self.auth_loading or (self.user is not None and self.roles_loading)


class GuardDecision(StrEnum):
    WAIT = auto()
    ADMIT = auto()
    LOGIN = auto()
    HOME = auto()


def guard_route(state: AuthState, required_roles: Iterable[AppRole] = ()) -> GuardDecision:
    if state.is_loading:
        return GuardDecision.WAIT
    if state.user is None:
        return GuardDecision.LOGIN
    if any(role not in state.roles for role in required_roles):
        return GuardDecision.HOME
    return GuardDecision.ADMIT


class FollowUpQueue:
    """Work deferred until the current notification handler has returned."""

    def __init__(self) -> None:
        self._tasks: deque[Callable[[], None]] = deque()

    def __len__(self) -> int:
        return len(self._tasks)

    def defer(self, task: Callable[[], None]) -> None:
        self._tasks.append(task)

    def drain(self) -> int:
        count = 0
        while self._tasks:
            self._tasks.popleft()()
            count += 1
        return count


class SessionResolver:  # pylint: disable=too-many-instance-attributes
    """Single authority on who is signed in and which roles they hold.

    State is only changed through the named operations below; consumers read
    immutable ``AuthState`` snapshots.
    """

    def __init__(
        self,
        provider: IdentityProviderProtocol,
        profiles: ProfileRepositoryProtocol,
        roles: RoleRepositoryProtocol,
        *,
        current_path: Callable[[], str] = lambda: HOME_ROUTE,
        redirect: Callable[[str], None] | None = None,
        public_routes: Iterable[str] = DEFAULT_PUBLIC_ROUTES,
        clock: Callable[[], float] = time.time,
        queue: FollowUpQueue | None = None,
    ) -> None:
        self._provider = provider
        self._profiles = profiles
        self._roles = roles
        self._current_path = current_path
        self._redirect = redirect
        self._public_routes = tuple(public_routes)
        self._clock = clock
        self._state = AuthState()
        self._queue = queue if queue is not None else FollowUpQueue()
        self._pending_fetches: set[str] = set()
        self._listeners: list[Callable[[AuthState], None]] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def has_pending_work(self) -> bool:
        return bool(self._queue)

    def subscribe(self, listener: Callable[[AuthState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def initialize(self) -> AuthState:
        """Subscribe to provider changes, then resolve the current session."""
        if self._unsubscribe is None:
            self._unsubscribe = self._provider.on_auth_state_change(self._on_auth_change)

        session, error = self._provider.get_session()
        if error is not None:
            logger.warning("Session lookup failed during initialization: %s", error)
            self.force_sign_out()
            self._set(initial_load_complete=True)
            return self._state

        if session is None:
            self._set(
                user=None,
                session=None,
                profile=None,
                roles=(),
                roles_loading=False,
                auth_loading=False,
                initial_load_complete=True,
            )
            return self._state

        self._set(session=session, user=session.user, roles_loading=True)
        self._pending_fetches = {"profile", "roles"}
        self._fetch_profile(session.user.pk)
        self._fetch_roles(session.user.pk)
        self._set(auth_loading=False, initial_load_complete=True)
        return self._state

    def run_pending(self) -> int:
        return self._queue.drain()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def sign_in(self, email: str, password: str) -> AuthError | None:
        error = self._provider.sign_in(email, password)
        self.run_pending()
        return error

    def sign_out(self) -> None:
        self._provider.sign_out()
        self._clear()

    def refresh_profile(self) -> None:
        if (user := self._state.user) is None:
            return

        self._set(roles_loading=True)
        self._pending_fetches = {"profile", "roles"}
        self._fetch_profile(user.pk)
        self._fetch_roles(user.pk)

    def validate(self) -> bool:
        """Re-check the session with the provider.

        Returns:
            True if a valid session remains, False otherwise.
        """
        session, error = self._provider.get_session()
        if session is None and error is None:
            self._clear()
            return False

        if error is None and session.expires_at >= self._clock():  # type: ignore [union-attr]
            return True

        # Already signed out locally: nothing left to tear down.
        if self._state.session is None and not self._state.auth_loading:
            return False

        logger.warning("Session is no longer valid: %s", error or "expired")
        self.force_sign_out()
        return False

    def force_sign_out(self) -> None:
        try:
            self._provider.sign_out()
        except Exception:  # noqa: BLE001
            logger.warning("Provider sign-out failed, clearing local state anyway")

        self._clear()
        path = self._current_path()
        if self._redirect is not None and not path.startswith(self._public_routes):
            self._redirect(LOGIN_ROUTE)

    def handle_auth_error(self, error: object) -> bool:
        if not is_auth_error(error):
            return False

        logger.warning("Authentication error, signing out: %s", error)
        self.force_sign_out()
        return True

    def _on_auth_change(self, change: AuthChange, session: SessionDTO | None) -> None:
        if change == AuthChange.SIGNED_OUT or session is None:
            self._clear()
            return

        self._set(session=session, user=session.user, roles_loading=True)
        if self._state.initial_load_complete:
            self._set(auth_loading=False)

        user_id = session.user.pk
        self._pending_fetches = {"profile", "roles"}
        self._queue.defer(lambda: self._fetch_profile(user_id))
        self._queue.defer(lambda: self._fetch_roles(user_id))

    def _fetch_profile(self, user_id: int) -> None:
        try:
            profile: ProfileDTO | None = self._profiles.read(user_id)
        except NotFoundError:
            profile = None
        except Exception:  # noqa: BLE001
            logger.warning("Could not load profile of user %s", user_id)
            profile = None

        if self._is_current(user_id):
            self._set(profile=profile)
            self._resolved("profile")

    def _fetch_roles(self, user_id: int) -> None:
        try:
            roles = tuple(self._roles.read_roles(user_id))
        except Exception:  # noqa: BLE001
            logger.warning("Could not load roles of user %s", user_id)
            roles = ()

        if self._is_current(user_id):
            self._set(roles=roles)
            self._resolved("roles")

    def _resolved(self, fetch: str) -> None:
        self._pending_fetches.discard(fetch)
        if not self._pending_fetches:
            self._set(roles_loading=False)

    def _is_current(self, user_id: int) -> bool:
        return self._state.user is not None and self._state.user.pk == user_id

    def _clear(self) -> None:
        self._pending_fetches = set()
        self._set(
            user=None,
            session=None,
            profile=None,
            roles=(),
            roles_loading=False,
            auth_loading=False,
        )

    def _set(self, **changes: object) -> None:
        state = replace(self._state, **changes)  # type: ignore [arg-type]
        if state == self._state:
            return

        self._state = state
        for listener in list(self._listeners):
            listener(state)
