from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

from django.conf import settings

from cercle.links import files
from cercle.links.db.django.uow import UnitOfWork
from cercle.links.emails import EmailComposer
from cercle.links.functions import SecureFunctionClient
from cercle.links.resend import ResendEmailClient
from cercle.mills import (
    DocumentService,
    EventMediaService,
    EventService,
    FunctionsService,
    InvitationService,
    PresentationService,
    PresenterService,
    ProfileService,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from django.http import HttpRequest

    from cercle.gears import SessionResolver
    from cercle.links.functions import FunctionTransport


class DependencyInjector:
    """Container for all request-scoped dependencies.

    Usage:
        request.di.uow.events
        request.di.events.register_for_event(event_id, user_id)
    """

    @cached_property
    def uow(self) -> UnitOfWork:
        return UnitOfWork()

    @cached_property
    def mailer(self) -> ResendEmailClient:
        return ResendEmailClient(
            api_url=settings.RESEND_API_URL,
            api_key=settings.RESEND_API_KEY,
            sender=settings.EMAIL_FROM,
            timeout=settings.RESEND_TIMEOUT,
        )

    @cached_property
    def events(self) -> EventService:
        return EventService(self.uow)

    @cached_property
    def presenters(self) -> PresenterService:
        return PresenterService(self.uow, avatars=files.Bucket(files.AVATARS))

    @cached_property
    def profiles(self) -> ProfileService:
        return ProfileService(self.uow)

    @cached_property
    def presentations(self) -> PresentationService:
        return PresentationService(self.uow)

    @cached_property
    def invitations(self) -> InvitationService:
        return InvitationService(self.uow, ttl_days=settings.INVITATION_TTL_DAYS)

    @cached_property
    def documents(self) -> DocumentService:
        return DocumentService(self.uow, files.Bucket(files.EVENT_DOCUMENTS))

    @cached_property
    def media(self) -> EventMediaService:
        return EventMediaService(
            self.uow,
            images=files.Bucket(files.EVENT_IMAGES),
            videos=files.Bucket(files.EVENT_VIDEOS),
        )

    @cached_property
    def functions(self) -> FunctionsService:
        return FunctionsService(
            self.uow,
            self.mailer,
            EmailComposer(settings.APP_URL, settings.INVITATION_TTL_DAYS),
            contact_email=settings.CONTACT_EMAIL,
        )

    @staticmethod
    def get_function_client(
        resolver: SessionResolver, transport: FunctionTransport
    ) -> SecureFunctionClient:
        return SecureFunctionClient(
            transport,
            get_session=lambda: resolver.state.session,
            on_auth_error=resolver.handle_auth_error,
        )


class RepositoryInjectionMiddleware[Response]:
    """Attach a fresh ``DependencyInjector`` to every request.

    Django offers no injection point for views, so this lives outside the
    framework code as a plain middleware.
    """

    def __init__(self, get_response: Callable[[HttpRequest], Response]) -> None:
        self.get_response: Callable[[HttpRequest], Response] = get_response

    def __call__(self, request: HttpRequest) -> Response:
        if not request.path.startswith(settings.MIDDLEWARE_SKIP_PREFIXES):
            request.di = DependencyInjector()  # type: ignore [attr-defined]

        return self.get_response(request)
