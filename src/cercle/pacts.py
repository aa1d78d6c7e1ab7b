from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any, Protocol, TypedDict

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from contextlib import AbstractContextManager


class NotFoundError(Exception):
    pass


class AuthErrorKind(StrEnum):
    INVALID_CREDENTIALS = auto()
    INVALID_TOKEN = auto()
    NOT_AUTHENTICATED = auto()
    SESSION_EXPIRED = auto()
    SESSION_NOT_FOUND = auto()
    USER_DISABLED = auto()


class AuthError(Exception):
    """Raised when the identity provider rejects the current session."""

    def __init__(self, kind: AuthErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value


class ServiceError(Exception):
    def __init__(self, message: str, *, code: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class EmailDeliveryError(Exception):
    pass


class FunctionError(Exception):
    """Error raised by a privileged function, mapped to an HTTP status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class AppRole(StrEnum):
    ADMIN = auto()
    PRESENTER = auto()
    PARTICIPANT = auto()


class EventCategory(StrEnum):
    GEOPOLITIQUE = auto()
    ENJEUX_CLIMATIQUES = auto()
    SOCIETE_VIOLENCES = auto()
    IDEES_CULTURES_HUMANITES = auto()
    ARTS_ARTISTES = auto()
    ECONOMIE_LOCALE = auto()
    SCIENCE_MODERNE = auto()


class EventStatus(StrEnum):
    DRAFT = auto()
    PUBLISHED = auto()
    COMPLETED = auto()
    CANCELLED = auto()


class RegistrationStatus(StrEnum):
    CONFIRMED = auto()
    WAITLIST = auto()
    CANCELLED = auto()


class InvitationStatus(StrEnum):
    PENDING = auto()
    USED = auto()
    EXPIRED = auto()


class RecipientType(StrEnum):
    ALL = auto()
    REGISTERED = auto()
    NOT_REGISTERED = auto()
    SPECIFIC = auto()


class ContactReason(StrEnum):
    CONNEXION_ISSUE = auto()
    INTERVENTION_REQUEST = auto()
    GENERAL_REMARK = auto()
    MEMBERSHIP_REQUEST = auto()
    OTHER = auto()


class AuthChange(StrEnum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class RegistrationErrorCode(StrEnum):
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_NOT_OPEN = "EVENT_NOT_OPEN"
    NOT_REGISTERED = "NOT_REGISTERED"


class UserDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date_joined: datetime | None = None
    email: str
    email_confirmed_at: datetime | None = None
    last_sign_in_at: datetime | None = None
    pk: int


class SessionDTO(BaseModel):
    access_token: str
    expires_at: int
    refresh_token: str
    user: UserDTO


class ProfileDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    avatar_url: str | None = None
    bio: str | None = None
    created_at: datetime | None = None
    email: str | None = None
    first_name: str | None = None
    is_presenter: bool = False
    last_name: str | None = None
    pk: int
    professional_background: str | None = None
    updated_at: datetime | None = None


class EventDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: EventCategory | None = None
    created_at: datetime
    created_by_id: int | None = None
    description: str | None = None
    event_date: datetime
    image_url: str | None = None
    location: str
    participant_limit: int | None = None
    pk: int
    presenter_id: int | None = None
    status: EventStatus
    title: str
    topic: str | None = None
    updated_at: datetime
    video_url: str | None = None


class PresenterInfoDTO(BaseModel):
    avatar_url: str | None = None
    bio: str | None = None
    display_order: int = 0
    first_name: str | None = None
    last_name: str | None = None
    pk: int
    professional_background: str | None = None


class RegistrationDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attendee_count: int
    event_id: int
    pk: int
    registered_at: datetime
    status: RegistrationStatus
    user_id: int


class EventDetailsDTO(BaseModel):
    event: EventDTO
    presenter: PresenterInfoDTO | None = None
    presenters: list[PresenterInfoDTO]
    registrations_count: int
    remaining_capacity: int | None = None
    user_registration: RegistrationDTO | None = None


class RegistrationOutcome(BaseModel):
    error: str | None = None
    message: str | None = None
    registration: RegistrationDTO | None = None
    remaining_capacity: int | None = None
    success: bool


class InvitationDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    created_by_id: int | None = None
    email: str | None = None
    expires_at: datetime
    pk: int
    role: AppRole
    status: InvitationStatus
    token: str
    used_at: datetime | None = None
    used_by_id: int | None = None


class EventDocumentDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    created_at: datetime
    event_id: int
    file_name: str
    file_size: int | None = None
    file_url: str
    pk: int
    uploaded_by_id: int | None = None


class PresentationDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    description: str | None = None
    event_id: int | None = None
    external_links: list[str] = []
    pdf_url: str | None = None
    pk: int
    presentation_date: datetime | None = None
    presenter_id: int | None = None
    title: str
    video_url: str | None = None


class ManagedUserDTO(BaseModel):
    created_at: datetime
    email: str
    first_name: str | None = None
    invitation_accepted: bool
    is_presenter: bool
    last_name: str | None = None
    last_sign_in_at: datetime | None = None
    pk: int
    roles: list[AppRole]


class DeliveryDTO(BaseModel):
    email: str
    error: str | None = None
    success: bool


class NotificationReportDTO(BaseModel):
    failed: int = 0
    message: str | None = None
    registrations_cancelled: int | None = None
    results: list[DeliveryDTO] = []
    sent: int = 0


class CompletedEventsReportDTO(BaseModel):
    count: int
    events: list[EventDTO]
    message: str


@dataclass
class Result[T]:
    """Uniform outcome of a service call.

    Expected failures are reported through ``error`` and never raised.
    """

    data: T | None = None
    error: ServiceError | None = None
    capacity_error: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class EventData(TypedDict, total=False):
    category: EventCategory | None
    created_by_id: int | None
    description: str
    event_date: datetime
    image_url: str | None
    location: str
    participant_limit: int | None
    status: EventStatus
    title: str
    topic: str
    video_url: str | None


class ProfileData(TypedDict, total=False):
    avatar_url: str | None
    bio: str
    email: str
    first_name: str
    is_presenter: bool
    last_name: str
    professional_background: str


class InvitationData(TypedDict):
    created_by_id: int | None
    email: str | None
    expires_at: datetime
    role: AppRole
    token: str


class DocumentData(TypedDict):
    event_id: int
    file_name: str
    file_size: int
    file_url: str
    uploaded_by_id: int | None


class UserRepositoryProtocol(Protocol):
    def create(self, email: str, password: str | None) -> UserDTO: ...
    def read(self, pk: int) -> UserDTO: ...
    def read_by_email(self, email: str) -> UserDTO: ...
    def read_all(self) -> list[UserDTO]: ...
    def confirm_email(self, pk: int) -> None: ...
    def delete(self, pk: int) -> None: ...


class ProfileRepositoryProtocol(Protocol):
    def read(self, user_id: int) -> ProfileDTO: ...
    def read_all(self) -> list[ProfileDTO]: ...
    def upsert(self, user_id: int, profile_data: ProfileData) -> ProfileDTO: ...
    def update(self, user_id: int, profile_data: ProfileData) -> ProfileDTO: ...


class RoleRepositoryProtocol(Protocol):
    def read_roles(self, user_id: int) -> list[AppRole]: ...
    def read_all(self) -> dict[int, list[AppRole]]: ...
    def read_user_ids(self, role: AppRole) -> list[int]: ...
    def has_role(self, user_id: int, role: AppRole) -> bool: ...
    def grant(self, user_id: int, role: AppRole) -> None: ...


class EventRepositoryProtocol(Protocol):
    def create(self, event_data: EventData) -> EventDTO: ...
    def read(self, pk: int) -> EventDTO: ...
    def read_all(self) -> list[EventDTO]: ...
    def read_published(self) -> list[EventDTO]: ...
    def read_upcoming(self, now: datetime) -> list[EventDTO]: ...
    def read_past(self, now: datetime) -> list[EventDTO]: ...
    def read_details(self, pk: int, user_id: int | None) -> EventDetailsDTO: ...
    def update(self, pk: int, event_data: EventData) -> EventDTO: ...
    def delete(self, pk: int) -> None: ...
    def set_status(self, pk: int, status: EventStatus) -> None: ...
    def set_legacy_presenter(self, pk: int, presenter_id: int | None) -> None: ...
    def complete_published_before(self, cutoff: datetime) -> list[EventDTO]: ...


class EventPresenterRepositoryProtocol(Protocol):
    def read_presenters(self, event_id: int) -> list[PresenterInfoDTO]: ...
    def replace(self, event_id: int, presenter_ids: Iterable[int]) -> None: ...


class RegistrationRepositoryProtocol(Protocol):
    def register(
        self, event_id: int, user_id: int, attendee_count: int
    ) -> RegistrationOutcome: ...
    def cancel(self, event_id: int, user_id: int) -> RegistrationOutcome: ...
    def cancel_all(self, event_id: int) -> int: ...
    def count_confirmed(self, event_id: int) -> int: ...
    def read_confirmed_user_ids(self, event_id: int) -> list[int]: ...


class InvitationRepositoryProtocol(Protocol):
    def create(self, invitation_data: InvitationData) -> InvitationDTO: ...
    def read_by_token(self, token: str, *, lock: bool = False) -> InvitationDTO: ...
    def read_all(self) -> list[InvitationDTO]: ...
    def mark_used(self, pk: int, user_id: int) -> None: ...
    def mark_expired(self, pk: int) -> None: ...


class DocumentRepositoryProtocol(Protocol):
    def create(self, document_data: DocumentData) -> EventDocumentDTO: ...
    def read(self, pk: int) -> EventDocumentDTO: ...
    def read_by_event(self, event_id: int) -> list[EventDocumentDTO]: ...
    def delete(self, pk: int) -> None: ...


class PresentationRepositoryProtocol(Protocol):
    def read_by_presenter(self, presenter_id: int) -> list[PresentationDTO]: ...


class UnitOfWorkProtocol(Protocol):
    @staticmethod
    def atomic() -> AbstractContextManager[None]: ...
    @property
    def documents(self) -> DocumentRepositoryProtocol: ...
    @property
    def event_presenters(self) -> EventPresenterRepositoryProtocol: ...
    @property
    def events(self) -> EventRepositoryProtocol: ...
    @property
    def invitations(self) -> InvitationRepositoryProtocol: ...
    @property
    def presentations(self) -> PresentationRepositoryProtocol: ...
    @property
    def profiles(self) -> ProfileRepositoryProtocol: ...
    @property
    def registrations(self) -> RegistrationRepositoryProtocol: ...
    @property
    def roles(self) -> RoleRepositoryProtocol: ...
    @property
    def users(self) -> UserRepositoryProtocol: ...


type AuthListener = Callable[[AuthChange, SessionDTO | None], None]


class IdentityProviderProtocol(Protocol):
    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]: ...
    def get_session(self) -> tuple[SessionDTO | None, AuthError | None]: ...
    def sign_in(self, email: str, password: str) -> AuthError | None: ...
    def sign_out(self) -> None: ...


class FileStorageProtocol(Protocol):
    def upload(self, path: str, content: Any, *, upsert: bool = False) -> str: ...  # noqa: ANN401
    def public_url(self, path: str) -> str: ...
    def path_from_url(self, url: str) -> str: ...
    def remove(self, paths: Iterable[str]) -> None: ...


@dataclass
class EmailMessage:
    html: str
    subject: str
    to: list[str]
    reply_to: str | None = None


class EmailSenderProtocol(Protocol):
    def send(self, message: EmailMessage) -> str: ...


class NamedProfileProtocol(Protocol):
    first_name: str | None
    last_name: str | None


class EmailComposerProtocol(Protocol):
    def invitation(self, email: str, role: AppRole, link: str) -> EmailMessage: ...
    def event_invitation(
        self, event: EventDTO, user: UserDTO, profile: ProfileDTO | None
    ) -> EmailMessage: ...
    def event_cancellation(
        self, event: EventDTO, user: UserDTO, profile: ProfileDTO | None
    ) -> EmailMessage: ...
    def date_change(
        self,
        event: EventDTO,
        user: UserDTO,
        profile: ProfileDTO | None,
        old_date: datetime,
    ) -> EmailMessage: ...
    def reminder(  # noqa: PLR0913
        self,
        event: EventDTO,
        user: UserDTO,
        profile: ProfileDTO | None,
        message: str,
        subject: str | None,
    ) -> EmailMessage: ...
    def contact(  # noqa: PLR0913
        self,
        to: str,
        reason: ContactReason,
        message: str,
        sender_email: str | None,
        sender_name: str | None,
    ) -> EmailMessage: ...
