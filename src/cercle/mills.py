from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from http import HTTPStatus
from pathlib import PurePath
from secrets import token_urlsafe
from typing import TYPE_CHECKING

from django.db import DatabaseError
from django.utils import timezone

from cercle.gears import derive_is_presenter
from cercle.pacts import (
    AppRole,
    CompletedEventsReportDTO,
    DeliveryDTO,
    DocumentData,
    EmailDeliveryError,
    EventData,
    EventStatus,
    FunctionError,
    InvitationData,
    InvitationStatus,
    ManagedUserDTO,
    NotFoundError,
    NotificationReportDTO,
    ProfileData,
    RecipientType,
    RegistrationErrorCode,
    Result,
    ServiceError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from django.core.files import File

    from cercle.pacts import (
        ContactReason,
        EmailComposerProtocol,
        EmailMessage,
        EmailSenderProtocol,
        EventDetailsDTO,
        EventDocumentDTO,
        EventDTO,
        FileStorageProtocol,
        InvitationDTO,
        NamedProfileProtocol,
        PresentationDTO,
        PresenterInfoDTO,
        ProfileDTO,
        RegistrationDTO,
        UnitOfWorkProtocol,
        UserDTO,
    )

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Sans nom"
UNKNOWN_INITIALS = "?"
REGISTER_FAILURE = "Erreur lors de l'inscription"
CANCEL_FAILURE = "Erreur lors de l'annulation"
ADMIN_REQUIRED = "Admin access required"
NOT_FOUND = "NOT_FOUND"
INVITATION_INVALID = "INVITATION_INVALID"
INVITATION_EXPIRED = "INVITATION_EXPIRED"
INVITATION_EMAIL_MISMATCH = "INVITATION_EMAIL_MISMATCH"
ACCOUNT_EXISTS = "ACCOUNT_EXISTS"
INVITATION_TOKEN_BYTES = 32


def get_profile_display_name(
    profile: NamedProfileProtocol | None, default: str = DEFAULT_DISPLAY_NAME
) -> str:
    if profile is None:
        return default

    first = (profile.first_name or "").strip()
    last = (profile.last_name or "").strip()
    return f"{first} {last}".strip() or default


def get_profile_initials(profile: NamedProfileProtocol | None) -> str:
    if profile is None:
        return UNKNOWN_INITIALS

    first = (profile.first_name or "").strip()
    last = (profile.last_name or "").strip()
    return f"{first[:1]}{last[:1]}".upper() or UNKNOWN_INITIALS


def generate_invitation_link(token: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/connexion/?invitation={token}"


def start_of_day(now: datetime) -> datetime:
    return timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)


def _attempt[T](
    operation: Callable[[], T], failure: str, not_found: str | None = None
) -> Result[T]:
    try:
        return Result(data=operation())
    except NotFoundError:
        return Result(error=ServiceError(not_found or failure, code=NOT_FOUND))
    except DatabaseError as exception:
        logger.exception(failure)
        return Result(error=ServiceError(str(exception) or failure))


class EventService:
    def __init__(self, uow: UnitOfWorkProtocol) -> None:
        self._uow = uow

    def get_published_events(self) -> Result[list[EventDTO]]:
        return _attempt(self._uow.events.read_published, "Could not load events")

    def get_upcoming_events(self, now: datetime | None = None) -> Result[list[EventDTO]]:
        moment = now or timezone.now()
        return _attempt(
            lambda: self._uow.events.read_upcoming(moment), "Could not load events"
        )

    def get_past_events(self, now: datetime | None = None) -> Result[list[EventDTO]]:
        moment = now or timezone.now()
        return _attempt(lambda: self._uow.events.read_past(moment), "Could not load events")

    def get_event_by_id(
        self, event_id: int, user_id: int | None = None
    ) -> Result[EventDetailsDTO]:
        return _attempt(
            lambda: self._uow.events.read_details(event_id, user_id),
            "Could not load event",
            not_found="Event not found",
        )

    def register_for_event(
        self, event_id: int, user_id: int, attendee_count: int = 1
    ) -> Result[RegistrationDTO]:
        try:
            outcome = self._uow.registrations.register(event_id, user_id, attendee_count)
        except DatabaseError as exception:
            logger.exception("Registration of user %s to event %s failed", user_id, event_id)
            return Result(error=ServiceError(str(exception) or REGISTER_FAILURE))

        if not outcome.success:
            return Result(
                error=ServiceError(
                    outcome.message or REGISTER_FAILURE, code=outcome.error or ""
                ),
                capacity_error=outcome.error == RegistrationErrorCode.CAPACITY_EXCEEDED,
            )

        logger.info("User %s registered to event %s", user_id, event_id)
        return Result(data=outcome.registration)

    def cancel_registration(self, event_id: int, user_id: int) -> Result[RegistrationDTO]:
        try:
            outcome = self._uow.registrations.cancel(event_id, user_id)
        except DatabaseError as exception:
            logger.exception("Cancellation for user %s on event %s failed", user_id, event_id)
            return Result(error=ServiceError(str(exception) or CANCEL_FAILURE))

        if not outcome.success:
            return Result(
                error=ServiceError(outcome.message or CANCEL_FAILURE, code=outcome.error or "")
            )

        return Result(data=outcome.registration)

    def get_all_events(self) -> Result[list[EventDTO]]:
        return _attempt(self._uow.events.read_all, "Could not load events")

    def create_event(self, event_data: EventData) -> Result[EventDTO]:
        return _attempt(
            lambda: self._uow.events.create(event_data), "Could not create event"
        )

    def update_event(self, event_id: int, event_data: EventData) -> Result[EventDTO]:
        return _attempt(
            lambda: self._uow.events.update(event_id, event_data),
            "Could not update event",
            not_found="Event not found",
        )

    def delete_event(self, event_id: int) -> Result[None]:
        return _attempt(
            lambda: self._uow.events.delete(event_id),
            "Could not delete event",
            not_found="Event not found",
        )


class PresenterService:
    def __init__(
        self, uow: UnitOfWorkProtocol, avatars: FileStorageProtocol | None = None
    ) -> None:
        self._uow = uow
        self._avatars = avatars

    def get_event_presenters(self, event_id: int) -> Result[list[PresenterInfoDTO]]:
        return _attempt(
            lambda: self._uow.event_presenters.read_presenters(event_id),
            "Could not load presenters",
        )

    def set_event_presenters(
        self, event_id: int, presenter_ids: Iterable[int]
    ) -> Result[list[PresenterInfoDTO]]:
        """Replace the ordered presenter list of an event.

        The legacy single-presenter field follows the first entry.

        Returns:
            The stored presenters in display order.
        """
        ordered = list(dict.fromkeys(presenter_ids))

        def replace() -> list[PresenterInfoDTO]:
            with self._uow.atomic():
                self._uow.events.read(event_id)
                self._uow.event_presenters.replace(event_id, ordered)
                self._uow.events.set_legacy_presenter(
                    event_id, ordered[0] if ordered else None
                )
            return self._uow.event_presenters.read_presenters(event_id)

        return _attempt(replace, "Could not save presenters", not_found="Event not found")

    def get_presenters(self) -> Result[list[ProfileDTO]]:
        def read() -> list[ProfileDTO]:
            role_holders = set(self._uow.roles.read_user_ids(AppRole.PRESENTER))
            return [
                profile
                for profile in self._uow.profiles.read_all()
                if derive_is_presenter(
                    [AppRole.PRESENTER] if profile.pk in role_holders else [], profile
                )
            ]

        return _attempt(read, "Could not load presenters")

    def delete_presenter(self, presenter_id: int) -> Result[ProfileDTO]:
        return _attempt(
            lambda: self._uow.profiles.update(presenter_id, ProfileData(is_presenter=False)),
            "Could not remove presenter",
            not_found="Presenter not found",
        )

    def upload_presenter_avatar(self, presenter_id: int, file: File) -> Result[str]:
        if self._avatars is None:
            return Result(error=ServiceError("Avatar storage is not configured"))

        extension = PurePath(file.name or "").suffix.lstrip(".").lower() or "jpg"

        def upload() -> str:
            self._uow.profiles.read(presenter_id)
            path = self._avatars.upload(  # type: ignore [union-attr]
                f"presenters/{presenter_id}.{extension}", file, upsert=True
            )
            url = self._avatars.public_url(path)  # type: ignore [union-attr]
            self._uow.profiles.update(presenter_id, ProfileData(avatar_url=url))
            return url

        return _attempt(upload, "Could not upload avatar", not_found="Presenter not found")


class ProfileService:
    def __init__(self, uow: UnitOfWorkProtocol) -> None:
        self._uow = uow

    def get_profile_by_id(self, user_id: int) -> Result[ProfileDTO]:
        return _attempt(
            lambda: self._uow.profiles.read(user_id),
            "Could not load profile",
            not_found="Profile not found",
        )

    def get_all_profiles(self) -> Result[list[ProfileDTO]]:
        return _attempt(self._uow.profiles.read_all, "Could not load profiles")

    def update_profile(self, user_id: int, profile_data: ProfileData) -> Result[ProfileDTO]:
        return _attempt(
            lambda: self._uow.profiles.upsert(user_id, profile_data),
            "Could not update profile",
        )


class PresentationService:
    def __init__(self, uow: UnitOfWorkProtocol) -> None:
        self._uow = uow

    def get_presentations_by_presenter(
        self, presenter_id: int
    ) -> Result[list[PresentationDTO]]:
        return _attempt(
            lambda: self._uow.presentations.read_by_presenter(presenter_id),
            "Could not load presentations",
        )


class InvitationService:
    def __init__(self, uow: UnitOfWorkProtocol, ttl_days: int) -> None:
        self._uow = uow
        self._ttl_days = ttl_days

    def create_invitation(
        self, email: str | None, role: AppRole, created_by: int | None
    ) -> Result[InvitationDTO]:
        invitation_data = InvitationData(
            created_by_id=created_by,
            email=email or None,
            expires_at=timezone.now() + timedelta(days=self._ttl_days),
            role=role,
            token=token_urlsafe(INVITATION_TOKEN_BYTES),
        )
        return _attempt(
            lambda: self._uow.invitations.create(invitation_data),
            "Could not create invitation",
        )

    def get_invitations(self) -> Result[list[InvitationDTO]]:
        return _attempt(self._uow.invitations.read_all, "Could not load invitations")

    def validate_invitation_token(
        self, token: str, now: datetime | None = None
    ) -> Result[InvitationDTO]:
        try:
            invitation = self._uow.invitations.read_by_token(token)
        except NotFoundError:
            return Result(error=ServiceError("Invitation not found", code=INVITATION_INVALID))
        except DatabaseError as exception:
            logger.exception("Could not read invitation")
            return Result(error=ServiceError(str(exception)))

        if error := self._check_usable(invitation, now or timezone.now()):
            return Result(error=error)

        return Result(data=invitation)

    def accept_invitation(  # noqa: PLR0913
        self,
        token: str,
        *,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
        now: datetime | None = None,
    ) -> Result[UserDTO]:
        """Consume an invitation and create the invited account.

        The invitation row is locked for the duration of the transaction, so a
        token can be consumed exactly once.

        Returns:
            The created user, or an error describing why the token was refused.
        """
        moment = now or timezone.now()
        try:
            with self._uow.atomic():
                try:
                    invitation = self._uow.invitations.read_by_token(token, lock=True)
                except NotFoundError:
                    return Result(
                        error=ServiceError("Invitation not found", code=INVITATION_INVALID)
                    )

                if error := self._check_usable(invitation, moment):
                    return Result(error=error)

                if invitation.email and invitation.email.lower() != email.lower():
                    return Result(
                        error=ServiceError(
                            "This invitation was sent to another address",
                            code=INVITATION_EMAIL_MISMATCH,
                        )
                    )

                try:
                    self._uow.users.read_by_email(email)
                except NotFoundError:
                    pass
                else:
                    return Result(
                        error=ServiceError(
                            "An account already exists for this email", code=ACCOUNT_EXISTS
                        )
                    )

                user = self._uow.users.create(email, password)
                self._uow.users.confirm_email(user.pk)
                self._uow.roles.grant(user.pk, invitation.role)
                self._uow.profiles.upsert(
                    user.pk,
                    ProfileData(
                        email=email,
                        first_name=first_name.strip(),
                        last_name=last_name.strip(),
                        is_presenter=invitation.role == AppRole.PRESENTER,
                    ),
                )
                self._uow.invitations.mark_used(invitation.pk, user.pk)
        except DatabaseError as exception:
            logger.exception("Could not accept invitation")
            return Result(error=ServiceError(str(exception)))

        logger.info("Invitation %s accepted by user %s", invitation.pk, user.pk)
        return Result(data=self._uow.users.read(user.pk))

    def _check_usable(self, invitation: InvitationDTO, now: datetime) -> ServiceError | None:
        if invitation.status == InvitationStatus.USED:
            return ServiceError("Invitation already used", code=INVITATION_INVALID)

        if invitation.status == InvitationStatus.EXPIRED or invitation.expires_at <= now:
            if invitation.status == InvitationStatus.PENDING:
                self._uow.invitations.mark_expired(invitation.pk)
            return ServiceError("Invitation expired", code=INVITATION_EXPIRED)

        return None


class DocumentService:
    def __init__(self, uow: UnitOfWorkProtocol, bucket: FileStorageProtocol) -> None:
        self._uow = uow
        self._bucket = bucket

    def get_event_documents(self, event_id: int) -> Result[list[EventDocumentDTO]]:
        return _attempt(
            lambda: self._uow.documents.read_by_event(event_id),
            "Could not load documents",
        )

    def upload_event_document(
        self, event_id: int, file: File, user_id: int | None
    ) -> Result[EventDocumentDTO]:
        name = PurePath(file.name or "document.pdf").name

        def upload() -> EventDocumentDTO:
            self._uow.events.read(event_id)
            path = self._bucket.upload(f"{event_id}/{int(time.time() * 1000)}-{name}", file)
            try:
                return self._uow.documents.create(
                    DocumentData(
                        event_id=event_id,
                        file_name=name,
                        file_size=file.size or 0,
                        file_url=self._bucket.public_url(path),
                        uploaded_by_id=user_id,
                    )
                )
            except DatabaseError:
                self._bucket.remove([path])
                raise

        return _attempt(upload, "Could not upload document", not_found="Event not found")

    def delete_event_document(self, document_id: int) -> Result[None]:
        def delete() -> None:
            document = self._uow.documents.read(document_id)
            self._bucket.remove([self._bucket.path_from_url(document.file_url)])
            self._uow.documents.delete(document_id)

        return _attempt(delete, "Could not delete document", not_found="Document not found")


class EventMediaService:
    def __init__(
        self,
        uow: UnitOfWorkProtocol,
        images: FileStorageProtocol,
        videos: FileStorageProtocol,
    ) -> None:
        self._uow = uow
        self._images = images
        self._videos = videos

    def upload_event_image(self, event_id: int, file: File) -> Result[EventDTO]:
        return self._upload(event_id, file, self._images, "image_url")

    def upload_event_video(self, event_id: int, file: File) -> Result[EventDTO]:
        return self._upload(event_id, file, self._videos, "video_url")

    def remove_event_video(self, event_id: int) -> Result[EventDTO]:
        def remove() -> EventDTO:
            event = self._uow.events.read(event_id)
            if event.video_url:
                self._videos.remove([self._videos.path_from_url(event.video_url)])
            return self._uow.events.update(event_id, EventData(video_url=None))

        return _attempt(remove, "Could not remove video", not_found="Event not found")

    def _upload(
        self, event_id: int, file: File, bucket: FileStorageProtocol, field: str
    ) -> Result[EventDTO]:
        extension = PurePath(file.name or "").suffix.lower()

        def upload() -> EventDTO:
            event = self._uow.events.read(event_id)
            if previous := getattr(event, field):
                bucket.remove([bucket.path_from_url(previous)])
            path = bucket.upload(f"{event_id}/{int(time.time() * 1000)}{extension}", file)
            return self._uow.events.update(
                event_id, EventData(**{field: bucket.public_url(path)})  # type: ignore [typeddict-item]
            )

        return _attempt(upload, "Could not upload file", not_found="Event not found")


class FunctionsService:
    """Privileged operations; every admin entry point re-checks the caller's role."""

    def __init__(
        self,
        uow: UnitOfWorkProtocol,
        mailer: EmailSenderProtocol,
        emails: EmailComposerProtocol,
        *,
        contact_email: str,
    ) -> None:
        self._uow = uow
        self._mailer = mailer
        self._emails = emails
        self._contact_email = contact_email

    def require_admin(self, caller_id: int | None) -> None:
        if caller_id is None:
            raise FunctionError("Unauthorized", HTTPStatus.UNAUTHORIZED)
        if not self._uow.roles.has_role(caller_id, AppRole.ADMIN):
            logger.warning("User %s attempted a privileged call", caller_id)
            raise FunctionError(ADMIN_REQUIRED, HTTPStatus.FORBIDDEN)

    def get_users(self, caller_id: int | None) -> list[ManagedUserDTO]:
        self.require_admin(caller_id)

        roles = self._uow.roles.read_all()
        profiles = {profile.pk: profile for profile in self._uow.profiles.read_all()}
        managed = []
        for user in self._uow.users.read_all():
            profile = profiles.get(user.pk)
            user_roles = roles.get(user.pk, [])
            managed.append(
                ManagedUserDTO(
                    created_at=user.date_joined or timezone.now(),
                    email=user.email,
                    first_name=profile.first_name if profile else None,
                    invitation_accepted=user.email_confirmed_at is not None,
                    is_presenter=derive_is_presenter(user_roles, profile),
                    last_name=profile.last_name if profile else None,
                    last_sign_in_at=user.last_sign_in_at,
                    pk=user.pk,
                    roles=user_roles,
                )
            )
        return managed

    def invite_user(
        self,
        caller_id: int | None,
        *,
        email: str,
        role: AppRole,
        app_url: str,
        ttl_days: int,
    ) -> tuple[InvitationDTO, NotificationReportDTO]:
        self.require_admin(caller_id)

        result = InvitationService(self._uow, ttl_days).create_invitation(
            email, role, caller_id
        )
        if result.data is None:
            raise FunctionError(
                result.error.message if result.error else "Could not create invitation",
                HTTPStatus.INTERNAL_SERVER_ERROR,
            )

        link = generate_invitation_link(result.data.token, app_url)
        report = self._deliver([self._emails.invitation(email, role, link)])
        return result.data, report

    def delete_user(self, caller_id: int | None, user_id: int) -> None:
        self.require_admin(caller_id)
        if caller_id == user_id:
            raise FunctionError("You cannot delete your own account", HTTPStatus.BAD_REQUEST)

        try:
            self._uow.users.delete(user_id)
        except NotFoundError as exception:
            raise FunctionError("User not found", HTTPStatus.NOT_FOUND) from exception
        logger.info("User %s deleted by %s", user_id, caller_id)

    def send_event_invitations(
        self,
        caller_id: int | None,
        event_id: int,
        user_ids: Iterable[int] = (),
        *,
        send_to_all: bool = False,
    ) -> NotificationReportDTO:
        self.require_admin(caller_id)
        event = self._read_event(event_id)

        selected = None if send_to_all else set(user_ids)
        recipients = [
            user
            for user in self._uow.users.read_all()
            if selected is None or user.pk in selected
        ]
        if not recipients:
            raise FunctionError("No users to notify", HTTPStatus.BAD_REQUEST)

        report = self._deliver(
            self._emails.event_invitation(event, user, self._profile(user.pk))
            for user in recipients
        )
        self._uow.events.set_status(event_id, EventStatus.PUBLISHED)
        logger.info("Event %s published, %d invitations sent", event_id, report.sent)
        return report

    def send_event_cancellation(
        self, caller_id: int | None, event_id: int
    ) -> NotificationReportDTO:
        self.require_admin(caller_id)
        event = self._read_event(event_id)

        registrant_ids = self._uow.registrations.read_confirmed_user_ids(event_id)
        report = self._deliver(
            self._emails.event_cancellation(event, user, self._profile(user.pk))
            for user in self._users(registrant_ids)
        )
        self._uow.events.set_status(event_id, EventStatus.CANCELLED)
        if not registrant_ids:
            report.message = "No registered users to notify"
        return report

    def send_date_change_notification(
        self,
        caller_id: int | None,
        event_id: int,
        old_date: datetime,
        new_date: datetime,
    ) -> NotificationReportDTO:
        """Move an event, cancel all its registrations and tell every member.

        Returns:
            Delivery counts and the number of registrations cancelled.

        Raises:
            FunctionError: 400 when no member can be told; the move and the
                cancellations are kept.
        """
        self.require_admin(caller_id)
        self._read_event(event_id)

        with self._uow.atomic():
            cancelled = self._uow.registrations.cancel_all(event_id)
            event = self._uow.events.update(event_id, EventData(event_date=new_date))

        recipients = [u for u in self._uow.users.read_all() if u.email_confirmed_at]
        if not recipients:
            logger.warning("Event %s moved with nobody to notify", event_id)
            raise FunctionError("No users to notify", HTTPStatus.BAD_REQUEST)

        report = self._deliver(
            self._emails.date_change(event, user, self._profile(user.pk), old_date)
            for user in recipients
        )
        report.registrations_cancelled = cancelled
        logger.info(
            "Event %s moved, %d registrations cancelled, %d members notified",
            event_id,
            cancelled,
            report.sent,
        )
        return report

    def send_event_reminder(  # noqa: PLR0913
        self,
        caller_id: int | None,
        event_id: int,
        *,
        recipient_type: RecipientType,
        custom_message: str,
        subject: str | None = None,
        user_ids: Iterable[int] = (),
    ) -> NotificationReportDTO:
        self.require_admin(caller_id)
        if not custom_message.strip():
            raise FunctionError("Message is required", HTTPStatus.BAD_REQUEST)
        event = self._read_event(event_id)

        eligible = [u for u in self._uow.users.read_all() if u.email_confirmed_at]
        registered = set(self._uow.registrations.read_confirmed_user_ids(event_id))
        selected = set(user_ids)
        match recipient_type:
            case RecipientType.REGISTERED:
                recipients = [u for u in eligible if u.pk in registered]
            case RecipientType.NOT_REGISTERED:
                recipients = [u for u in eligible if u.pk not in registered]
            case RecipientType.SPECIFIC:
                recipients = [u for u in eligible if u.pk in selected]
            case _:
                recipients = eligible

        if not recipients:
            raise FunctionError("No users to notify", HTTPStatus.BAD_REQUEST)

        return self._deliver(
            self._emails.reminder(
                event, user, self._profile(user.pk), custom_message, subject
            )
            for user in recipients
        )

    def send_contact_email(
        self,
        *,
        reason: ContactReason,
        message: str,
        sender_email: str | None = None,
        sender_name: str | None = None,
    ) -> NotificationReportDTO:
        if not message.strip():
            raise FunctionError("Message is required", HTTPStatus.BAD_REQUEST)

        email = self._emails.contact(
            self._contact_email, reason, message, sender_email, sender_name
        )
        report = self._deliver([email])
        if report.failed:
            raise FunctionError("Could not send message", HTTPStatus.INTERNAL_SERVER_ERROR)
        return report

    def mark_completed_events(self, now: datetime | None = None) -> CompletedEventsReportDTO:
        cutoff = start_of_day(now or timezone.now())
        events = self._uow.events.complete_published_before(cutoff)
        logger.info("Marked %d events as completed", len(events))
        return CompletedEventsReportDTO(
            count=len(events),
            events=events,
            message=f"{len(events)} event(s) marked as completed",
        )

    def _read_event(self, event_id: int) -> EventDTO:
        try:
            return self._uow.events.read(event_id)
        except NotFoundError as exception:
            raise FunctionError("Event not found", HTTPStatus.NOT_FOUND) from exception

    def _profile(self, user_id: int) -> ProfileDTO | None:
        try:
            return self._uow.profiles.read(user_id)
        except NotFoundError:
            return None

    def _users(self, user_ids: Iterable[int]) -> list[UserDTO]:
        wanted = set(user_ids)
        return [user for user in self._uow.users.read_all() if user.pk in wanted]

    def _deliver(self, messages: Iterable[EmailMessage]) -> NotificationReportDTO:
        report = NotificationReportDTO()
        for message in messages:
            recipient = ", ".join(message.to)
            try:
                self._mailer.send(message)
            except EmailDeliveryError as exception:
                report.failed += 1
                report.results.append(
                    DeliveryDTO(email=recipient, success=False, error=str(exception))
                )
            else:
                report.sent += 1
                report.results.append(DeliveryDTO(email=recipient, success=True))
        return report

