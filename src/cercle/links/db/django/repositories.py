from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from cercle.adapters.db.django.models import (
    Event,
    EventDocument,
    EventPresenter,
    EventRegistration,
    Invitation,
    Presentation,
    Profile,
    UserRole,
)
from cercle.pacts import (
    AppRole,
    DocumentData,
    DocumentRepositoryProtocol,
    EventData,
    EventDetailsDTO,
    EventDocumentDTO,
    EventDTO,
    EventPresenterRepositoryProtocol,
    EventRepositoryProtocol,
    EventStatus,
    InvitationData,
    InvitationDTO,
    InvitationRepositoryProtocol,
    InvitationStatus,
    NotFoundError,
    PresentationDTO,
    PresentationRepositoryProtocol,
    PresenterInfoDTO,
    ProfileData,
    ProfileDTO,
    ProfileRepositoryProtocol,
    RegistrationDTO,
    RegistrationErrorCode,
    RegistrationOutcome,
    RegistrationRepositoryProtocol,
    RoleRepositoryProtocol,
    UserDTO,
    UserRepositoryProtocol,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from cercle.adapters.db.django.models import User
    from cercle.links.db.django.storage import Storage
else:
    from django.contrib.auth import get_user_model

    User = get_user_model()


REGISTRATION_MESSAGES = {
    RegistrationErrorCode.ALREADY_REGISTERED: "Vous êtes déjà inscrit à cet événement",
    RegistrationErrorCode.CAPACITY_EXCEEDED: "Plus assez de places disponibles",
    RegistrationErrorCode.EVENT_NOT_FOUND: "Événement introuvable",
    RegistrationErrorCode.EVENT_NOT_OPEN: "Les inscriptions ne sont pas ouvertes",
    RegistrationErrorCode.NOT_REGISTERED: "Aucune inscription à annuler",
}


def _confirmed_attendees(event_id: int) -> int:
    return EventRegistration.objects.filter(
        event_id=event_id, status=EventRegistration.Status.CONFIRMED
    ).aggregate(total=Sum("attendee_count"))["total"] or 0


def _failure(
    code: RegistrationErrorCode, remaining_capacity: int | None = None
) -> RegistrationOutcome:
    return RegistrationOutcome(
        success=False,
        error=code,
        message=REGISTRATION_MESSAGES[code],
        remaining_capacity=remaining_capacity,
    )


class UserRepository(UserRepositoryProtocol):
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def create(self, email: str, password: str | None) -> UserDTO:
        user = User.objects.create_user(email=email, password=password)
        self._storage.users[user.pk] = user
        return UserDTO.model_validate(user)

    def read(self, pk: int) -> UserDTO:
        if not (user := self._storage.users.get(pk)):
            try:
                user = User.objects.get(pk=pk)
            except User.DoesNotExist as exception:
                raise NotFoundError from exception
            self._storage.users[pk] = user

        return UserDTO.model_validate(user)

    def read_by_email(self, email: str) -> UserDTO:
        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist as exception:
            raise NotFoundError from exception

        self._storage.users[user.pk] = user
        return UserDTO.model_validate(user)

    @staticmethod
    def read_all() -> list[UserDTO]:
        return [
            UserDTO.model_validate(user)
            for user in User.objects.order_by("-date_joined")
        ]

    def confirm_email(self, pk: int) -> None:
        User.objects.filter(pk=pk, email_confirmed_at__isnull=True).update(
            email_confirmed_at=timezone.now()
        )
        self._storage.users.pop(pk, None)

    def delete(self, pk: int) -> None:
        deleted, _ = User.objects.filter(pk=pk).delete()
        if not deleted:
            raise NotFoundError
        self._storage.users.pop(pk, None)
        self._storage.profiles.pop(pk, None)
        self._storage.roles_by_user.pop(pk, None)


class ProfileRepository(ProfileRepositoryProtocol):
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def read(self, user_id: int) -> ProfileDTO:
        if not (profile := self._storage.profiles.get(user_id)):
            try:
                profile = Profile.objects.get(pk=user_id)
            except Profile.DoesNotExist as exception:
                raise NotFoundError from exception
            self._storage.profiles[user_id] = profile

        return ProfileDTO.model_validate(profile)

    @staticmethod
    def read_all() -> list[ProfileDTO]:
        return [
            ProfileDTO.model_validate(profile)
            for profile in Profile.objects.order_by("last_name", "first_name")
        ]

    def upsert(self, user_id: int, profile_data: ProfileData) -> ProfileDTO:
        profile, _ = Profile.objects.update_or_create(
            user_id=user_id, defaults=dict(profile_data)
        )
        self._storage.profiles[user_id] = profile
        return ProfileDTO.model_validate(profile)

    def update(self, user_id: int, profile_data: ProfileData) -> ProfileDTO:
        try:
            profile = Profile.objects.get(pk=user_id)
        except Profile.DoesNotExist as exception:
            raise NotFoundError from exception

        for key, value in profile_data.items():
            setattr(profile, key, value)
        profile.save()

        self._storage.profiles[user_id] = profile
        return ProfileDTO.model_validate(profile)


class RoleRepository(RoleRepositoryProtocol):
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def read_roles(self, user_id: int) -> list[AppRole]:
        if (roles := self._storage.roles_by_user.get(user_id)) is None:
            roles = sorted(
                AppRole(role)
                for role in UserRole.objects.filter(user_id=user_id).values_list(
                    "role", flat=True
                )
            )
            self._storage.roles_by_user[user_id] = roles

        return list(roles)

    @staticmethod
    def read_all() -> dict[int, list[AppRole]]:
        roles: dict[int, list[AppRole]] = defaultdict(list)
        for user_id, role in UserRole.objects.order_by("role").values_list(
            "user_id", "role"
        ):
            roles[user_id].append(AppRole(role))
        return dict(roles)

    @staticmethod
    def read_user_ids(role: AppRole) -> list[int]:
        return list(UserRole.objects.filter(role=role).values_list("user_id", flat=True))

    @staticmethod
    def has_role(user_id: int, role: AppRole) -> bool:
        # Uncached, admin re-verification reads the current rows.
        return UserRole.objects.filter(user_id=user_id, role=role).exists()

    def grant(self, user_id: int, role: AppRole) -> None:
        UserRole.objects.get_or_create(user_id=user_id, role=role)
        self._storage.roles_by_user.pop(user_id, None)


class EventRepository(EventRepositoryProtocol):
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def create(self, event_data: EventData) -> EventDTO:
        event = Event.objects.create(**event_data)
        self._storage.events[event.pk] = event
        return EventDTO.model_validate(event)

    def read(self, pk: int) -> EventDTO:
        return EventDTO.model_validate(self._read_orm(pk))

    @staticmethod
    def read_all() -> list[EventDTO]:
        return [EventDTO.model_validate(e) for e in Event.objects.order_by("-event_date")]

    @staticmethod
    def read_published() -> list[EventDTO]:
        events = Event.objects.filter(status=Event.Status.PUBLISHED).order_by(
            "event_date"
        )
        return [EventDTO.model_validate(e) for e in events]

    @staticmethod
    def read_upcoming(now: datetime) -> list[EventDTO]:
        events = Event.objects.filter(
            status=Event.Status.PUBLISHED, event_date__gte=now
        ).order_by("event_date")
        return [EventDTO.model_validate(e) for e in events]

    @staticmethod
    def read_past(now: datetime) -> list[EventDTO]:
        events = Event.objects.filter(
            Q(status=Event.Status.COMPLETED)
            | Q(status=Event.Status.PUBLISHED, event_date__lt=now)
        ).order_by("-event_date")
        return [EventDTO.model_validate(e) for e in events]

    def read_details(self, pk: int, user_id: int | None) -> EventDetailsDTO:
        event = self._read_orm(pk)
        presenters = EventPresenterRepository.read_presenters(pk)
        registrations_count = _confirmed_attendees(pk)

        remaining_capacity = None
        if event.participant_limit is not None:
            remaining_capacity = max(event.participant_limit - registrations_count, 0)

        user_registration = None
        if user_id is not None:
            registration = (
                EventRegistration.objects.filter(event_id=pk, user_id=user_id)
                .exclude(status=EventRegistration.Status.CANCELLED)
                .first()
            )
            if registration:
                user_registration = RegistrationDTO.model_validate(registration)

        legacy = None
        if event.presenter_id and not presenters:
            legacy = PresenterInfoDTO.model_validate(
                event.presenter, from_attributes=True
            )

        return EventDetailsDTO(
            event=EventDTO.model_validate(event),
            presenter=presenters[0] if presenters else legacy,
            presenters=presenters or ([legacy] if legacy else []),
            registrations_count=registrations_count,
            remaining_capacity=remaining_capacity,
            user_registration=user_registration,
        )

    def update(self, pk: int, event_data: EventData) -> EventDTO:
        event = self._read_orm(pk)
        for key, value in event_data.items():
            setattr(event, key, value)
        event.save()
        return EventDTO.model_validate(event)

    def delete(self, pk: int) -> None:
        deleted, _ = Event.objects.filter(pk=pk).delete()
        if not deleted:
            raise NotFoundError
        self._storage.events.pop(pk, None)

    def set_status(self, pk: int, status: EventStatus) -> None:
        self.update(pk, EventData(status=status))

    def set_legacy_presenter(self, pk: int, presenter_id: int | None) -> None:
        event = self._read_orm(pk)
        event.presenter_id = presenter_id
        event.save(update_fields=["presenter", "updated_at"])

    def complete_published_before(self, cutoff: datetime) -> list[EventDTO]:
        with transaction.atomic():
            events = list(
                Event.objects.select_for_update().filter(
                    status=Event.Status.PUBLISHED, event_date__lt=cutoff
                )
            )
            for event in events:
                event.status = Event.Status.COMPLETED
                event.save(update_fields=["status", "updated_at"])
                self._storage.events[event.pk] = event

        return [EventDTO.model_validate(event) for event in events]

    def _read_orm(self, pk: int) -> Event:
        if not (event := self._storage.events.get(pk)):
            try:
                event = Event.objects.select_related("presenter").get(pk=pk)
            except Event.DoesNotExist as exception:
                raise NotFoundError from exception
            self._storage.events[pk] = event

        return event


class EventPresenterRepository(EventPresenterRepositoryProtocol):
    @staticmethod
    def read_presenters(event_id: int) -> list[PresenterInfoDTO]:
        rows = (
            EventPresenter.objects.filter(event_id=event_id)
            .select_related("presenter")
            .order_by("display_order")
        )
        return [
            PresenterInfoDTO(
                avatar_url=row.presenter.avatar_url,
                bio=row.presenter.bio,
                display_order=row.display_order,
                first_name=row.presenter.first_name,
                last_name=row.presenter.last_name,
                pk=row.presenter_id,
                professional_background=row.presenter.professional_background,
            )
            for row in rows
        ]

    @staticmethod
    def replace(event_id: int, presenter_ids: Iterable[int]) -> None:
        EventPresenter.objects.filter(event_id=event_id).delete()
        EventPresenter.objects.bulk_create(
            EventPresenter(event_id=event_id, presenter_id=presenter_id, display_order=i)
            for i, presenter_id in enumerate(presenter_ids)
        )


class RegistrationRepository(RegistrationRepositoryProtocol):
    @staticmethod
    def register(event_id: int, user_id: int, attendee_count: int) -> RegistrationOutcome:
        """Register a user under a row lock on the event.

        Business failures are reported in the returned outcome, never raised.

        Returns:
            The registration outcome, with the remaining capacity when limited.
        """
        with transaction.atomic():
            try:
                event = Event.objects.select_for_update().get(pk=event_id)
            except Event.DoesNotExist:
                return _failure(RegistrationErrorCode.EVENT_NOT_FOUND)

            if event.status != Event.Status.PUBLISHED:
                return _failure(RegistrationErrorCode.EVENT_NOT_OPEN)

            registration = EventRegistration.objects.filter(
                event_id=event_id, user_id=user_id
            ).first()
            if registration and registration.status != EventRegistration.Status.CANCELLED:
                return _failure(RegistrationErrorCode.ALREADY_REGISTERED)

            taken = _confirmed_attendees(event_id)
            limit = event.participant_limit
            if limit is not None and taken + attendee_count > limit:
                return _failure(
                    RegistrationErrorCode.CAPACITY_EXCEEDED, max(limit - taken, 0)
                )

            if registration is None:
                registration = EventRegistration(event_id=event_id, user_id=user_id)
            registration.attendee_count = attendee_count
            registration.status = EventRegistration.Status.CONFIRMED
            registration.registered_at = timezone.now()
            registration.save()

        return RegistrationOutcome(
            success=True,
            registration=RegistrationDTO.model_validate(registration),
            remaining_capacity=(
                None if limit is None else limit - taken - attendee_count
            ),
        )

    @staticmethod
    def cancel(event_id: int, user_id: int) -> RegistrationOutcome:
        with transaction.atomic():
            registration = (
                EventRegistration.objects.select_for_update()
                .filter(event_id=event_id, user_id=user_id)
                .exclude(status=EventRegistration.Status.CANCELLED)
                .first()
            )
            if registration is None:
                return _failure(RegistrationErrorCode.NOT_REGISTERED)

            registration.status = EventRegistration.Status.CANCELLED
            registration.save(update_fields=["status"])

        return RegistrationOutcome(
            success=True, registration=RegistrationDTO.model_validate(registration)
        )

    @staticmethod
    def cancel_all(event_id: int) -> int:
        return (
            EventRegistration.objects.filter(event_id=event_id)
            .exclude(status=EventRegistration.Status.CANCELLED)
            .update(status=EventRegistration.Status.CANCELLED)
        )

    @staticmethod
    def count_confirmed(event_id: int) -> int:
        return _confirmed_attendees(event_id)

    @staticmethod
    def read_confirmed_user_ids(event_id: int) -> list[int]:
        return list(
            EventRegistration.objects.filter(
                event_id=event_id, status=EventRegistration.Status.CONFIRMED
            ).values_list("user_id", flat=True)
        )


class InvitationRepository(InvitationRepositoryProtocol):
    @staticmethod
    def create(invitation_data: InvitationData) -> InvitationDTO:
        return InvitationDTO.model_validate(Invitation.objects.create(**invitation_data))

    @staticmethod
    def read_by_token(token: str, *, lock: bool = False) -> InvitationDTO:
        queryset = Invitation.objects.select_for_update() if lock else Invitation.objects
        try:
            invitation = queryset.get(token=token)
        except Invitation.DoesNotExist as exception:
            raise NotFoundError from exception

        return InvitationDTO.model_validate(invitation)

    @staticmethod
    def read_all() -> list[InvitationDTO]:
        return [
            InvitationDTO.model_validate(invitation)
            for invitation in Invitation.objects.order_by("-created_at")
        ]

    @staticmethod
    def mark_used(pk: int, user_id: int) -> None:
        Invitation.objects.filter(pk=pk).update(
            status=InvitationStatus.USED, used_by_id=user_id, used_at=timezone.now()
        )

    @staticmethod
    def mark_expired(pk: int) -> None:
        Invitation.objects.filter(pk=pk, status=InvitationStatus.PENDING).update(
            status=InvitationStatus.EXPIRED
        )


class DocumentRepository(DocumentRepositoryProtocol):
    @staticmethod
    def create(document_data: DocumentData) -> EventDocumentDTO:
        return EventDocumentDTO.model_validate(
            EventDocument.objects.create(**document_data)
        )

    @staticmethod
    def read(pk: int) -> EventDocumentDTO:
        try:
            document = EventDocument.objects.get(pk=pk)
        except EventDocument.DoesNotExist as exception:
            raise NotFoundError from exception

        return EventDocumentDTO.model_validate(document)

    @staticmethod
    def read_by_event(event_id: int) -> list[EventDocumentDTO]:
        documents = EventDocument.objects.filter(event_id=event_id).order_by(
            "created_at"
        )
        return [EventDocumentDTO.model_validate(document) for document in documents]

    @staticmethod
    def delete(pk: int) -> None:
        deleted, _ = EventDocument.objects.filter(pk=pk).delete()
        if not deleted:
            raise NotFoundError


class PresentationRepository(PresentationRepositoryProtocol):
    @staticmethod
    def read_by_presenter(presenter_id: int) -> list[PresentationDTO]:
        presentations = Presentation.objects.filter(presenter_id=presenter_id).order_by(
            "-presentation_date"
        )
        return [PresentationDTO.model_validate(p) for p in presentations]
