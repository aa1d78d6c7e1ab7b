from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

from django.db import transaction

from cercle.links.db.django import repositories
from cercle.links.db.django.storage import Storage
from cercle.pacts import UnitOfWorkProtocol

if TYPE_CHECKING:
    from contextlib import AbstractContextManager


class UnitOfWork(UnitOfWorkProtocol):
    def __init__(self) -> None:
        self._storage = Storage()

    @staticmethod
    def atomic() -> AbstractContextManager[None]:
        return transaction.atomic()

    @cached_property
    def documents(self) -> repositories.DocumentRepository:
        return repositories.DocumentRepository()

    @cached_property
    def event_presenters(self) -> repositories.EventPresenterRepository:
        return repositories.EventPresenterRepository()

    @cached_property
    def events(self) -> repositories.EventRepository:
        return repositories.EventRepository(self._storage)

    @cached_property
    def invitations(self) -> repositories.InvitationRepository:
        return repositories.InvitationRepository()

    @cached_property
    def presentations(self) -> repositories.PresentationRepository:
        return repositories.PresentationRepository()

    @cached_property
    def profiles(self) -> repositories.ProfileRepository:
        return repositories.ProfileRepository(self._storage)

    @cached_property
    def registrations(self) -> repositories.RegistrationRepository:
        return repositories.RegistrationRepository()

    @cached_property
    def roles(self) -> repositories.RoleRepository:
        return repositories.RoleRepository(self._storage)

    @cached_property
    def users(self) -> repositories.UserRepository:
        return repositories.UserRepository(self._storage)
