from collections.abc import Sequence
from typing import ClassVar

from django.contrib import admin

from cercle.adapters.db.django.models import (
    Event,
    EventDocument,
    EventPresenter,
    EventRegistration,
    Invitation,
    Presentation,
    Profile,
    User,
    UserRole,
)


class EventPresenterInline(admin.TabularInline):  # type: ignore [type-arg]
    model = EventPresenter
    extra = 0


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    inlines: ClassVar = [EventPresenterInline]
    list_display: ClassVar[Sequence[str]] = ("title", "event_date", "status")
    list_filter: ClassVar[Sequence[str]] = ("status", "category")


@admin.register(EventDocument)
class EventDocumentAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    ...


@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    list_display: ClassVar[Sequence[str]] = ("event", "user", "status")


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    list_display: ClassVar[Sequence[str]] = ("email", "role", "status", "expires_at")


@admin.register(Presentation)
class PresentationAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    ...


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    list_display: ClassVar[Sequence[str]] = ("user", "first_name", "last_name")


@admin.register(User)
class UserAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    search_fields: ClassVar[Sequence[str]] = ("email",)


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):  # type: ignore [type-arg]
    ...
