from __future__ import annotations

from datetime import datetime, timedelta
from secrets import token_urlsafe
from typing import TYPE_CHECKING, ClassVar

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

if TYPE_CHECKING:
    from typing import Any

INVITATION_TOKEN_BYTES = 32


def default_invitation_token() -> str:
    return token_urlsafe(INVITATION_TOKEN_BYTES)


def default_invitation_expiry() -> datetime:
    return timezone.now() + timedelta(days=settings.INVITATION_TTL_DAYS)


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(
        self, email: str, password: str | None = None, **extra_fields: Any
    ) -> User:
        if not email:
            raise ValueError("The email must be set")
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(
        self, email: str, password: str | None = None, **extra_fields: Any
    ) -> User:
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    EMAIL_FIELD = "email"
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar = []

    date_joined = models.DateTimeField(_("date joined"), default=timezone.now)
    email = models.EmailField(_("email address"), unique=True)
    email_confirmed_at = models.DateTimeField(blank=True, null=True)
    is_active = models.BooleanField(
        _("active"),
        default=True,
        help_text=_(
            "Designates whether this user should be treated as active. "
            "Unselect this instead of deleting accounts."
        ),
    )
    is_staff = models.BooleanField(
        _("staff status"),
        default=False,
        help_text=_("Designates whether the user can log into this admin site."),
    )

    objects = UserManager()

    class Meta:
        db_table = "user"
        verbose_name = _("user")
        verbose_name_plural = _("users")

    def __str__(self) -> str:
        return self.email

    def clean(self) -> None:
        super().clean()
        self.email = self.__class__.objects.normalize_email(self.email)

    @property
    def last_sign_in_at(self) -> datetime | None:
        return self.last_login


class Profile(models.Model):
    user = models.OneToOneField(
        User, on_delete=models.CASCADE, primary_key=True, related_name="profile"
    )
    avatar_url = models.URLField(max_length=500, blank=True, null=True)
    bio = models.TextField(blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    first_name = models.CharField(max_length=255, blank=True, null=True)
    is_presenter = models.BooleanField(default=False)
    last_name = models.CharField(max_length=255, blank=True, null=True)
    professional_background = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "profile"

    def __str__(self) -> str:
        return " ".join(filter(None, (self.first_name, self.last_name))) or self.email or ""


class UserRole(models.Model):
    class Role(models.TextChoices):  # pylint: disable=too-many-ancestors
        ADMIN = "admin", _("Admin")
        PRESENTER = "presenter", _("Presenter")
        PARTICIPANT = "participant", _("Participant")

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="roles")
    role = models.CharField(max_length=20, choices=Role)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "user_role"
        constraints = (
            models.UniqueConstraint(
                fields=("user", "role"), name="constraint_unique_user_role"
            ),
        )

    def __str__(self) -> str:
        return f"{self.user} ({self.role})"


class Event(models.Model):
    class Category(models.TextChoices):  # pylint: disable=too-many-ancestors
        GEOPOLITIQUE = "geopolitique", _("Geopolitics")
        ENJEUX_CLIMATIQUES = "enjeux_climatiques", _("Climate issues")
        SOCIETE_VIOLENCES = "societe_violences", _("Society and violence")
        IDEES_CULTURES_HUMANITES = (
            "idees_cultures_humanites",
            _("Ideas, cultures and humanities"),
        )
        ARTS_ARTISTES = "arts_artistes", _("Arts and artists")
        ECONOMIE_LOCALE = "economie_locale", _("Local economy")
        SCIENCE_MODERNE = "science_moderne", _("Modern science")

    class Status(models.TextChoices):  # pylint: disable=too-many-ancestors
        DRAFT = "draft", _("Draft")
        PUBLISHED = "published", _("Published")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    title = models.CharField(max_length=255)
    category = models.CharField(max_length=50, choices=Category, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    event_date = models.DateTimeField()
    image_url = models.URLField(max_length=500, blank=True, null=True)
    location = models.CharField(max_length=255)
    participant_limit = models.PositiveIntegerField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status, default=Status.DRAFT)
    topic = models.CharField(max_length=255, blank=True, null=True)
    video_url = models.URLField(max_length=500, blank=True, null=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="created_events",
    )
    # Legacy single presenter, mirrored from the first EventPresenter row.
    presenter = models.ForeignKey(
        Profile,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="legacy_events",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "event"
        ordering: ClassVar = ["event_date"]
        constraints = (
            models.CheckConstraint(
                condition=Q(participant_limit__isnull=True)
                | Q(participant_limit__gt=0),
                name="constraint_event_participant_limit_positive",
            ),
        )

    def __str__(self) -> str:
        return self.title


class EventPresenter(models.Model):
    event = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="event_presenters"
    )
    presenter = models.ForeignKey(
        Profile, on_delete=models.CASCADE, related_name="event_presenters"
    )
    display_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "event_presenter"
        ordering: ClassVar = ["display_order"]
        constraints = (
            models.UniqueConstraint(
                fields=("event", "presenter"), name="constraint_unique_event_presenter"
            ),
        )


class EventRegistration(models.Model):
    class Status(models.TextChoices):  # pylint: disable=too-many-ancestors
        CONFIRMED = "confirmed", _("Confirmed")
        WAITLIST = "waitlist", _("Waitlist")
        CANCELLED = "cancelled", _("Cancelled")

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="registrations")
    attendee_count = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=20, choices=Status, default=Status.CONFIRMED)
    registered_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "event_registration"
        constraints = (
            models.UniqueConstraint(
                fields=("event", "user"), name="constraint_unique_event_registration"
            ),
            models.CheckConstraint(
                condition=Q(attendee_count__gt=0),
                name="constraint_registration_attendee_count_positive",
            ),
        )

    def __str__(self) -> str:
        return f"{self.user} @ {self.event} ({self.status})"


class Invitation(models.Model):
    class Status(models.TextChoices):  # pylint: disable=too-many-ancestors
        PENDING = "pending", _("Pending")
        USED = "used", _("Used")
        EXPIRED = "expired", _("Expired")

    token = models.CharField(max_length=64, unique=True, default=default_invitation_token)
    email = models.EmailField(blank=True, null=True)
    role = models.CharField(
        max_length=20, choices=UserRole.Role, default=UserRole.Role.PARTICIPANT
    )
    status = models.CharField(max_length=20, choices=Status, default=Status.PENDING)
    expires_at = models.DateTimeField(default=default_invitation_expiry)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="sent_invitations",
    )
    used_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="used_invitations",
    )
    used_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "invitation"

    def __str__(self) -> str:
        return f"{self.email or '-'} ({self.role}, {self.status})"


class EventDocument(models.Model):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="documents")
    file_name = models.CharField(max_length=255)
    file_url = models.URLField(max_length=500)
    file_size = models.PositiveBigIntegerField(blank=True, null=True)
    uploaded_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, blank=True, null=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "event_document"

    def __str__(self) -> str:
        return self.file_name


class Presentation(models.Model):
    presenter = models.ForeignKey(
        Profile,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="presentations",
    )
    event = models.ForeignKey(
        Event,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="presentations",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    presentation_date = models.DateTimeField(blank=True, null=True)
    pdf_url = models.URLField(max_length=500, blank=True, null=True)
    video_url = models.URLField(max_length=500, blank=True, null=True)
    external_links = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "presentation"

    def __str__(self) -> str:
        return self.title
