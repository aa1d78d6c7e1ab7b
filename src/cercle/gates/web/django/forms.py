"""Django forms for member pages, the admin panel and the functions."""

from collections.abc import Callable
from typing import Any

from django import forms
from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import UploadedFile

from cercle.i18n import translate_lazy as _
from cercle.pacts import (
    AppRole,
    ContactReason,
    EventCategory,
    EventData,
    ProfileData,
    RecipientType,
)

MAX_EMAIL_LENGTH = 255
MAX_MESSAGE_LENGTH = 5000
MEGABYTE = 1024 * 1024


def _choices(enum: type[Any]) -> list[tuple[str, str]]:
    return [(member.value, member.value) for member in enum]


class _IntListField(forms.Field):
    """Ordered multi-value integer field that silently skips non-integer values."""

    widget = forms.SelectMultiple

    def clean(self, value: list[str] | None) -> list[int]:
        super().clean(value)
        if not value:
            return []
        result = []
        for v in value:
            try:
                result.append(int(v))
            except (ValueError, TypeError):
                continue
        return result


def _upload_validator(
    max_size: Callable[[], int], accepts: Callable[[str], bool], wrong_type: str
) -> Callable[[UploadedFile], None]:
    def validate(file: UploadedFile) -> None:
        if not accepts(file.content_type or ""):
            raise ValidationError(_(wrong_type))
        limit = max_size()
        if file.size is not None and file.size > limit:
            raise ValidationError(
                _("forms.file_too_large"), params={"size": limit // MEGABYTE}
            )

    return validate


validate_image = _upload_validator(
    lambda: settings.MAX_IMAGE_SIZE,
    lambda t: t.startswith("image/"),
    "forms.image_expected",
)
validate_video = _upload_validator(
    lambda: settings.MAX_VIDEO_SIZE,
    lambda t: t.startswith("video/"),
    "forms.video_expected",
)
validate_pdf = _upload_validator(
    lambda: settings.MAX_DOCUMENT_SIZE,
    lambda t: t == "application/pdf",
    "forms.pdf_expected",
)


class LoginForm(forms.Form):
    email = forms.EmailField(max_length=MAX_EMAIL_LENGTH)
    password = forms.CharField(strip=False)


class LanguageForm(forms.Form):
    language = forms.ChoiceField(
        required=False, choices=[("fr", "Français"), ("en", "English")]
    )


class RegistrationForm(forms.Form):
    attendee_count = forms.IntegerField(
        required=False,
        min_value=1,
        error_messages={"min_value": _("forms.attendee_min")},
    )

    def clean_attendee_count(self) -> int:
        return self.cleaned_data.get("attendee_count") or 1


class EventForm(forms.Form):
    """Form for creating/editing events.

    The status is not editable here: events start as drafts and only move on
    through the invitation, cancellation and completion flows.
    """

    title = forms.CharField(
        max_length=255,
        strip=True,
        error_messages={
            "max_length": _("forms.title_too_long"),
            "required": _("forms.title_required"),
        },
    )
    category = forms.ChoiceField(
        required=False, choices=[("", "-"), *_choices(EventCategory)]
    )
    topic = forms.CharField(required=False, max_length=255)
    description = forms.CharField(required=False, widget=forms.Textarea)
    event_date = forms.DateTimeField(
        error_messages={"required": _("forms.date_required")}
    )
    location = forms.CharField(
        max_length=255, error_messages={"required": _("forms.location_required")}
    )
    participant_limit = forms.IntegerField(
        required=False,
        min_value=1,
        error_messages={"min_value": _("forms.limit_min")},
    )
    notify_date_change = forms.BooleanField(required=False)

    def to_event_data(self) -> EventData:
        data = self.cleaned_data
        return EventData(
            category=EventCategory(data["category"]) if data["category"] else None,
            description=data["description"],
            event_date=data["event_date"],
            location=data["location"],
            participant_limit=data["participant_limit"],
            title=data["title"],
            topic=data["topic"],
        )


class ProfileForm(forms.Form):
    first_name = forms.CharField(
        max_length=150, error_messages={"required": _("forms.first_name_required")}
    )
    last_name = forms.CharField(
        max_length=150, error_messages={"required": _("forms.last_name_required")}
    )
    bio = forms.CharField(required=False, widget=forms.Textarea)
    professional_background = forms.CharField(required=False, widget=forms.Textarea)

    def to_profile_data(self) -> ProfileData:
        return ProfileData(**self.cleaned_data)  # type: ignore [typeddict-item]


class InviteUserForm(forms.Form):
    email = forms.EmailField(
        max_length=MAX_EMAIL_LENGTH,
        error_messages={
            "invalid": _("forms.email_invalid"),
            "max_length": _("forms.email_too_long"),
            "required": _("forms.email_required"),
        },
    )
    role = forms.ChoiceField(
        choices=_choices(AppRole),
        error_messages={"invalid_choice": _("forms.role_invalid")},
    )


class AcceptInvitationForm(forms.Form):
    email = forms.EmailField(max_length=MAX_EMAIL_LENGTH)
    first_name = forms.CharField(
        max_length=150, error_messages={"required": _("forms.first_name_required")}
    )
    last_name = forms.CharField(
        max_length=150, error_messages={"required": _("forms.last_name_required")}
    )
    password = forms.CharField(strip=False)
    password_confirm = forms.CharField(strip=False)

    def clean_password(self) -> str:
        password: str = self.cleaned_data["password"]
        validate_password(password)
        return password

    def clean(self) -> dict[str, Any]:
        data = super().clean() or {}
        password = data.get("password")
        if password and password != data.get("password_confirm"):
            self.add_error("password_confirm", _("forms.passwords_mismatch"))
        return data


class ContactForm(forms.Form):
    reason = forms.ChoiceField(choices=_choices(ContactReason))
    message = forms.CharField(
        max_length=MAX_MESSAGE_LENGTH,
        error_messages={"required": _("forms.message_required")},
    )
    sender_email = forms.EmailField(required=False, max_length=MAX_EMAIL_LENGTH)
    sender_name = forms.CharField(required=False, max_length=255)


class PresenterSelectionForm(forms.Form):
    presenter_ids = _IntListField(required=False)


class EventInvitationsForm(forms.Form):
    send_to_all = forms.BooleanField(required=False)
    user_ids = _IntListField(required=False)


class ReminderForm(forms.Form):
    recipient_type = forms.ChoiceField(
        required=False, choices=_choices(RecipientType), initial=RecipientType.ALL
    )
    custom_message = forms.CharField(
        max_length=MAX_MESSAGE_LENGTH,
        error_messages={"required": _("forms.message_required")},
    )
    subject = forms.CharField(required=False, max_length=255)
    user_ids = _IntListField(required=False)

    def clean_recipient_type(self) -> RecipientType:
        return RecipientType(self.cleaned_data.get("recipient_type") or RecipientType.ALL)


class DateChangeForm(forms.Form):
    event_id = forms.IntegerField()
    old_date = forms.DateTimeField()
    new_date = forms.DateTimeField()


class EventTargetForm(forms.Form):
    event_id = forms.IntegerField()


class UserTargetForm(forms.Form):
    user_id = forms.IntegerField()


class ImageUploadForm(forms.Form):
    file = forms.FileField(validators=[validate_image])


class VideoUploadForm(forms.Form):
    file = forms.FileField(validators=[validate_video])


class DocumentUploadForm(forms.Form):
    file = forms.FileField(validators=[validate_pdf])


class EventInvitationsFunctionForm(EventTargetForm, EventInvitationsForm):
    pass


class ReminderFunctionForm(EventTargetForm, ReminderForm):
    pass
