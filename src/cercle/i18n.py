"""Active UI language, static translation table and date formatting."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from django.utils import timezone, translation
from django.utils.dateformat import format as format_date
from django.utils.functional import lazy

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from datetime import datetime

LANGUAGE_KEY = "language"


class Language(StrEnum):
    FR = "fr"
    EN = "en"


DEFAULT_LANGUAGE = Language.FR

TRANSLATIONS: dict[Language, dict[str, str]] = {
    Language.FR: {
        "auth.invalid_credentials": "Email ou mot de passe incorrect",
        "auth.signed_in": "Connexion réussie",
        "auth.signed_out": "Vous avez été déconnecté",
        "auth.session_expired": "Votre session a expiré, veuillez vous reconnecter",
        "contact.sent": "Votre message a bien été envoyé",
        "documents.deleted": "Document supprimé",
        "documents.uploaded": "Document ajouté",
        "events.cancel_error": "Erreur lors de l'annulation",
        "events.cancelled": "Votre inscription a été annulée",
        "events.capacity_exceeded": "Cet événement est complet",
        "events.created": "Événement créé",
        "events.deleted": "Événement supprimé",
        "events.not_found": "Événement introuvable",
        "events.register_error": "Erreur lors de l'inscription",
        "events.registered": "Inscription confirmée",
        "events.updated": "Événement mis à jour",
        "invitations.created": "Invitation créée",
        "invitations.expired": "Cette invitation a expiré",
        "invitations.invalid": "Invitation invalide ou déjà utilisée",
        "presenters.removed": "Intervenant retiré",
        "presenters.updated": "Intervenants mis à jour",
        "profile.not_found": "Profil introuvable",
        "profile.updated": "Profil mis à jour",
        "profile.password_updated": "Mot de passe mis à jour",
        "common.unknown_name": "Sans nom",
        "forms.attendee_min": "Au moins une personne doit être inscrite.",
        "forms.date_required": "La date est obligatoire.",
        "forms.email_invalid": "Adresse email invalide.",
        "forms.email_required": "L'adresse email est obligatoire.",
        "forms.email_too_long": "L'adresse email est trop longue.",
        "forms.file_too_large": "Fichier trop volumineux (%(size)d Mo maximum).",
        "forms.first_name_required": "Le prénom est obligatoire.",
        "forms.image_expected": "Type de fichier non pris en charge, une image est attendue.",
        "forms.last_name_required": "Le nom est obligatoire.",
        "forms.limit_min": "La limite de participants doit être d'au moins 1.",
        "forms.location_required": "Le lieu est obligatoire.",
        "forms.message_required": "Le message est obligatoire.",
        "forms.passwords_mismatch": "Les mots de passe ne correspondent pas.",
        "forms.pdf_expected": "Type de fichier non pris en charge, un PDF est attendu.",
        "forms.role_invalid": "Rôle invalide.",
        "forms.title_required": "Le titre est obligatoire.",
        "forms.title_too_long": "Le titre est trop long (255 caractères maximum).",
        "forms.video_expected": "Type de fichier non pris en charge, une vidéo est attendue.",
    },
    Language.EN: {
        "auth.invalid_credentials": "Invalid email or password",
        "auth.signed_in": "Signed in successfully",
        "auth.signed_out": "You have been signed out",
        "auth.session_expired": "Your session has expired, please sign in again",
        "contact.sent": "Your message has been sent",
        "documents.deleted": "Document deleted",
        "documents.uploaded": "Document uploaded",
        "events.cancel_error": "Error while cancelling",
        "events.cancelled": "Your registration has been cancelled",
        "events.capacity_exceeded": "This event is full",
        "events.created": "Event created",
        "events.deleted": "Event deleted",
        "events.not_found": "Event not found",
        "events.register_error": "Error while registering",
        "events.registered": "Registration confirmed",
        "events.updated": "Event updated",
        "invitations.created": "Invitation created",
        "invitations.expired": "This invitation has expired",
        "invitations.invalid": "Invalid or already used invitation",
        "presenters.removed": "Presenter removed",
        "presenters.updated": "Presenters updated",
        "profile.not_found": "Profile not found",
        "profile.updated": "Profile updated",
        "profile.password_updated": "Password updated",
        "common.unknown_name": "Unnamed",
        "forms.attendee_min": "At least one attendee is required.",
        "forms.date_required": "Event date is required.",
        "forms.email_invalid": "Invalid email address.",
        "forms.email_required": "Email address is required.",
        "forms.email_too_long": "Email address is too long.",
        "forms.file_too_large": "File is too large (max %(size)d MB).",
        "forms.first_name_required": "First name is required.",
        "forms.image_expected": "Unsupported file type, expected an image.",
        "forms.last_name_required": "Last name is required.",
        "forms.limit_min": "Participant limit must be at least 1.",
        "forms.location_required": "Location is required.",
        "forms.message_required": "Message is required.",
        "forms.passwords_mismatch": "Passwords do not match.",
        "forms.pdf_expected": "Unsupported file type, expected a PDF.",
        "forms.role_invalid": "Invalid role.",
        "forms.title_required": "Event title is required.",
        "forms.title_too_long": "Event title is too long (max 255 characters).",
        "forms.video_expected": "Unsupported file type, expected a video.",
    },
}


def parse_language(value: object) -> Language:
    try:
        return Language(value)
    except ValueError:
        return DEFAULT_LANGUAGE


def active_language() -> Language:
    """Language activated for the current thread, base code only."""
    return parse_language((translation.get_language() or "").split("-")[0])


def translate(key: str) -> str:
    return TRANSLATIONS[active_language()].get(key, key)


# Resolved at render time, so form messages follow the request's language.
translate_lazy = lazy(translate, str)


class LocaleProvider:
    """Language preference persisted in a key-value store (the browser session)."""

    def __init__(self, store: MutableMapping[str, object]) -> None:
        self._store = store
        self._language = parse_language(store.get(LANGUAGE_KEY))

    @property
    def language(self) -> Language:
        return self._language

    def set_language(self, language: Language) -> None:
        self._language = language
        self._store[LANGUAGE_KEY] = language.value

    def toggle_language(self) -> Language:
        self.set_language(Language.EN if self._language == Language.FR else Language.FR)
        return self._language

    def t(self, key: str) -> str:
        return TRANSLATIONS[self._language].get(key, key)


def _format(value: datetime, pattern: str, language: Language) -> str:
    with translation.override(language):
        return format_date(timezone.localtime(value), pattern)


def format_long_date(value: datetime, language: Language) -> str:
    return _format(value, "d F Y", language)


def format_short_date(value: datetime, language: Language) -> str:
    return _format(value, "d M Y", language)


def format_time(value: datetime, language: Language) -> str:
    return _format(value, r"H\hi", language)


def format_full_datetime(value: datetime, language: Language) -> str:
    if language == Language.FR:
        return _format(value, r"l j F Y \à H\hi", language)
    return _format(value, r"l, F j, Y \a\t H:i", language)
