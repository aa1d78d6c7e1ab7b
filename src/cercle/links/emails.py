"""Outgoing emails of the association, rendered from ``templates/emails``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.template.loader import render_to_string

from cercle.i18n import Language, format_full_datetime
from cercle.mills import get_profile_display_name
from cercle.pacts import AppRole, ContactReason, EmailComposerProtocol, EmailMessage

if TYPE_CHECKING:
    from datetime import datetime

    from cercle.pacts import EventDTO, ProfileDTO, UserDTO

ANONYMOUS_SENDER = "Anonyme"
DEFAULT_INVITATION_TTL_DAYS = 7

ROLE_LABELS = {
    AppRole.ADMIN: "administrateur",
    AppRole.PRESENTER: "intervenant",
    AppRole.PARTICIPANT: "participant",
}

CONTACT_REASON_LABELS = {
    ContactReason.CONNEXION_ISSUE: "Problème de connexion",
    ContactReason.INTERVENTION_REQUEST: "Demande d'intervention",
    ContactReason.GENERAL_REMARK: "Remarque générale",
    ContactReason.MEMBERSHIP_REQUEST: "Demande d'adhésion",
    ContactReason.OTHER: "Autre",
}


def _render(template: str, **context: Any) -> str:  # noqa: ANN401
    return render_to_string(f"emails/{template}.html", context)


def _format_date(moment: datetime) -> str:
    return format_full_datetime(moment, Language.FR)


class EmailComposer(EmailComposerProtocol):
    def __init__(
        self, app_url: str, invitation_ttl_days: int = DEFAULT_INVITATION_TTL_DAYS
    ) -> None:
        self.app_url = app_url.rstrip("/")
        self.invitation_ttl_days = invitation_ttl_days

    def _event_context(
        self, event: EventDTO, profile: ProfileDTO | None
    ) -> dict[str, Any]:
        return {
            "event": event,
            "event_date": _format_date(event.event_date),
            "event_url": f"{self.app_url}/evenements/{event.pk}/",
            "name": get_profile_display_name(profile, default=""),
        }

    def invitation(self, email: str, role: AppRole, link: str) -> EmailMessage:
        return EmailMessage(
            to=[email],
            subject="Invitation au Cercle Partages",
            html=_render(
                "invitation",
                link=link,
                role=ROLE_LABELS[role],
                ttl_days=self.invitation_ttl_days,
            ),
        )

    def event_invitation(
        self, event: EventDTO, user: UserDTO, profile: ProfileDTO | None
    ) -> EmailMessage:
        return EmailMessage(
            to=[user.email],
            subject=f"Invitation : {event.title}",
            html=_render("event_invitation", **self._event_context(event, profile)),
        )

    def event_cancellation(
        self, event: EventDTO, user: UserDTO, profile: ProfileDTO | None
    ) -> EmailMessage:
        return EmailMessage(
            to=[user.email],
            subject=f"Annulation : {event.title}",
            html=_render("event_cancellation", **self._event_context(event, profile)),
        )

    def date_change(
        self,
        event: EventDTO,
        user: UserDTO,
        profile: ProfileDTO | None,
        old_date: datetime,
    ) -> EmailMessage:
        return EmailMessage(
            to=[user.email],
            subject=f"Changement de date : {event.title}",
            html=_render(
                "date_change",
                old_date=_format_date(old_date),
                **self._event_context(event, profile),
            ),
        )

    def reminder(  # noqa: PLR0913
        self,
        event: EventDTO,
        user: UserDTO,
        profile: ProfileDTO | None,
        message: str,
        subject: str | None,
    ) -> EmailMessage:
        return EmailMessage(
            to=[user.email],
            subject=subject or f"Rappel : {event.title}",
            html=_render(
                "reminder", message=message, **self._event_context(event, profile)
            ),
        )

    @staticmethod
    def contact(  # noqa: PLR0913
        to: str,
        reason: ContactReason,
        message: str,
        sender_email: str | None,
        sender_name: str | None,
    ) -> EmailMessage:
        name = (sender_name or "").strip() or ANONYMOUS_SENDER
        label = CONTACT_REASON_LABELS[reason]
        return EmailMessage(
            to=[to],
            subject=f"[Contact] {label}",
            html=_render(
                "contact",
                message=message,
                reason=label,
                sender_email=sender_email,
                sender_name=name,
            ),
            reply_to=sender_email if sender_email and name != ANONYMOUS_SENDER else None,
        )
