"""URL configuration for the admin panel."""

from django.urls import path

from . import panel

app_name = "panel"  # pylint: disable=invalid-name

urlpatterns = [
    path("evenements/", panel.EventListPageView.as_view(), name="events"),
    path("evenements/<int:event_id>/", panel.EventPageView.as_view(), name="event"),
    path(
        "evenements/<int:event_id>/do/delete",
        panel.EventDeleteActionView.as_view(),
        name="event-delete",
    ),
    path(
        "evenements/<int:event_id>/intervenants/",
        panel.EventPresentersActionView.as_view(),
        name="event-presenters",
    ),
    path(
        "evenements/<int:event_id>/image/",
        panel.EventImageActionView.as_view(),
        name="event-image",
    ),
    path(
        "evenements/<int:event_id>/video/",
        panel.EventVideoActionView.as_view(),
        name="event-video",
    ),
    path(
        "evenements/<int:event_id>/video/do/delete",
        panel.EventVideoDeleteActionView.as_view(),
        name="event-video-delete",
    ),
    path(
        "evenements/<int:event_id>/documents/",
        panel.EventDocumentsActionView.as_view(),
        name="event-documents",
    ),
    path(
        "evenements/<int:event_id>/do/invite",
        panel.EventInvitationsActionView.as_view(),
        name="event-invite",
    ),
    path(
        "evenements/<int:event_id>/do/cancel",
        panel.EventCancelActionView.as_view(),
        name="event-cancel",
    ),
    path(
        "evenements/<int:event_id>/do/remind",
        panel.EventReminderActionView.as_view(),
        name="event-remind",
    ),
    path(
        "documents/<int:document_id>/do/delete",
        panel.DocumentDeleteActionView.as_view(),
        name="document-delete",
    ),
    path("intervenants/", panel.PresenterListPageView.as_view(), name="presenters"),
    path(
        "intervenants/<int:presenter_id>/do/delete",
        panel.PresenterDeleteActionView.as_view(),
        name="presenter-delete",
    ),
    path(
        "intervenants/<int:presenter_id>/avatar/",
        panel.PresenterAvatarActionView.as_view(),
        name="presenter-avatar",
    ),
    path("profils/", panel.ProfileListPageView.as_view(), name="profiles"),
    path("invitations/", panel.InvitationListPageView.as_view(), name="invitations"),
    path("membres/", panel.UserListPageView.as_view(), name="users"),
    path(
        "membres/<int:user_id>/do/delete",
        panel.UserDeleteActionView.as_view(),
        name="user-delete",
    ),
]
