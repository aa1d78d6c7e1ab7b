"""URL configuration for member pages."""

from django.urls import path

from . import views

app_name = "web"  # pylint: disable=invalid-name

urlpatterns = [
    path("", views.IndexPageView.as_view(), name="index"),
    path("connexion/", views.LoginPageView.as_view(), name="login"),
    path("deconnexion/", views.LogoutActionView.as_view(), name="logout"),
    path("session/", views.SessionStateView.as_view(), name="session"),
    path(
        "session/do/validate",
        views.SessionValidateActionView.as_view(),
        name="session-validate",
    ),
    path("langue/do/select", views.LanguageSelectActionView.as_view(), name="language"),
    path("evenements/", views.EventListPageView.as_view(), name="events"),
    path(
        "evenements/a-venir/",
        views.EventListPageView.as_view(period="upcoming"),
        name="events-upcoming",
    ),
    path(
        "evenements/passes/",
        views.EventListPageView.as_view(period="past"),
        name="events-past",
    ),
    path("evenements/<int:event_id>/", views.EventPageView.as_view(), name="event"),
    path(
        "evenements/<int:event_id>/do/register",
        views.EventRegisterActionView.as_view(),
        name="event-register",
    ),
    path(
        "evenements/<int:event_id>/do/cancel",
        views.EventCancelRegistrationActionView.as_view(),
        name="event-cancel",
    ),
    path("intervenants/", views.PresenterListPageView.as_view(), name="presenters"),
    path(
        "intervenants/<int:presenter_id>/",
        views.PresenterPageView.as_view(),
        name="presenter",
    ),
    path("profil/", views.ProfilePageView.as_view(), name="profile"),
    path(
        "profil/do/password",
        views.PasswordChangeActionView.as_view(),
        name="password",
    ),
    path(
        "profil/do/refresh",
        views.ProfileRefreshActionView.as_view(),
        name="profile-refresh",
    ),
    path("invitation/<str:token>/", views.InvitationPageView.as_view(), name="invitation"),
    path("contact/", views.ContactPageView.as_view(), name="contact"),
]
