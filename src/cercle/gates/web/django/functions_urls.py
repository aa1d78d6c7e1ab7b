"""URL configuration for the privileged functions."""

from django.urls import path

from .functions import FUNCTIONS

app_name = "functions"  # pylint: disable=invalid-name

urlpatterns = [
    path(name, view_class.as_view(), name=name)
    for name, view_class in FUNCTIONS.items()
]
