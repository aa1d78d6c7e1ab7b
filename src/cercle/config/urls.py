"""URL configuration for the cercle project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("", include("cercle.gates.web.django.urls", namespace="web")),
    path("panel/", include("cercle.gates.web.django.panel_urls", namespace="panel")),
    path(
        "functions/v1/",
        include("cercle.gates.web.django.functions_urls", namespace="functions"),
    ),
    path("admin/", admin.site.urls),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
