from django.apps import AppConfig


class WebGatesConfig(AppConfig):
    """Django app config for web gates."""

    name = "cercle.gates.web.django"
    label = "web_gates"
