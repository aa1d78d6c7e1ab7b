from django.apps import AppConfig


class DBMainConfig(AppConfig):
    name = "cercle.adapters.db.django"
    label = "db_main"
    default_auto_field = "django.db.models.BigAutoField"
