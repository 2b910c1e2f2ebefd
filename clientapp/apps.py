# clientapp/apps.py
from django.apps import AppConfig


class ClientappConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "clientapp"

    def ready(self):
        # Only load signals
        from . import signals  # noqa: F401
