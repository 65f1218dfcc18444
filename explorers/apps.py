"""
Explorers App Configuration

Importing `.signals` in `ready()` connects the expedition receivers that keep
the resting status up to date.
"""

from django.apps import AppConfig


class ExplorersConfig(AppConfig):
    """
    Django AppConfig for the explorers app.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "explorers"
    verbose_name = "Explorers"

    def ready(self):
        from . import signals  # noqa: F401
