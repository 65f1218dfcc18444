"""
Sponsorships App Configuration

Importing `.signals` in `ready()` subscribes the billing reconciler to the
`explorer_exited_resting` signal exactly once per process.
"""

from django.apps import AppConfig


class SponsorshipsConfig(AppConfig):
    """
    Django AppConfig for the sponsorships app.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "sponsorships"
    verbose_name = "Sponsorships"

    def ready(self):
        # Import signals so Django registers the exited-resting receiver
        from . import signals  # noqa: F401
