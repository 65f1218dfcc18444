"""
Notifications AppConfig

Importing `.handlers` in `ready()` registers the e-mail receiver for the
`notification_requested` signal exactly once per process.
"""

from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.notifications"
    label = "notifications"
    verbose_name = "Notifications"

    def ready(self):
        # Import handlers so Django registers the e-mail receiver
        from . import handlers  # noqa: F401
