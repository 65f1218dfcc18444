"""
Notification signals.

`notification_requested` is sent with two keyword arguments:
- event: one of the event names below
- payload: dict with at least ``to`` (recipient e-mail) and ``vars``
"""

from django.dispatch import Signal

SPONSORSHIP_AUTO_CANCELED = "sponsorship_auto_canceled"

notification_requested = Signal()
