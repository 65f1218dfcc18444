"""
E-mail receiver for notification events.

Each supported event maps to three templates under
``templates/notifications/email/``:

- ``<event>_subject.txt``  one-line subject
- ``<event>.txt``          plain text body
- ``<event>.html``         HTML body

Template context is the event's ``vars`` plus ``frontend_url``.
"""

import logging
from typing import Any, Dict

from django.conf import settings
from django.core.mail import send_mail
from django.dispatch import receiver
from django.template.loader import render_to_string

from .signals import SPONSORSHIP_AUTO_CANCELED, notification_requested

logger = logging.getLogger(__name__)

EMAIL_EVENTS = frozenset({SPONSORSHIP_AUTO_CANCELED})


@receiver(notification_requested)
def send_notification_email(sender, event: str, payload: Dict[str, Any], **kwargs) -> None:
    """
    Render and send the e-mail for a notification event.

    Events without an e-mail template and payloads without a recipient are
    skipped. Exceptions propagate to `send_robust`, which hands them back to
    the emitter for logging.
    """
    if event not in EMAIL_EVENTS:
        logger.debug("No e-mail template for event %s", event)
        return

    recipient = payload.get("to")
    if not recipient:
        logger.warning("Notification %s has no recipient, skipping e-mail", event)
        return

    context = {**(payload.get("vars") or {}), "frontend_url": settings.FRONTEND_URL}
    template_base = f"notifications/email/{event}"

    subject = render_to_string(f"{template_base}_subject.txt", context).strip()
    text_body = render_to_string(f"{template_base}.txt", context)
    html_body = render_to_string(f"{template_base}.html", context)

    send_mail(
        subject,
        text_body,
        settings.DEFAULT_FROM_EMAIL,
        [recipient],
        html_message=html_body,
    )
    logger.info("Sent %s e-mail to %s", event, recipient)
