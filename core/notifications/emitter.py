import logging
from typing import Any, Dict

from .signals import notification_requested

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """
    Publishes notification events without waiting on their delivery.

    Receivers run through `Signal.send_robust`, so an exception in one of them
    is returned instead of raised. We log those and move on.
    """

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        responses = notification_requested.send_robust(
            sender=self.__class__, event=event, payload=payload
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    "Notification receiver %s failed for event %s: %s",
                    getattr(receiver, "__name__", receiver),
                    event,
                    response,
                )
