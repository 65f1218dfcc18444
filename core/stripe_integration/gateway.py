"""
Stripe Subscription Gateway (core.stripe_integration)
=====================================================

Thin client over the Stripe Subscriptions API used by the sponsorship billing
reconciler. It exposes exactly three operations, keyed by the opaque Stripe
subscription id:

1. pause(subscription_id)
   - Sets ``pause_collection`` with behavior ``void``: Stripe keeps the
     subscription but creates no invoices while it is paused.

2. resume(subscription_id)
   - Clears ``pause_collection`` so billing collection continues.

3. cancel(subscription_id)
   - Terminates the subscription permanently.

Every call either returns ``None`` or raises a `PaymentGatewayException`
(or its `GatewayConnectionException` subclass for network failures and
timeouts). Callers decide what to do via ``exc.is_already_terminal``.

Dependencies
------------
- stripe (official Python SDK), configured in ``apps.py``
"""

import logging
from typing import Any, Callable, Optional

import stripe
from django.conf import settings

from .exceptions import PaymentGatewayException

logger = logging.getLogger(__name__)


class StripeSubscriptionGateway:
    """
    Pause, resume and cancel recurring subscriptions at Stripe.
    """

    PAUSE_BEHAVIOR = "void"

    def __init__(self, match_error_messages: Optional[bool] = None):
        if match_error_messages is None:
            match_error_messages = settings.SPONSORSHIP_BILLING["MATCH_ERROR_MESSAGES"]
        self.match_error_messages = match_error_messages

    def pause(self, subscription_id: str) -> None:
        self._call(
            "pause",
            stripe.Subscription.modify,
            subscription_id,
            pause_collection={"behavior": self.PAUSE_BEHAVIOR},
        )

    def resume(self, subscription_id: str) -> None:
        # An empty string unsets the field in the Stripe API
        self._call(
            "resume",
            stripe.Subscription.modify,
            subscription_id,
            pause_collection="",
        )

    def cancel(self, subscription_id: str) -> None:
        self._call("cancel", stripe.Subscription.cancel, subscription_id)

    def _call(
        self,
        operation: str,
        method: Callable[..., Any],
        subscription_id: str,
        **params: Any,
    ) -> None:
        """
        Invoke a Stripe SDK method and translate its errors.

        Raises:
            PaymentGatewayException: For any Stripe error
        """
        try:
            method(subscription_id, **params)
        except stripe.StripeError as exc:
            error = PaymentGatewayException.from_stripe_error(
                exc,
                operation=operation,
                subscription_id=subscription_id,
                match_messages=self.match_error_messages,
            )
            logger.debug("Stripe %s failed: %s", operation, error.to_dict())
            raise error from exc

        logger.info("Stripe %s succeeded for subscription %s", operation, subscription_id)
