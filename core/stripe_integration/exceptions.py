"""
Payment Gateway Custom Exceptions

This module provides the exception classes raised by the Stripe subscription
gateway. Every `stripe.StripeError` is converted into one of these types so
callers never depend on SDK internals.

The most important piece of information they carry is whether the failure
means the subscription is *already terminal* at Stripe (canceled or missing).
The billing reconciler treats such failures as confirmation and repairs the
local record to `canceled`; every other failure is left for a later retry.
"""

from typing import Optional, Dict, Any

import stripe

# Structured Stripe error codes meaning "this subscription is gone"
TERMINAL_ERROR_CODES = frozenset({"resource_missing"})

# Message fragments used when Stripe sends no structured code.
# These match third-party prose and may change without notice.
TERMINAL_MESSAGE_FRAGMENTS = ("no such subscription", "canceled")


def is_already_terminal_error(
    error_code: Optional[str],
    message: Optional[str],
    match_messages: bool = True,
) -> bool:
    """
    Classify a gateway failure as benign-already-terminal.

    Args:
        error_code: Structured Stripe error code (e.g. ``resource_missing``)
        message: Human-readable error message returned by Stripe
        match_messages: Fall back to message substring matching

    Returns:
        True if the subscription is already canceled or does not exist
    """
    if error_code in TERMINAL_ERROR_CODES:
        return True
    if not match_messages or not message:
        return False
    lowered = message.lower()
    return any(fragment in lowered for fragment in TERMINAL_MESSAGE_FRAGMENTS)


class PaymentGatewayException(Exception):
    """
    Base exception class for all payment gateway errors.

    Attributes:
        message (str): Human-readable error message
        operation (Optional[str]): Gateway operation ("pause", "resume", "cancel")
        subscription_id (Optional[str]): External subscription identifier
        error_code (Optional[str]): Stripe-specific error code
        http_status (Optional[int]): HTTP status code if applicable
        match_messages (bool): Whether message matching may classify the error

    Example:
        >>> try:
        ...     gateway.cancel("sub_123")
        ... except PaymentGatewayException as e:
        ...     if e.is_already_terminal:
        ...         mark_canceled()
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        subscription_id: Optional[str] = None,
        error_code: Optional[str] = None,
        http_status: Optional[int] = None,
        match_messages: bool = True,
    ) -> None:
        self.message = message
        self.operation = operation
        self.subscription_id = subscription_id
        self.error_code = error_code
        self.http_status = http_status
        self.match_messages = match_messages
        super().__init__(self.message)

    @property
    def is_already_terminal(self) -> bool:
        """True if the subscription is already canceled or missing at Stripe."""
        return is_already_terminal_error(
            self.error_code, self.message, self.match_messages
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging and API responses.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "message": self.message,
            "operation": self.operation,
            "subscription_id": self.subscription_id,
            "error_code": self.error_code,
            "http_status": self.http_status,
            "already_terminal": self.is_already_terminal,
            "exception_type": self.__class__.__name__,
        }

    @classmethod
    def from_stripe_error(
        cls,
        error: stripe.StripeError,
        operation: str,
        subscription_id: str,
        match_messages: bool = True,
    ) -> "PaymentGatewayException":
        """
        Build the matching gateway exception from a Stripe SDK error.

        Network failures and timeouts become `GatewayConnectionException`.
        """
        exc_class = (
            GatewayConnectionException
            if isinstance(error, stripe.APIConnectionError)
            else cls
        )
        return exc_class(
            message=getattr(error, "user_message", None) or str(error),
            operation=operation,
            subscription_id=subscription_id,
            error_code=getattr(error, "code", None),
            http_status=getattr(error, "http_status", None),
            match_messages=match_messages,
        )


class GatewayConnectionException(PaymentGatewayException):
    """
    Raised when Stripe could not be reached or the request timed out.

    The outcome at Stripe is unknown, so this is never classified as
    already-terminal regardless of its message.
    """

    @property
    def is_already_terminal(self) -> bool:
        return False
