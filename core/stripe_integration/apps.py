"""
Stripe Integration AppConfig
============================

This module defines the Django application configuration for the local
`core.stripe_integration`. It is responsible for:

- Registering with Django (name, verbose label, default PK field).
- Configuring the Stripe SDK once per process: the active secret key,
  the number of network retries and an HTTP client with a bounded timeout.

Operational notes
-----------------
- Keep side effects in `ready()` minimal and idempotent (SDK configuration only).
- `apps.py` is executed on every process start; avoid DB/network calls here.
"""

import stripe
from django.apps import AppConfig
from django.conf import settings


class StripeIntegrationConfig(AppConfig):
    """
    App configuration for the `core.stripe_integration` package.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "core.stripe_integration"
    verbose_name = "Stripe Integration"

    def ready(self):
        billing = settings.SPONSORSHIP_BILLING

        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = billing["GATEWAY_MAX_RETRIES"]
        # A timed out request surfaces as APIConnectionError (never "already canceled")
        stripe.default_http_client = stripe.RequestsClient(
            timeout=billing["GATEWAY_TIMEOUT_SECONDS"]
        )
