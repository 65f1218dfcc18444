"""
Stripe Integration Package
==========================

This package centralizes all Stripe-related logic for the backend.
Billing code elsewhere in the project talks to Stripe only through the
gateway client defined here.

Current Scope
-------------
- Recurring sponsorship subscriptions held at Stripe:
  * pause collection (``pause_collection.behavior = "void"``, no invoices)
  * resume collection
  * cancel permanently
- Translation of Stripe SDK errors into our own exception types, including
  the "already canceled / no such subscription" classification the billing
  reconciler relies on.

Design Rationale
----------------
- Core placement: billing is not tied to a single app. The sponsorship
  reconciler consumes the gateway through a three-method interface and can
  be tested with a mock in its place.
- The SDK is configured once in ``apps.py`` (API key, retries and a bounded
  HTTP timeout) so every call shares the same limits.

Structure
---------
- __init__.py   (this file, documentation)
- apps.py       → App configuration, Stripe SDK setup in ``ready()``
- exceptions.py → Gateway exception hierarchy and error classification
- gateway.py    → ``StripeSubscriptionGateway`` (pause / resume / cancel)
"""
