"""
Core Package - Expedition Journal Backend

Shared integrations used across the platform's apps.

Structure:
- stripe_integration/: Stripe subscription gateway client (pause, resume, cancel)
- notifications/: Fire-and-forget notification events and e-mail delivery
"""
