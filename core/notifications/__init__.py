"""
Notifications Package
=====================

Fire-and-forget notification events for the platform.

Billing and other services never send e-mail themselves. They emit a
notification event through `NotificationEmitter`; receivers connected to
the `notification_requested` signal (see ``handlers.py``) turn the event
into an e-mail. Delivery problems are logged and never propagate back to
the emitting service.

Structure
---------
- apps.py     → App configuration, connects the e-mail receiver in ``ready()``
- signals.py  → ``notification_requested`` signal and event names
- emitter.py  → ``NotificationEmitter.emit(event, payload)``
- handlers.py → E-mail receiver rendering the templates under ``templates/``
"""
