"""
Sponsorships Package

Sponsorship records and the billing lifecycle of recurring sponsorships.
When an explorer rests (no planned or active expedition) their received
subscriptions are paused after 30 days and canceled after 90 days; when they
set out again, paused subscriptions are resumed at once.

Structure:
- models.py:            Sponsorship and its reconcilable() scope
- services/store.py:    SponsorshipStore, persistence used by the reconciler
- services/billing.py:  SponsorshipBillingService (pause / resume / cancel)
- services/scheduler.py: RestingBillingScheduler (daily scans)
- signals.py:           resumes billing when an explorer exits resting
- management/commands/: cron entry points and manual reconciliation
- views.py / urls.py:   received sponsorships and the staff reconcile endpoint
"""
