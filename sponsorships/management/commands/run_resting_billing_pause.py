"""
Pause Resting Billing Command

Pauses Stripe collection for the recurring sponsorships of explorers who
have been resting for 30+ days (``SPONSORSHIP_BILLING["PAUSE_AFTER_DAYS"]``).
Meant to run daily at 03:00 UTC from crontab.

Usage:
    python manage.py run_resting_billing_pause
    python manage.py run_resting_billing_pause --dry-run
    python manage.py run_resting_billing_pause --verbose
"""

from ._scan import RestingScanCommand


class Command(RestingScanCommand):
    help = "Pause recurring sponsorships of explorers resting past the pause threshold"

    scan = "pause"
    crontab = "0 3 * * *"
