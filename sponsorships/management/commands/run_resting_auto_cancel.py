"""
Resting Auto-Cancel Command

Cancels the paused recurring sponsorships of explorers who have been resting
for 90+ days (``SPONSORSHIP_BILLING["CANCEL_AFTER_DAYS"]``) and e-mails each
affected sponsor. Meant to run daily at 04:00 UTC, one hour after the pause
job.

Usage:
    python manage.py run_resting_auto_cancel
    python manage.py run_resting_auto_cancel --dry-run
"""

from ._scan import RestingScanCommand


class Command(RestingScanCommand):
    help = "Cancel paused sponsorships of explorers resting past the cancel threshold"

    scan = "cancel"
    crontab = "0 4 * * *"
