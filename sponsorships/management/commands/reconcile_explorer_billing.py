"""
Manual Billing Reconciliation Command

Runs one reconciliation pass (pause, resume or cancel) for a single explorer,
e.g. after a Stripe outage or when support needs to sync a record by hand.
Resume is refused while the explorer is still resting.

Usage:
    python manage.py reconcile_explorer_billing 42 --action resume
"""

from django.core.management.base import BaseCommand, CommandError

from explorers.models import Explorer
from sponsorships.services import ACTIONS, ExplorerStillRestingError, SponsorshipBillingService


class Command(BaseCommand):
    help = "Run a pause, resume or cancel billing reconciliation for one explorer"

    def add_arguments(self, parser):
        parser.add_argument("explorer_id", type=int)
        parser.add_argument("--action", choices=ACTIONS, required=True)

    def handle(self, *args, **options):
        explorer_id = options["explorer_id"]
        if not Explorer.objects.filter(pk=explorer_id).exists():
            raise CommandError(f"Explorer {explorer_id} not found")

        try:
            result = SponsorshipBillingService().reconcile(explorer_id, options["action"])
        except ExplorerStillRestingError as exc:
            raise CommandError(str(exc)) from exc

        summary = (
            f"{result.action} explorer {explorer_id}: "
            f"{result.total} total, {result.succeeded} succeeded, "
            f"{result.repaired} repaired, {result.failed} failed"
        )
        if result.aborted:
            summary += f", aborted ({result.skipped} skipped)"
        if result.resting_cleared:
            summary += ", resting cleared"

        style = self.style.ERROR if result.failed else self.style.SUCCESS
        self.stdout.write(style(summary))
