"""
Shared base for the scheduled resting billing commands.
"""

from django.core.management.base import BaseCommand, CommandError

from sponsorships.services import RestingBillingScheduler


class RestingScanCommand(BaseCommand):
    """
    Runs one scan of `RestingBillingScheduler`.

    Subclasses set ``scan`` ("pause" or "cancel") and ``crontab``.
    """

    scan = None
    crontab = None

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only list the explorers that would be processed",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show detailed information",
        )

    def get_scheduler(self) -> RestingBillingScheduler:
        return RestingBillingScheduler()

    def handle(self, *args, **options):
        scheduler = self.get_scheduler()

        if options["dry_run"]:
            candidates = (
                scheduler.find_pause_candidates()
                if self.scan == "pause"
                else scheduler.find_cancel_candidates()
            )
            self.stdout.write(
                self.style.WARNING(
                    f"🔍 DRY RUN: {len(candidates)} explorer(s) would be processed"
                )
            )
            for explorer_id in candidates:
                self.stdout.write(f"   - explorer {explorer_id}")
            return

        result = (
            scheduler.run_pause_scan()
            if self.scan == "pause"
            else scheduler.run_cancel_scan()
        )

        if result.abandoned:
            raise CommandError(f"{result.name} abandoned, see logs")

        self.stdout.write(
            self.style.SUCCESS(
                f"✅ {result.name}: {len(result.processed)} explorer(s) processed"
            )
        )
        if result.failed:
            self.stdout.write(
                self.style.ERROR(
                    f"❌ {len(result.failed)} explorer(s) failed: "
                    + ", ".join(str(explorer_id) for explorer_id in result.failed)
                )
            )

        if options["verbose"]:
            self.stdout.write(f"\n   Cutoff: resting since <= {result.cutoff.isoformat()}")
            self.stdout.write("\n⏰ Crontab entry:")
            self.stdout.write(
                f"   {self.crontab} cd /path/to/project && python manage.py {self.command_name}"
            )

    @property
    def command_name(self) -> str:
        return self.__module__.rsplit(".", 1)[-1]
