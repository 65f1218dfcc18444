"""
Resting Billing Scheduler

Daily scans that find explorers past a resting threshold and run the billing
reconciler for each of them. The management commands
``run_resting_billing_pause`` (03:00 UTC) and ``run_resting_auto_cancel``
(04:00 UTC) call into this module from crontab; the one hour gap keeps the
cancel scan from seeing records the pause scan is still working on.

Eligibility is recomputed from live data on every run, so an abandoned run
needs no checkpoint: the next run starts from scratch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from django.conf import settings
from django.utils import timezone

from ..models import SponsorshipStatus
from .billing import SponsorshipBillingService
from .store import SponsorshipStore

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of one scheduled scan."""

    name: str
    cutoff: Optional[datetime] = None
    processed: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    abandoned: bool = False


class RestingBillingScheduler:
    """
    Runs the pause and auto-cancel scans over resting explorers.

    Explorers are processed one after another; an exception for one
    explorer is logged and the scan moves on to the next.
    """

    def __init__(
        self,
        billing_service: Optional[SponsorshipBillingService] = None,
        store: Optional[SponsorshipStore] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.store = store or SponsorshipStore()
        self.billing_service = billing_service or SponsorshipBillingService(store=self.store)
        self.clock = clock

    def pause_cutoff(self) -> datetime:
        return self.clock() - timedelta(days=settings.SPONSORSHIP_BILLING["PAUSE_AFTER_DAYS"])

    def cancel_cutoff(self) -> datetime:
        return self.clock() - timedelta(days=settings.SPONSORSHIP_BILLING["CANCEL_AFTER_DAYS"])

    def find_pause_candidates(self) -> List[int]:
        """Explorers resting past the pause threshold with an active subscription."""
        return self.store.find_resting_explorer_ids(
            self.pause_cutoff(), SponsorshipStatus.ACTIVE
        )

    def find_cancel_candidates(self) -> List[int]:
        """Explorers resting past the cancel threshold with a paused subscription."""
        return self.store.find_resting_explorer_ids(
            self.cancel_cutoff(), SponsorshipStatus.PAUSED
        )

    def run_pause_scan(self) -> ScanResult:
        return self._run_scan(
            "resting billing pause",
            self.pause_cutoff(),
            SponsorshipStatus.ACTIVE,
            self.billing_service.pause_all_sponsorships,
        )

    def run_cancel_scan(self) -> ScanResult:
        return self._run_scan(
            "resting auto-cancel",
            self.cancel_cutoff(),
            SponsorshipStatus.PAUSED,
            self.billing_service.cancel_all_paused_sponsorships,
        )

    def _run_scan(
        self,
        name: str,
        cutoff: datetime,
        status: str,
        reconcile: Callable[[int], object],
    ) -> ScanResult:
        result = ScanResult(name=name, cutoff=cutoff)
        logger.info("[CRON] Running %s check (resting since <= %s)", name, cutoff.isoformat())

        try:
            explorer_ids = self.store.find_resting_explorer_ids(cutoff, status)
        except Exception:
            logger.exception("[CRON] %s failed, abandoning this run", name)
            result.abandoned = True
            return result

        for explorer_id in explorer_ids:
            try:
                reconcile(explorer_id)
            except Exception:
                logger.exception("[CRON] %s failed for explorer %s", name, explorer_id)
                result.failed.append(explorer_id)
            else:
                result.processed.append(explorer_id)

        logger.info(
            "[CRON] %s check complete. Processed %s explorers, %s failed.",
            name,
            len(result.processed),
            len(result.failed),
        )
        return result
