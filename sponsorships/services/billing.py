"""
Sponsorship Billing Service

Keeps local sponsorship status in sync with the Stripe subscription behind
it while the sponsored explorer enters and leaves the resting state.

Operations (one explorer per call, records processed one after another):

- resume_all_sponsorships: paused → active, when the explorer exits resting
- pause_all_sponsorships: active → paused, explorer resting 30+ days
- cancel_all_paused_sponsorships: paused → canceled, explorer resting 90+ days

Per record outcomes:

- applied:  the gateway call succeeded, local status moves to the target
- repaired: Stripe says the subscription is already canceled or missing;
            local status becomes ``canceled`` (Stripe's state wins)
- failed:   any other gateway error, or a store error for this record;
            the record is left unchanged for the next pass

Pause and resume race each other (cron vs. event). Pause reads the live
``resting_since`` before starting and again before every record, and stops
as soon as it is cleared. Cancel clears ``resting_since`` only when no record
failed, so the next daily scan retries the whole set.
"""

import enum
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

from django.conf import settings
from django.db import DatabaseError

from core.notifications.emitter import NotificationEmitter
from core.notifications.signals import SPONSORSHIP_AUTO_CANCELED
from core.stripe_integration.exceptions import PaymentGatewayException
from core.stripe_integration.gateway import StripeSubscriptionGateway

from ..models import Sponsorship, SponsorshipStatus
from .store import SponsorshipStore

logger = logging.getLogger(__name__)

ACTIONS = ("pause", "resume", "cancel")


class ExplorerStillRestingError(Exception):
    """Raised when a manual resume is requested for an explorer who is still resting."""

    def __init__(self, explorer_id: int):
        self.explorer_id = explorer_id
        super().__init__(f"Explorer {explorer_id} is still resting, paused sponsorships stay paused")


class Outcome(enum.Enum):
    APPLIED = "applied"
    REPAIRED = "repaired"
    FAILED = "failed"


@dataclass
class ReconciliationResult:
    """Summary of one reconciliation pass for one explorer."""

    explorer_id: int
    action: str
    total: int = 0
    succeeded: int = 0
    repaired: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False
    resting_cleared: bool = False

    def record(self, outcome: Outcome) -> None:
        if outcome is Outcome.APPLIED:
            self.succeeded += 1
        elif outcome is Outcome.REPAIRED:
            self.repaired += 1
        else:
            self.failed += 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SponsorshipBillingService:
    """
    Billing reconciler for the resting-driven sponsorship lifecycle.

    Collaborators are injectable; by default it uses the database store, the
    Stripe gateway and the notification emitter.
    """

    def __init__(
        self,
        store: Optional[SponsorshipStore] = None,
        gateway: Optional[StripeSubscriptionGateway] = None,
        notifier: Optional[NotificationEmitter] = None,
    ):
        self.store = store or SponsorshipStore()
        self.gateway = gateway or StripeSubscriptionGateway()
        self.notifier = notifier or NotificationEmitter()

    def reconcile(self, explorer_id: int, action: str) -> ReconciliationResult:
        """
        Run one pass by action name (manual entry points: admin, API, command).

        Resume only follows an exit from resting, so it is refused while
        ``resting_since`` is still set; the daily pause job would undo it.

        Raises:
            ExplorerStillRestingError: Resume requested for a resting explorer
            ValueError: Unknown action
        """
        handlers = {
            "pause": self.pause_all_sponsorships,
            "resume": self.resume_all_sponsorships,
            "cancel": self.cancel_all_paused_sponsorships,
        }
        if action not in handlers:
            raise ValueError(f"Unknown billing action: {action}")
        if action == "resume" and self.store.get_resting_since(explorer_id) is not None:
            raise ExplorerStillRestingError(explorer_id)
        return handlers[action](explorer_id)

    def resume_all_sponsorships(self, explorer_id: int) -> ReconciliationResult:
        """
        Resume all paused subscriptions of an explorer who is no longer resting.

        Every record is independent; failures stay paused until the next
        exited-resting event.
        """
        result = ReconciliationResult(explorer_id=explorer_id, action="resume")
        sponsorships = self.store.find_sponsorships(explorer_id, SponsorshipStatus.PAUSED)
        result.total = len(sponsorships)

        logger.info(
            "Resuming %s paused sponsorships for explorer %s", result.total, explorer_id
        )

        for sponsorship in sponsorships:
            outcome = self._reconcile(
                sponsorship, "resume", self.gateway.resume, SponsorshipStatus.ACTIVE
            )
            result.record(outcome)
        return result

    def pause_all_sponsorships(self, explorer_id: int) -> ReconciliationResult:
        """
        Pause all active subscriptions of an explorer resting 30+ days.

        Stripe pauses with behavior ``void`` so no invoices are created.
        Store errors from the resting checks propagate and abort the pass.
        """
        result = ReconciliationResult(explorer_id=explorer_id, action="pause")

        if self.store.get_resting_since(explorer_id) is None:
            logger.info("Explorer %s is no longer resting, skipping pause", explorer_id)
            result.aborted = True
            return result

        sponsorships = self.store.find_sponsorships(explorer_id, SponsorshipStatus.ACTIVE)
        result.total = len(sponsorships)

        logger.info(
            "Pausing %s active sponsorships for resting explorer %s",
            result.total,
            explorer_id,
        )

        for index, sponsorship in enumerate(sponsorships):
            # Resume owns the remaining records once resting is cleared
            if self.store.get_resting_since(explorer_id) is None:
                result.aborted = True
                result.skipped = result.total - index
                logger.info(
                    "Explorer %s exited resting mid-pause, aborting remaining %s",
                    explorer_id,
                    result.skipped,
                )
                return result

            outcome = self._reconcile(
                sponsorship, "pause", self.gateway.pause, SponsorshipStatus.PAUSED
            )
            result.record(outcome)
        return result

    def cancel_all_paused_sponsorships(self, explorer_id: int) -> ReconciliationResult:
        """
        Cancel all paused subscriptions of an explorer resting 90+ days.

        Each sponsor whose subscription is canceled here gets an e-mail.
        ``resting_since`` is cleared only if no record failed.
        """
        result = ReconciliationResult(explorer_id=explorer_id, action="cancel")
        sponsorships = self.store.find_sponsorships(
            explorer_id, SponsorshipStatus.PAUSED, with_contacts=True
        )
        result.total = len(sponsorships)

        logger.info(
            "Auto-canceling %s paused sponsorships for explorer %s (%s-day resting)",
            result.total,
            explorer_id,
            settings.SPONSORSHIP_BILLING["CANCEL_AFTER_DAYS"],
        )

        if not sponsorships:
            return result

        explorer = sponsorships[0].sponsored_explorer

        for sponsorship in sponsorships:
            outcome = self._reconcile(
                sponsorship, "cancel", self.gateway.cancel, SponsorshipStatus.CANCELED
            )
            result.record(outcome)
            if outcome is Outcome.APPLIED:
                self._notify_auto_canceled(sponsorship, explorer)

        if result.failed == 0:
            self.store.clear_resting_since(explorer_id)
            result.resting_cleared = True
        else:
            logger.error(
                "%s cancellations failed for explorer %s, keeping resting_since for retry",
                result.failed,
                explorer_id,
            )
        return result

    def _reconcile(
        self,
        sponsorship: Sponsorship,
        operation: str,
        gateway_call: Callable[[str], None],
        target_status: str,
    ) -> Outcome:
        """
        Run one gateway call and write the resulting local status.
        """
        try:
            try:
                gateway_call(sponsorship.stripe_subscription_id)
            except PaymentGatewayException as exc:
                if not exc.is_already_terminal:
                    logger.error(
                        "Failed to %s sponsorship %s (explorer %s, subscription %s): %s",
                        operation,
                        sponsorship.pk,
                        sponsorship.sponsored_explorer_id,
                        sponsorship.stripe_subscription_id,
                        exc.message,
                    )
                    return Outcome.FAILED

                self.store.update_sponsorship_status(
                    sponsorship.pk, SponsorshipStatus.CANCELED
                )
                logger.info(
                    "Sponsorship %s was already canceled in Stripe, synced local status",
                    sponsorship.pk,
                )
                return Outcome.REPAIRED

            self.store.update_sponsorship_status(sponsorship.pk, target_status)
            return Outcome.APPLIED
        except DatabaseError:
            logger.exception(
                "Failed to store %s result for sponsorship %s (explorer %s)",
                operation,
                sponsorship.pk,
                sponsorship.sponsored_explorer_id,
            )
            return Outcome.FAILED

    def _notify_auto_canceled(self, sponsorship: Sponsorship, explorer) -> None:
        sponsor = sponsorship.sponsor
        if not sponsor.email:
            return

        try:
            self.notifier.emit(
                SPONSORSHIP_AUTO_CANCELED,
                {
                    "to": sponsor.email,
                    "vars": {
                        "sponsor_username": sponsor.username,
                        "explorer_name": explorer.display_name,
                        "explorer_username": explorer.username,
                        "resting_days": settings.SPONSORSHIP_BILLING["CANCEL_AFTER_DAYS"],
                    },
                },
            )
        except Exception:
            # Sponsorship is already canceled; the notice is best effort
            logger.exception(
                "Failed to notify sponsor of canceled sponsorship %s", sponsorship.pk
            )
