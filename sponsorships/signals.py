"""
Sponsorship signal receivers.

When an explorer exits resting, every paused subscription they receive is
resumed right away instead of waiting for a scheduled job.
"""

import logging

from django.dispatch import receiver

from explorers.signals import explorer_exited_resting

from .services import SponsorshipBillingService

logger = logging.getLogger(__name__)


@receiver(explorer_exited_resting)
def on_explorer_exited_resting(sender, explorer_id: int, **kwargs) -> None:
    result = SponsorshipBillingService().resume_all_sponsorships(explorer_id)
    logger.info(
        "Resumed sponsorships for explorer %s: %s succeeded, %s repaired, %s failed",
        explorer_id,
        result.succeeded,
        result.repaired,
        result.failed,
    )
