"""
Resting Status Service

Keeps ``Explorer.resting_since`` in line with the explorer's expeditions:

- no planned/active expedition and not resting → mark resting now
  (no event; billing pause is driven by the daily job)
- a planned/active expedition and resting → clear the marker and send
  `explorer_exited_resting` once the transaction commits, so paused
  sponsorships are resumed immediately
"""

import logging
from functools import partial

from django.db import DatabaseError, transaction
from django.utils import timezone

from .models import Expedition, Explorer
from .signals import explorer_exited_resting

logger = logging.getLogger(__name__)


class RestingStatusService:
    """Enters and exits the resting state after expedition changes."""

    def check_and_update(self, explorer_id: int) -> None:
        """
        Re-evaluate the resting status of one explorer.

        Failures are logged and swallowed: an expedition write must never fail
        because the resting bookkeeping did. The work runs in a savepoint so a
        database error does not break the caller's transaction.
        """
        try:
            with transaction.atomic():
                self._update(explorer_id)
        except DatabaseError as exc:
            logger.error(
                "Failed to update resting status for explorer %s: %s", explorer_id, exc
            )

    def _update(self, explorer_id: int) -> None:
        ongoing = Expedition.objects.ongoing().filter(author_id=explorer_id).count()
        explorer = Explorer.objects.filter(pk=explorer_id).only("resting_since").first()
        if explorer is None:
            return

        resting_since = explorer.resting_since
        if ongoing == 0 and resting_since is None:
            Explorer.objects.filter(pk=explorer_id).update(resting_since=timezone.now())
            logger.info("Explorer %s entered resting", explorer_id)
        elif ongoing > 0 and resting_since is not None:
            Explorer.objects.filter(pk=explorer_id).update(resting_since=None)
            logger.info("Explorer %s exited resting", explorer_id)
            # Fires with the caller's transaction, not this savepoint
            transaction.on_commit(partial(self._notify_exited, explorer_id))

    @staticmethod
    def _notify_exited(explorer_id: int) -> None:
        responses = explorer_exited_resting.send_robust(
            sender=Explorer, explorer_id=explorer_id
        )
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    "Exited-resting receiver %s failed for explorer %s: %s",
                    getattr(receiver, "__name__", receiver),
                    explorer_id,
                    response,
                )
