"""
Sponsorship Store

Persistence used by the billing reconciler and the daily scheduler.
Every read goes to the database; nothing is cached between calls, so the
resting marker read right before a unit of work is always the live value.

All writes are single-row (sponsorship by id, explorer by id) inside small
`transaction.atomic()` blocks; a failed write rolls back only itself.
"""

from datetime import datetime
from typing import List, Optional

from django.db import transaction
from django.db.models import Exists, OuterRef

from explorers.models import Explorer

from ..models import Sponsorship


class SponsorshipStore:
    """
    Read/write access to sponsorships and the explorer resting marker.
    """

    def find_sponsorships(
        self, explorer_id: int, status: str, with_contacts: bool = False
    ) -> List[Sponsorship]:
        """
        Reconcilable subscriptions of an explorer in the given status.

        Args:
            explorer_id: Sponsored explorer
            status: Local sponsorship status to select
            with_contacts: Also load sponsor and explorer user rows
                (e-mail, username, display name) for notifications

        Returns:
            List of Sponsorship rows, oldest first
        """
        qs = Sponsorship.objects.reconcilable(status).filter(
            sponsored_explorer_id=explorer_id
        )
        if with_contacts:
            qs = qs.select_related("sponsor", "sponsored_explorer__user")
        return list(qs.order_by("id"))

    def update_sponsorship_status(self, sponsorship_id: int, status: str) -> None:
        with transaction.atomic():
            Sponsorship.objects.filter(pk=sponsorship_id).update(status=status)

    def get_resting_since(self, explorer_id: int) -> Optional[datetime]:
        return (
            Explorer.objects.filter(pk=explorer_id)
            .values_list("resting_since", flat=True)
            .first()
        )

    def clear_resting_since(self, explorer_id: int) -> None:
        with transaction.atomic():
            Explorer.objects.filter(pk=explorer_id).update(resting_since=None)

    def find_resting_explorer_ids(self, resting_before: datetime, status: str) -> List[int]:
        """
        Explorers resting since at least ``resting_before`` who receive at
        least one reconcilable subscription in ``status``.
        """
        qualifying = Sponsorship.objects.reconcilable(status).filter(
            sponsored_explorer=OuterRef("pk")
        )
        return list(
            Explorer.objects.filter(
                resting_since__isnull=False,
                resting_since__lte=resting_before,
            )
            .filter(Exists(qualifying))
            .order_by("id")
            .values_list("id", flat=True)
        )
