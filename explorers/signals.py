"""
Explorer signals.

- `explorer_exited_resting` is sent (after commit) with ``explorer_id`` when
  an explorer with ``resting_since`` set gets a planned or active expedition
  again. The sponsorships app listens to it to resume paused billing.
- `post_save` / `post_delete` on `Expedition` re-evaluate the author's
  resting status.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from .models import Expedition

explorer_exited_resting = Signal()


@receiver(post_save, sender=Expedition)
@receiver(post_delete, sender=Expedition)
def on_expedition_changed(sender, instance: Expedition, **kwargs) -> None:
    from .services import RestingStatusService

    RestingStatusService().check_and_update(instance.author_id)
