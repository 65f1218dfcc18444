"""
Explorer Models

This module defines the explorer-side models the sponsorship billing
lifecycle depends on.

Models:
- Explorer: Public explorer profile attached to a user account, including
  the resting marker
- Expedition: An explorer's trip; planned or active expeditions keep an
  explorer out of the resting state

Resting:
    ``Explorer.resting_since`` is set when an explorer has no planned or
    active expedition left and cleared as soon as they get one again. While
    it is set, the daily billing jobs pause (after 30 days) and finally
    cancel (after 90 days) the recurring sponsorships they receive.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Explorer(models.Model):
    """
    Explorer profile linked one-to-one to a user account.

    Attributes:
        user: The account owning this profile
        name: Optional display name shown to sponsors
        resting_since: Start of the current resting period, or None
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="explorer",
        verbose_name=_("User"),
    )
    name = models.CharField(
        max_length=150,
        blank=True,
        verbose_name=_("Display name"),
    )
    resting_since = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_("Resting since"),
        help_text=_("Set while the explorer has no planned or active expedition"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Explorer")
        verbose_name_plural = _("Explorers")
        ordering = ["id"]

    def __str__(self) -> str:
        return self.display_name

    @property
    def username(self) -> str:
        return self.user.username if self.user_id else ""

    @property
    def display_name(self) -> str:
        return self.name or self.username or "Explorer"

    @property
    def is_resting(self) -> bool:
        return self.resting_since is not None


class ExpeditionStatus(models.TextChoices):
    PLANNED = "planned", _("Planned")
    ACTIVE = "active", _("Active")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


class ExpeditionQuerySet(models.QuerySet):
    def ongoing(self):
        """Non-deleted expeditions that are planned or under way."""
        return self.filter(
            deleted_at__isnull=True,
            status__in=[ExpeditionStatus.PLANNED, ExpeditionStatus.ACTIVE],
        )


class Expedition(models.Model):
    """An explorer's expedition. Only its status matters for resting."""

    author = models.ForeignKey(
        Explorer,
        on_delete=models.CASCADE,
        related_name="expeditions",
        verbose_name=_("Author"),
    )
    title = models.CharField(max_length=200, verbose_name=_("Title"))
    status = models.CharField(
        max_length=12,
        choices=ExpeditionStatus.choices,
        default=ExpeditionStatus.PLANNED,
        verbose_name=_("Status"),
    )
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ExpeditionQuerySet.as_manager()

    class Meta:
        verbose_name = _("Expedition")
        verbose_name_plural = _("Expeditions")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["author", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.status})"
