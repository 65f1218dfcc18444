"""
Sponsorship Models

A sponsorship is a payment relationship from a sponsor (any user) to an
explorer. One-time payments are settled at checkout; subscriptions recur
through a Stripe subscription referenced by ``stripe_subscription_id``.

Lifecycle of a subscription driven by the explorer's resting state:

    active ──(resting 30d)──> paused ──(resting 90d)──> canceled
       ^                        │
       └──(exits resting)───────┘

Everything the billing reconciler touches is selected through
`SponsorshipQuerySet.reconcilable`, so all three transitions share the same
scope rules (subscription only, external id present, not soft-deleted).
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from explorers.models import Explorer


class SponsorshipType(models.TextChoices):
    ONE_TIME_PAYMENT = "one_time_payment", _("One-time payment")
    SUBSCRIPTION = "subscription", _("Subscription")


class SponsorshipStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    CONFIRMED = "confirmed", _("Confirmed")
    ACTIVE = "active", _("Active")
    PAUSED = "paused", _("Paused")
    CANCELED = "canceled", _("Canceled")


class SponsorshipQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def reconcilable(self, status: str):
        """
        Subscriptions in ``status`` that the billing reconciler may act on.

        Excludes one-time payments, soft-deleted rows and rows without a
        Stripe subscription id.
        """
        return (
            self.alive()
            .filter(
                type=SponsorshipType.SUBSCRIPTION,
                status=status,
                stripe_subscription_id__isnull=False,
            )
            .exclude(stripe_subscription_id="")
        )


class Sponsorship(models.Model):
    """
    A sponsorship from ``sponsor`` to ``sponsored_explorer``.

    Attributes:
        public_id: Identifier exposed through the API
        type: One-time payment or recurring subscription
        status: Local billing status, mirrors the Stripe subscription state
        amount: Amount in minor currency units (cents)
        stripe_subscription_id: Stripe subscription id (subscriptions only)
        deleted_at: Soft-delete marker
    """

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    sponsor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="given_sponsorships",
        verbose_name=_("Sponsor"),
    )
    sponsored_explorer = models.ForeignKey(
        Explorer,
        on_delete=models.CASCADE,
        related_name="received_sponsorships",
        verbose_name=_("Sponsored explorer"),
    )
    type = models.CharField(
        max_length=20,
        choices=SponsorshipType.choices,
        default=SponsorshipType.SUBSCRIPTION,
        verbose_name=_("Type"),
    )
    status = models.CharField(
        max_length=12,
        choices=SponsorshipStatus.choices,
        default=SponsorshipStatus.PENDING,
        db_index=True,
        verbose_name=_("Status"),
    )
    amount = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Amount"),
        help_text=_("Amount in minor currency units (e.g. cents)"),
    )
    currency = models.CharField(max_length=3, default="usd", verbose_name=_("Currency"))
    stripe_subscription_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_("Stripe subscription id"),
    )
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SponsorshipQuerySet.as_manager()

    class Meta:
        verbose_name = _("Sponsorship")
        verbose_name_plural = _("Sponsorships")
        ordering = ["-id"]
        indexes = [
            models.Index(fields=["sponsored_explorer", "type", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.sponsor} → {self.sponsored_explorer} ({self.type}, {self.status})"
