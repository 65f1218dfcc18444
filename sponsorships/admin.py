from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from .models import Sponsorship


@admin.register(Sponsorship)
class SponsorshipAdmin(admin.ModelAdmin):
    """
    Sponsorship administration.

    Status is read-only here: it mirrors Stripe and is only written by the
    billing reconciler (use the explorer admin actions to re-sync).
    """

    list_display = (
        "public_id",
        "sponsor",
        "sponsored_explorer",
        "type",
        "status",
        "amount",
        "currency",
        "stripe_subscription_id",
        "created_at",
    )
    list_filter = ("type", "status", "currency")
    search_fields = (
        "public_id",
        "stripe_subscription_id",
        "sponsor__username",
        "sponsor__email",
        "sponsored_explorer__name",
    )
    readonly_fields = ("public_id", "status", "created_at", "updated_at")
    raw_id_fields = ("sponsor", "sponsored_explorer")

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).select_related("sponsor", "sponsored_explorer__user")
