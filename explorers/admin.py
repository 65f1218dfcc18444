"""
Explorers Django Admin Configuration

Explorer and expedition administration. The explorer admin carries the manual
billing actions support uses to re-run a pause, resume or auto-cancel pass
for the selected explorers.
"""

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from .models import Expedition, Explorer


class ExpeditionInline(admin.TabularInline):
    model = Expedition
    extra = 0
    fields = ("title", "status", "deleted_at")
    show_change_link = True


@admin.register(Explorer)
class ExplorerAdmin(admin.ModelAdmin):
    """Explorer administration with manual billing reconciliation actions."""

    list_display = ("display_name", "username", "is_resting", "resting_since", "created_at")
    list_filter = (("resting_since", admin.EmptyFieldListFilter),)
    search_fields = ("name", "user__username", "user__email")
    readonly_fields = ("created_at", "updated_at")
    inlines = [ExpeditionInline]
    actions = ["pause_billing", "resume_billing", "auto_cancel_billing"]

    @admin.display(boolean=True, description=_("Resting"))
    def is_resting(self, obj: Explorer) -> bool:
        return obj.is_resting

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).select_related("user")

    def _run_billing(self, request: HttpRequest, queryset: QuerySet, action: str) -> None:
        # Local import to avoid a circular import between explorers and sponsorships
        from sponsorships.services import ExplorerStillRestingError, SponsorshipBillingService

        service = SponsorshipBillingService()
        done = {"pause": "paused", "resume": "resumed", "cancel": "canceled"}[action]
        for explorer in queryset:
            try:
                result = service.reconcile(explorer.pk, action)
            except ExplorerStillRestingError:
                self.message_user(
                    request,
                    f"{explorer.display_name}: still resting, paused sponsorships stay paused",
                    level=messages.ERROR,
                )
                continue
            level = messages.ERROR if result.failed else messages.SUCCESS
            self.message_user(
                request,
                f"{explorer.display_name}: {result.succeeded} {done}, "
                f"{result.repaired} repaired, {result.failed} failed"
                + (" (aborted, explorer not resting)" if result.aborted else ""),
                level=level,
            )

    @admin.action(description=_("⏸️ Pause recurring sponsorships"))
    def pause_billing(self, request: HttpRequest, queryset: QuerySet) -> None:
        self._run_billing(request, queryset, "pause")

    @admin.action(description=_("▶️ Resume paused sponsorships"))
    def resume_billing(self, request: HttpRequest, queryset: QuerySet) -> None:
        self._run_billing(request, queryset, "resume")

    @admin.action(description=_("🗑️ Cancel paused sponsorships"))
    def auto_cancel_billing(self, request: HttpRequest, queryset: QuerySet) -> None:
        self._run_billing(request, queryset, "cancel")


@admin.register(Expedition)
class ExpeditionAdmin(admin.ModelAdmin):
    list_display = ("title", "author", "status", "deleted_at", "updated_at")
    list_filter = ("status",)
    search_fields = ("title", "author__name", "author__user__username")
    autocomplete_fields = ("author",)

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        return super().get_queryset(request).select_related("author__user")
