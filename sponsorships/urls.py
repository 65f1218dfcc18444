from django.urls import path

from .views import ExplorerReconcileView, ReceivedSponsorshipListView

app_name = "sponsorships"

urlpatterns = [
    path("", ReceivedSponsorshipListView.as_view(), name="received-list"),
    path(
        "admin/explorers/<int:explorer_id>/reconcile/",
        ExplorerReconcileView.as_view(),
        name="explorer-reconcile",
    ),
]
