"""
Sponsorship API views.

- ``GET  /api/sponsorships/`` sponsorships received by the logged-in explorer
- ``POST /api/sponsorships/admin/explorers/<id>/reconcile/`` staff-only
  manual billing reconciliation for one explorer
"""

import logging

from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from explorers.models import Explorer

from .models import Sponsorship
from .serializers import (
    ReconcileRequestSerializer,
    ReconciliationResultSerializer,
    SponsorshipSerializer,
)
from .services import ExplorerStillRestingError, SponsorshipBillingService

logger = logging.getLogger(__name__)

RECEIVED_SPONSORSHIPS_LIMIT = 50


class ReceivedSponsorshipListView(generics.ListAPIView):
    """Newest sponsorships received by the authenticated explorer."""

    serializer_class = SponsorshipSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        explorer = getattr(self.request.user, "explorer", None)
        if explorer is None:
            return Sponsorship.objects.none()
        return (
            Sponsorship.objects.alive()
            .filter(sponsored_explorer=explorer)
            .select_related("sponsor")
            .order_by("-created_at", "-id")[:RECEIVED_SPONSORSHIPS_LIMIT]
        )


class ExplorerReconcileView(APIView):
    permission_classes = [permissions.IsAdminUser]

    def post(self, request, explorer_id: int):
        explorer = get_object_or_404(Explorer, pk=explorer_id)

        serializer = ReconcileRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        action = serializer.validated_data["action"]

        logger.info(
            "Manual %s reconciliation for explorer %s requested by %s",
            action,
            explorer.pk,
            request.user.username,
        )
        try:
            result = SponsorshipBillingService().reconcile(explorer.pk, action)
        except ExplorerStillRestingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(ReconciliationResultSerializer(result).data, status=status.HTTP_200_OK)
