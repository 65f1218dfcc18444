from rest_framework import serializers

from .models import Sponsorship
from .services.billing import ACTIONS, ReconciliationResult


class SponsorshipSerializer(serializers.ModelSerializer):
    sponsor_username = serializers.CharField(source="sponsor.username", read_only=True)

    class Meta:
        model = Sponsorship
        fields = [
            "public_id",
            "sponsor_username",
            "type",
            "status",
            "amount",
            "currency",
            "created_at",
        ]
        read_only_fields = fields


class ReconcileRequestSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=ACTIONS)


class ReconciliationResultSerializer(serializers.Serializer):
    explorer_id = serializers.IntegerField()
    action = serializers.CharField()
    total = serializers.IntegerField()
    succeeded = serializers.IntegerField()
    repaired = serializers.IntegerField()
    failed = serializers.IntegerField()
    skipped = serializers.IntegerField()
    aborted = serializers.BooleanField()
    resting_cleared = serializers.BooleanField()

    def to_representation(self, instance: ReconciliationResult):
        return super().to_representation(instance.to_dict())
