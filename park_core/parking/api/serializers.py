# park_core/parking/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from park_core.parking.models import ParkingSession
from park_core.payments.models import PaymentMethod


class ParkingSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = ParkingSession
        fields = [
            "id",
            "tenant_id",
            "plate",
            "sector",
            "street",
            "operator_in",
            "operator_out",
            "status",
            "is_full_day",
            "started_at",
            "ended_at",
            "seconds_total",
            "duration_minutes",
            "gross_amount",
            "discount_amount",
            "net_amount",
            "pricing_rule",
            "discount",
            "cancel_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class QuoteSerializer(serializers.Serializer):
    sector_id = serializers.UUIDField()
    started_at = serializers.DateTimeField()
    ended_at = serializers.DateTimeField()
    seconds_total = serializers.IntegerField()
    duration_minutes = serializers.IntegerField()
    is_full_day = serializers.BooleanField()
    rule_id = serializers.UUIDField(allow_null=True)
    profile_id = serializers.UUIDField(allow_null=True)
    rule_type = serializers.CharField(allow_null=True)
    gross_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    net_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount_id = serializers.UUIDField(allow_null=True)
    breakdown = serializers.ListField(child=serializers.DictField())
    min_amount_applied = serializers.BooleanField()
    daily_cap_applied = serializers.BooleanField()


class SessionCreateSerializer(serializers.Serializer):
    plate = serializers.CharField(max_length=16)
    sector_id = serializers.UUIDField()
    street_id = serializers.UUIDField(required=False, allow_null=True)
    operator_id = serializers.UUIDField(required=False)
    is_full_day = serializers.BooleanField(required=False, default=False)
    started_at = serializers.DateTimeField(required=False)


class CheckoutSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    ended_at = serializers.DateTimeField(required=False)
    discount_id = serializers.UUIDField(required=False, allow_null=True)
    discount_code = serializers.CharField(required=False, allow_blank=True)


class ForceCheckoutSerializer(serializers.Serializer):
    ended_at = serializers.DateTimeField(required=False)
    discount_id = serializers.UUIDField(required=False, allow_null=True)
    discount_code = serializers.CharField(required=False, allow_blank=True)


class SessionCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")

