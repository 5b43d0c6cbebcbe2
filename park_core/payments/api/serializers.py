# park_core/payments/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from park_core.payments.models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "tenant_id",
            "session",
            "debt",
            "shift",
            "method",
            "status",
            "amount",
            "amount_received",
            "change_amount",
            "provider_transaction_id",
            "provider_ref",
            "cashier",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class PaymentWebhookSerializer(serializers.Serializer):
    transaction_id = serializers.CharField(max_length=128)
    session_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    status = serializers.CharField(max_length=32)
    provider_ref = serializers.CharField(required=False, allow_blank=True, max_length=128, default="")
