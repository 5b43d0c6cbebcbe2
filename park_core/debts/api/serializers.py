# park_core/debts/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from park_core.debts.models import Debt, DebtOrigin
from park_core.payments.models import PaymentMethod


class DebtSerializer(serializers.ModelSerializer):
    class Meta:
        model = Debt
        fields = [
            "id",
            "tenant_id",
            "plate",
            "principal_amount",
            "origin",
            "status",
            "session",
            "notes",
            "created_by",
            "settled_amount",
            "settled_at",
            "settled_by",
            "settlement_payment",
            "cancelled_at",
            "cancel_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DebtCreateSerializer(serializers.Serializer):
    plate = serializers.CharField(max_length=16)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    origin = serializers.ChoiceField(
        choices=[(DebtOrigin.MANUAL, "Manual"), (DebtOrigin.FINE, "Fine")],
        default=DebtOrigin.MANUAL,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class DebtSettleSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    cashier_operator_id = serializers.UUIDField(required=False)


class DebtCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
