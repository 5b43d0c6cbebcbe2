# park_core/shifts/api/serializers.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from park_core.shifts.models import AdjustmentType, CashAdjustment, Shift, ShiftOperation


class ShiftSerializer(serializers.ModelSerializer):
    class Meta:
        model = Shift
        fields = [
            "id",
            "tenant_id",
            "operator",
            "sector",
            "device_id",
            "status",
            "opened_at",
            "closed_at",
            "canceled_at",
            "opening_float",
            "closing_declared_cash",
            "expected_cash",
            "cash_over_short",
            "closed_by",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ShiftOperationSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShiftOperation
        fields = ["id", "shift", "kind", "amount", "at", "ref_type", "ref_id", "actor", "notes"]
        read_only_fields = fields


class CashAdjustmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = CashAdjustment
        fields = [
            "id",
            "shift",
            "adjustment_type",
            "amount",
            "reason",
            "receipt_number",
            "at",
            "actor",
            "approved_by",
        ]
        read_only_fields = fields


class ShiftTotalsSerializer(serializers.Serializer):
    opening_float = serializers.DecimalField(max_digits=12, decimal_places=2)
    cash_collected = serializers.DecimalField(max_digits=12, decimal_places=2)
    cash_withdrawals = serializers.DecimalField(max_digits=12, decimal_places=2)
    cash_deposits = serializers.DecimalField(max_digits=12, decimal_places=2)
    expected_cash = serializers.DecimalField(max_digits=12, decimal_places=2)
    sales_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    tickets_count = serializers.IntegerField()
    payments_by_method = serializers.DictField(child=serializers.DecimalField(max_digits=12, decimal_places=2))


class ShiftOpenSerializer(serializers.Serializer):
    operator_id = serializers.UUIDField(required=False)
    opening_float = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))
    sector_id = serializers.UUIDField(required=False, allow_null=True)
    device_id = serializers.CharField(required=False, allow_blank=True, max_length=64, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class CashAdjustmentCreateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=AdjustmentType.choices)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField(max_length=255)
    receipt_number = serializers.CharField(required=False, allow_blank=True, max_length=64, default="")
    approved_by_operator_id = serializers.UUIDField(required=False, allow_null=True)


class ShiftCloseSerializer(serializers.Serializer):
    closing_declared_cash = serializers.DecimalField(max_digits=12, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ShiftCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
