# park_core/shifts/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from park_core.common.models import AppendOnlyModel, ScopedModel
from park_core.operators.models import Operator
from park_core.sectors.models import Sector


class ShiftStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"
    CANCELED = "CANCELED", "Canceled"


class Shift(ScopedModel):
    """
    An operator's cash drawer between open and close.
    At most one OPEN shift per (operator, device); device "" means no device.
    """
    operator = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="shifts")
    sector = models.ForeignKey(Sector, on_delete=models.PROTECT, related_name="shifts", null=True, blank=True)
    device_id = models.CharField(max_length=64, blank=True, default="")

    status = models.CharField(max_length=16, choices=ShiftStatus.choices, default=ShiftStatus.OPEN, db_index=True)

    opened_at = models.DateTimeField(default=timezone.now)
    closed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    opening_float = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    closing_declared_cash = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    expected_cash = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cash_over_short = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    closed_by = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="+", null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "shifts_shift"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "operator", "device_id"],
                condition=Q(status="OPEN"),
                name="uq_shift_open_operator_device",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "operator", "status"], name="shift_operator_status_idx"),
        ]

    @property
    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN


class OperationKind(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSE = "CLOSE", "Close"
    CANCEL = "CANCEL", "Cancel"
    PAYMENT = "PAYMENT", "Payment"
    WITHDRAWAL = "WITHDRAWAL", "Withdrawal"
    DEPOSIT = "DEPOSIT", "Deposit"


MONETARY_KINDS = (OperationKind.PAYMENT, OperationKind.WITHDRAWAL, OperationKind.DEPOSIT)


class ShiftOperation(AppendOnlyModel, ScopedModel):
    """
    Append-only timeline of everything that happened to a drawer.
    ref_type/ref_id point at the originating Payment or CashAdjustment.
    """
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="operations")
    kind = models.CharField(max_length=16, choices=OperationKind.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    at = models.DateTimeField(default=timezone.now)

    ref_type = models.CharField(max_length=32, blank=True)
    ref_id = models.UUIDField(null=True, blank=True)

    actor = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="+", null=True, blank=True)
    notes = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "shifts_operation"
        ordering = ["at", "created_at"]
        indexes = [
            models.Index(fields=["tenant_id", "shift", "kind"], name="shift_op_kind_idx"),
        ]


class AdjustmentType(models.TextChoices):
    WITHDRAWAL = "WITHDRAWAL", "Withdrawal"
    DEPOSIT = "DEPOSIT", "Deposit"


class CashAdjustment(AppendOnlyModel, ScopedModel):
    shift = models.ForeignKey(Shift, on_delete=models.PROTECT, related_name="adjustments")
    adjustment_type = models.CharField(max_length=16, choices=AdjustmentType.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=255)
    receipt_number = models.CharField(max_length=64, blank=True)
    at = models.DateTimeField(default=timezone.now)

    actor = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="cash_adjustments")
    approved_by = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="+", null=True, blank=True)

    class Meta:
        db_table = "shifts_cash_adjustment"
        ordering = ["at", "created_at"]
