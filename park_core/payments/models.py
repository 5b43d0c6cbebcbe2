# park_core/payments/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from park_core.common.models import AppendOnlyModel, ScopedModel


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    WEBPAY = "WEBPAY", "WebPay"
    TRANSFER = "TRANSFER", "Bank transfer"


class PaymentStatus(models.TextChoices):
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"


class Payment(AppendOnlyModel, ScopedModel):
    """
    Money received, against either a parking session or a debt.
    Immutable: a failed provider attempt is its own FAILED row.

    amount          what the payment settles
    amount_received what was tendered (cash), change = received - amount
    """
    session = models.ForeignKey(
        "parking.ParkingSession",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    debt = models.ForeignKey(
        "debts.Debt",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    shift = models.ForeignKey(
        "shifts.Shift",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )

    method = models.CharField(max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.COMPLETED)

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    amount_received = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    change_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    provider_transaction_id = models.CharField(max_length=128, blank=True, default="")
    provider_ref = models.CharField(max_length=128, blank=True)

    cashier = models.ForeignKey(
        "operators.Operator",
        on_delete=models.PROTECT,
        related_name="payments",
        null=True,
        blank=True,
    )
    paid_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "payments_payment"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "provider_transaction_id"],
                condition=~Q(provider_transaction_id="") & Q(status="COMPLETED"),
                name="uq_payment_provider_txn",
            ),
            models.CheckConstraint(
                condition=Q(session__isnull=False) | Q(debt__isnull=False),
                name="ck_payment_has_target",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "shift", "status"], name="payment_shift_status_idx"),
        ]
