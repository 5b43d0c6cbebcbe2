# park_core/debts/models.py
from __future__ import annotations

from django.db import models
from django.db.models import Q

from park_core.common.models import ScopedModel
from park_core.operators.models import Operator
from park_core.parking.models import ParkingSession


class DebtOrigin(models.TextChoices):
    SESSION = "SESSION", "Parking session"
    FINE = "FINE", "Fine"
    MANUAL = "MANUAL", "Manual"


class DebtStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    SETTLED = "SETTLED", "Settled"
    CANCELLED = "CANCELLED", "Cancelled"


class Debt(ScopedModel):
    """
    Unpaid obligation attached to a plate. Terminal once SETTLED or CANCELLED.
    """
    plate = models.CharField(max_length=16, db_index=True)
    principal_amount = models.DecimalField(max_digits=12, decimal_places=2)
    origin = models.CharField(max_length=16, choices=DebtOrigin.choices, default=DebtOrigin.SESSION)
    status = models.CharField(max_length=16, choices=DebtStatus.choices, default=DebtStatus.PENDING, db_index=True)

    session = models.ForeignKey(ParkingSession, on_delete=models.PROTECT, related_name="debts", null=True, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="+", null=True, blank=True)

    settled_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    settled_at = models.DateTimeField(null=True, blank=True)
    settled_by = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="+", null=True, blank=True)
    settlement_payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "debts_debt"
        constraints = [
            # a session produces at most one debt
            models.UniqueConstraint(
                fields=["session"],
                condition=Q(origin="SESSION"),
                name="uq_debt_per_session",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "plate", "status"], name="debt_plate_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.plate} {self.principal_amount} [{self.status}]"
