# park_core/parking/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from park_core.common.models import ScopedModel
from park_core.operators.models import Operator
from park_core.pricing.models import PricingRule, SessionDiscount
from park_core.sectors.models import Sector, Street


class SessionStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    COMPLETED = "COMPLETED", "Completed"
    CANCELED = "CANCELED", "Canceled"


TERMINAL_STATUSES = (SessionStatus.COMPLETED, SessionStatus.CANCELED)


def normalize_plate(plate: str) -> str:
    return "".join((plate or "").split()).upper()


class ParkingSession(ScopedModel):
    """
    A vehicle's stay in a sector.

    ACTIVE -> COMPLETED (paid or forced-unpaid checkout)
    ACTIVE -> CANCELED  (no charge, no debt)

    started_at never changes; ended_at is written once, on the terminal transition.
    """
    plate = models.CharField(max_length=16, db_index=True)
    sector = models.ForeignKey(Sector, on_delete=models.PROTECT, related_name="sessions")
    street = models.ForeignKey(Street, on_delete=models.PROTECT, related_name="sessions", null=True, blank=True)

    operator_in = models.ForeignKey(Operator, on_delete=models.PROTECT, related_name="sessions_started")
    operator_out = models.ForeignKey(
        Operator,
        on_delete=models.PROTECT,
        related_name="sessions_closed",
        null=True,
        blank=True,
    )

    status = models.CharField(max_length=16, choices=SessionStatus.choices, default=SessionStatus.ACTIVE, db_index=True)
    is_full_day = models.BooleanField(default=False)

    started_at = models.DateTimeField(default=timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)

    seconds_total = models.PositiveIntegerField(null=True, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    net_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    pricing_rule = models.ForeignKey(PricingRule, on_delete=models.SET_NULL, related_name="+", null=True, blank=True)
    discount = models.ForeignKey(SessionDiscount, on_delete=models.SET_NULL, related_name="+", null=True, blank=True)

    cancel_reason = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "parking_session"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "sector", "plate"],
                condition=Q(status="ACTIVE"),
                name="uq_session_active_plate_sector",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "status", "started_at"], name="session_status_started_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.plate} [{self.status}]"

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def mark_completed(self, *, quote, operator_out_id) -> None:
        self.status = SessionStatus.COMPLETED
        self.ended_at = quote.ended_at
        self.operator_out_id = operator_out_id
        self.seconds_total = quote.seconds_total
        self.duration_minutes = quote.duration_minutes
        self.gross_amount = quote.gross_amount
        self.discount_amount = quote.discount_amount
        self.net_amount = quote.net_amount
        self.pricing_rule_id = quote.rule_id
        self.discount_id = quote.discount_id

    def mark_canceled(self, *, operator_out_id, reason: str = "") -> None:
        self.status = SessionStatus.CANCELED
        self.ended_at = timezone.now()
        self.operator_out_id = operator_out_id
        self.cancel_reason = reason or ""
