# park_core/shifts/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet, Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from park_core.audit.services import AuditService
from park_core.common import error_codes
from park_core.common.api.exceptions import ConflictError
from park_core.common.money import ZERO, money
from park_core.operators.models import Operator
from park_core.payments.models import Payment, PaymentMethod, PaymentStatus
from park_core.sectors.selectors import sector_by_id
from park_core.shifts.models import (
    MONETARY_KINDS,
    AdjustmentType,
    CashAdjustment,
    OperationKind,
    Shift,
    ShiftOperation,
    ShiftStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShiftTotals:
    opening_float: Decimal
    cash_collected: Decimal
    cash_withdrawals: Decimal
    cash_deposits: Decimal
    expected_cash: Decimal
    sales_total: Decimal
    tickets_count: int
    payments_by_method: dict[str, Decimal] = field(default_factory=dict)


class ShiftService:
    @staticmethod
    def _open_shifts(*, tenant_id: UUID, operator_id: UUID, device_id: str | None = None) -> QuerySet[Shift]:
        qs = Shift.objects.filter(tenant_id=tenant_id, operator_id=operator_id, status=ShiftStatus.OPEN)
        if device_id:
            qs = qs.filter(device_id=device_id)
        return qs.order_by("-opened_at")

    @staticmethod
    def _ensure_open(shift: Shift, *, code: str = error_codes.SHIFT_NOT_OPEN) -> None:
        if shift.status != ShiftStatus.OPEN:
            raise ConflictError(f"Shift is {shift.status}, not OPEN.", code=code)

    @staticmethod
    def current(*, tenant_id: UUID, operator_id: UUID, device_id: str | None = None) -> Shift | None:
        return ShiftService._open_shifts(tenant_id=tenant_id, operator_id=operator_id, device_id=device_id).first()

    @staticmethod
    def locked_open_shift(*, tenant_id: UUID, operator_id: UUID, device_id: str | None = None) -> Shift | None:
        """
        Current OPEN shift, row-locked. Must run inside a transaction.
        Serializes payments against a concurrent close of the same drawer.
        """
        return (
            ShiftService._open_shifts(tenant_id=tenant_id, operator_id=operator_id, device_id=device_id)
            .select_for_update()
            .first()
        )

    @staticmethod
    @transaction.atomic
    def open(
        *,
        tenant_id: UUID,
        operator_id: UUID,
        opening_float: Decimal,
        sector_id: UUID | None = None,
        device_id: str = "",
        actor_id: UUID | None = None,
        notes: str = "",
    ) -> Shift:
        # lock the operator row so two opens for the same operator queue up
        operator = Operator.objects.select_for_update().get(id=operator_id, tenant_id=tenant_id)
        if not operator.is_active:
            raise ValidationError({"operator_id": "Operator is not active."})

        opening_float = money(opening_float)
        if opening_float < ZERO:
            raise ValidationError({"opening_float": "Opening float must be >= 0."})

        if sector_id:
            sector_by_id(tenant_id=tenant_id, sector_id=sector_id)

        device_id = (device_id or "").strip()
        if ShiftService._open_shifts(tenant_id=tenant_id, operator_id=operator_id, device_id=device_id).exists():
            logger.warning("operator=%s already has an open shift (device=%r)", operator_id, device_id)
            raise ConflictError("Operator already has an open shift.", code=error_codes.SHIFT_ALREADY_OPEN)

        try:
            with transaction.atomic():
                shift = Shift.objects.create(
                    tenant_id=tenant_id,
                    operator=operator,
                    sector_id=sector_id,
                    device_id=device_id,
                    status=ShiftStatus.OPEN,
                    opened_at=timezone.now(),
                    opening_float=opening_float,
                    notes=notes or "",
                )
        except IntegrityError:
            raise ConflictError("Operator already has an open shift.", code=error_codes.SHIFT_ALREADY_OPEN)

        ShiftOperation.objects.create(
            tenant_id=tenant_id,
            shift=shift,
            kind=OperationKind.OPEN,
            amount=opening_float,
            ref_type="Shift",
            ref_id=shift.id,
            actor_id=actor_id or operator_id,
        )

        AuditService.log(
            tenant_id=tenant_id,
            event_code="shift.opened",
            entity_type="Shift",
            entity_id=shift.id,
            actor_id=actor_id or operator_id,
            metadata={"opening_float": opening_float, "device_id": device_id},
        )
        logger.info("shift %s opened by operator=%s float=%s", shift.id, operator_id, opening_float)
        return shift

    @staticmethod
    def record_payment(*, shift: Shift, payment: Payment, actor_id: UUID | None = None) -> ShiftOperation:
        """
        Appends a PAYMENT operation. Caller holds the shift row lock.
        """
        ShiftService._ensure_open(shift, code=error_codes.NO_SHIFT_OPEN)
        return ShiftOperation.objects.create(
            tenant_id=shift.tenant_id,
            shift=shift,
            kind=OperationKind.PAYMENT,
            amount=payment.amount,
            ref_type="Payment",
            ref_id=payment.id,
            actor_id=actor_id,
            notes=payment.method,
        )

    @staticmethod
    @transaction.atomic
    def record_adjustment(
        *,
        tenant_id: UUID,
        shift_id: UUID,
        adjustment_type: str,
        amount: Decimal,
        reason: str,
        actor_id: UUID,
        receipt_number: str = "",
        approved_by_id: UUID | None = None,
    ) -> CashAdjustment:
        shift = Shift.objects.select_for_update().get(id=shift_id, tenant_id=tenant_id)
        ShiftService._ensure_open(shift)

        if adjustment_type not in AdjustmentType.values:
            raise ValidationError({"type": f"Must be one of {', '.join(AdjustmentType.values)}."})

        amount = money(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": "Adjustment amount must be > 0."})
        if not (reason or "").strip():
            raise ValidationError({"reason": "A reason is required for cash adjustments."})

        adjustment = CashAdjustment.objects.create(
            tenant_id=tenant_id,
            shift=shift,
            adjustment_type=adjustment_type,
            amount=amount,
            reason=reason.strip(),
            receipt_number=receipt_number or "",
            actor_id=actor_id,
            approved_by_id=approved_by_id,
        )
        ShiftOperation.objects.create(
            tenant_id=tenant_id,
            shift=shift,
            kind=OperationKind(adjustment_type),
            amount=amount,
            ref_type="CashAdjustment",
            ref_id=adjustment.id,
            actor_id=actor_id,
            notes=reason.strip()[:255],
        )

        AuditService.log(
            tenant_id=tenant_id,
            event_code=f"shift.{adjustment_type.lower()}",
            entity_type="Shift",
            entity_id=shift.id,
            actor_id=actor_id,
            metadata={"amount": amount, "reason": reason, "receipt_number": receipt_number},
        )
        logger.info("shift %s %s of %s", shift.id, adjustment_type, amount)
        return adjustment

    @staticmethod
    def calculate_totals(*, shift: Shift) -> ShiftTotals:
        """
        Derived, never stored while OPEN:
          expected_cash = opening_float + cash payments + deposits - withdrawals
        """
        payments = Payment.objects.filter(tenant_id=shift.tenant_id, shift=shift, status=PaymentStatus.COMPLETED)

        by_method: dict[str, Decimal] = {m: ZERO for m in PaymentMethod.values}
        for row in payments.values("method").annotate(total=Sum("amount")):
            by_method[row["method"]] = money(row["total"] or ZERO)

        tickets = payments.filter(session__isnull=False).aggregate(n=Count("session", distinct=True))["n"] or 0

        adjustments = CashAdjustment.objects.filter(tenant_id=shift.tenant_id, shift=shift).aggregate(
            withdrawals=Sum("amount", filter=Q(adjustment_type=AdjustmentType.WITHDRAWAL)),
            deposits=Sum("amount", filter=Q(adjustment_type=AdjustmentType.DEPOSIT)),
        )
        withdrawals = money(adjustments["withdrawals"] or ZERO)
        deposits = money(adjustments["deposits"] or ZERO)

        cash = by_method[PaymentMethod.CASH]
        opening = money(shift.opening_float)

        return ShiftTotals(
            opening_float=opening,
            cash_collected=cash,
            cash_withdrawals=withdrawals,
            cash_deposits=deposits,
            expected_cash=money(opening + cash + deposits - withdrawals),
            sales_total=money(sum(by_method.values(), ZERO)),
            tickets_count=tickets,
            payments_by_method=by_method,
        )

    @staticmethod
    @transaction.atomic
    def close(
        *,
        tenant_id: UUID,
        shift_id: UUID,
        declared_cash: Decimal,
        closer_id: UUID,
        notes: str = "",
    ) -> Shift:
        shift = Shift.objects.select_for_update().get(id=shift_id, tenant_id=tenant_id)
        ShiftService._ensure_open(shift)

        declared_cash = money(declared_cash)
        if declared_cash < ZERO:
            raise ValidationError({"closing_declared_cash": "Declared cash must be >= 0."})

        totals = ShiftService.calculate_totals(shift=shift)

        shift.status = ShiftStatus.CLOSED
        shift.closed_at = timezone.now()
        shift.closed_by_id = closer_id
        shift.closing_declared_cash = declared_cash
        shift.expected_cash = totals.expected_cash
        shift.cash_over_short = money(declared_cash - totals.expected_cash)
        if notes:
            shift.notes = (shift.notes + "\n" + notes).strip()
        shift.save(
            update_fields=[
                "status",
                "closed_at",
                "closed_by",
                "closing_declared_cash",
                "expected_cash",
                "cash_over_short",
                "notes",
                "updated_at",
            ]
        )

        ShiftOperation.objects.create(
            tenant_id=tenant_id,
            shift=shift,
            kind=OperationKind.CLOSE,
            amount=declared_cash,
            ref_type="Shift",
            ref_id=shift.id,
            actor_id=closer_id,
            notes=(notes or "")[:255],
        )

        AuditService.log(
            tenant_id=tenant_id,
            event_code="shift.closed",
            entity_type="Shift",
            entity_id=shift.id,
            actor_id=closer_id,
            metadata={
                "declared_cash": declared_cash,
                "expected_cash": totals.expected_cash,
                "cash_over_short": shift.cash_over_short,
            },
        )
        logger.info(
            "shift %s closed: expected=%s declared=%s over_short=%s",
            shift.id, totals.expected_cash, declared_cash, shift.cash_over_short,
        )
        return shift

    @staticmethod
    @transaction.atomic
    def cancel(*, tenant_id: UUID, shift_id: UUID, actor_id: UUID, reason: str = "") -> Shift:
        shift = Shift.objects.select_for_update().get(id=shift_id, tenant_id=tenant_id)
        ShiftService._ensure_open(shift)

        has_money = ShiftOperation.objects.filter(
            tenant_id=tenant_id, shift=shift, kind__in=MONETARY_KINDS
        ).exists()
        if has_money:
            raise ConflictError(
                "Shift already has payments or cash adjustments; close it instead.",
                code=error_codes.SHIFT_HAS_OPERATIONS,
            )

        shift.status = ShiftStatus.CANCELED
        shift.canceled_at = timezone.now()
        if reason:
            shift.notes = (shift.notes + "\n" + f"CANCELED: {reason}").strip()
        shift.save(update_fields=["status", "canceled_at", "notes", "updated_at"])

        ShiftOperation.objects.create(
            tenant_id=tenant_id,
            shift=shift,
            kind=OperationKind.CANCEL,
            ref_type="Shift",
            ref_id=shift.id,
            actor_id=actor_id,
            notes=(reason or "")[:255],
        )

        AuditService.log(
            tenant_id=tenant_id,
            event_code="shift.canceled",
            entity_type="Shift",
            entity_id=shift.id,
            actor_id=actor_id,
            metadata={"reason": reason},
        )
        logger.info("shift %s canceled", shift.id)
        return shift
