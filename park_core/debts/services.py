# park_core/debts/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from park_core.audit.services import AuditService
from park_core.common import error_codes
from park_core.common.api.exceptions import ConflictError, DomainValidationError
from park_core.common.money import ZERO, money
from park_core.debts.models import Debt, DebtOrigin, DebtStatus
from park_core.parking.models import ParkingSession, normalize_plate
from park_core.payments.models import Payment, PaymentMethod
from park_core.payments.services import PaymentService
from park_core.shifts.services import ShiftService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DebtSettlement:
    debt: Debt
    payment: Payment


class DebtService:
    @staticmethod
    def create_from_session(
        *,
        session: ParkingSession,
        amount: Decimal,
        actor_id: UUID | None = None,
        notes: str = "",
    ) -> Debt:
        """
        PENDING debt for a session that left without paying.
        Runs inside the caller's (checkout) transaction.
        """
        amount = money(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": "Debt amount must be > 0."})

        debt = Debt.objects.create(
            tenant_id=session.tenant_id,
            plate=session.plate,
            principal_amount=amount,
            origin=DebtOrigin.SESSION,
            status=DebtStatus.PENDING,
            session=session,
            notes=notes or "",
            created_by_id=actor_id,
        )
        logger.info("debt %s created for session %s plate=%s amount=%s", debt.id, session.id, session.plate, amount)
        return debt

    @staticmethod
    @transaction.atomic
    def create_manual(
        *,
        tenant_id: UUID,
        plate: str,
        amount: Decimal,
        origin: str = DebtOrigin.MANUAL,
        notes: str = "",
        actor_id: UUID | None = None,
    ) -> Debt:
        if origin not in (DebtOrigin.MANUAL, DebtOrigin.FINE):
            raise ValidationError({"origin": "Manual debts must have origin MANUAL or FINE."})

        plate = normalize_plate(plate)
        if not plate:
            raise ValidationError({"plate": "Plate is required."})

        amount = money(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": "Debt amount must be > 0."})

        debt = Debt.objects.create(
            tenant_id=tenant_id,
            plate=plate,
            principal_amount=amount,
            origin=origin,
            status=DebtStatus.PENDING,
            notes=notes or "",
            created_by_id=actor_id,
        )
        AuditService.log(
            tenant_id=tenant_id,
            event_code="debt.created",
            entity_type="Debt",
            entity_id=debt.id,
            actor_id=actor_id,
            metadata={"plate": plate, "amount": amount, "origin": origin},
        )
        logger.info("manual debt %s plate=%s amount=%s origin=%s", debt.id, plate, amount, origin)
        return debt

    @staticmethod
    def _ensure_pending(debt: Debt) -> None:
        if debt.status != DebtStatus.PENDING:
            logger.warning("debt %s is %s, rejecting", debt.id, debt.status)
            raise ConflictError(f"Debt is {debt.status}, not PENDING.", code=error_codes.DEBT_NOT_PENDING)

    @staticmethod
    @transaction.atomic
    def settle(
        *,
        tenant_id: UUID,
        debt_id: UUID,
        amount: Decimal,
        method: str,
        cashier_id: UUID,
        device_id: str | None = None,
    ) -> DebtSettlement:
        """
        PENDING -> SETTLED, exactly once. The row lock plus the status
        check make a concurrent second settle observe SETTLED and fail.
        """
        debt = Debt.objects.select_for_update().get(id=debt_id, tenant_id=tenant_id)
        DebtService._ensure_pending(debt)

        amount = money(amount)
        if amount <= ZERO:
            raise ValidationError({"amount": "Settlement amount must be > 0."})
        if amount > debt.principal_amount:
            raise DomainValidationError(
                {"amount": f"Amount exceeds the pending debt ({debt.principal_amount})."},
                error_code=error_codes.AMOUNT_EXCEEDS_DEBT,
            )
        if method not in PaymentMethod.values:
            raise ValidationError({"method": f"Must be one of {', '.join(PaymentMethod.values)}."})

        shift = ShiftService.locked_open_shift(tenant_id=tenant_id, operator_id=cashier_id, device_id=device_id)
        if shift is None and method == PaymentMethod.CASH:
            raise ConflictError("Cash settlements require an open shift.", code=error_codes.NO_SHIFT_OPEN)

        payment = PaymentService.record(
            tenant_id=tenant_id,
            amount=amount,
            method=method,
            debt=debt,
            shift=shift,
            cashier_id=cashier_id,
        )

        debt.status = DebtStatus.SETTLED
        debt.settled_amount = amount
        debt.settled_at = payment.paid_at
        debt.settled_by_id = cashier_id
        debt.settlement_payment = payment
        debt.save(
            update_fields=["status", "settled_amount", "settled_at", "settled_by", "settlement_payment", "updated_at"]
        )

        AuditService.log(
            tenant_id=tenant_id,
            event_code="debt.settled",
            entity_type="Debt",
            entity_id=debt.id,
            actor_id=cashier_id,
            metadata={"amount": amount, "method": method, "payment_id": payment.id},
        )
        logger.info("debt %s settled amount=%s method=%s", debt.id, amount, method)
        return DebtSettlement(debt=debt, payment=payment)

    @staticmethod
    @transaction.atomic
    def cancel(*, tenant_id: UUID, debt_id: UUID, actor_id: UUID, reason: str = "") -> Debt:
        debt = Debt.objects.select_for_update().get(id=debt_id, tenant_id=tenant_id)
        DebtService._ensure_pending(debt)

        debt.status = DebtStatus.CANCELLED
        debt.cancelled_at = timezone.now()
        debt.cancel_reason = (reason or "")[:255]
        debt.save(update_fields=["status", "cancelled_at", "cancel_reason", "updated_at"])

        AuditService.log(
            tenant_id=tenant_id,
            event_code="debt.cancelled",
            entity_type="Debt",
            entity_id=debt.id,
            actor_id=actor_id,
            metadata={"reason": reason},
        )
        logger.info("debt %s cancelled", debt.id)
        return debt
