# park_core/payments/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from park_core.common.money import ZERO, money
from park_core.payments.models import Payment, PaymentMethod, PaymentStatus
from park_core.shifts.services import ShiftService

logger = logging.getLogger(__name__)


class PaymentService:
    @staticmethod
    def record(
        *,
        tenant_id: UUID,
        amount: Decimal,
        method: str = PaymentMethod.CASH,
        session=None,
        debt=None,
        shift=None,
        cashier_id: UUID | None = None,
        amount_received: Decimal | None = None,
        status: str = PaymentStatus.COMPLETED,
        provider_transaction_id: str = "",
        provider_ref: str = "",
        paid_at=None,
    ) -> Payment:
        """
        Persists a Payment and, when it lands in an OPEN shift, the matching
        PAYMENT operation. Runs inside the caller's transaction; the caller
        holds the locks on session/debt and shift.
        """
        if method not in PaymentMethod.values:
            raise ValidationError({"payment_method": f"Must be one of {', '.join(PaymentMethod.values)}."})
        if session is None and debt is None:
            raise ValidationError({"payment": "A payment must target a session or a debt."})

        amount = money(amount)
        if amount < ZERO:
            raise ValidationError({"amount": "Payment amount must be >= 0."})

        received = money(amount_received) if amount_received is not None else amount
        change = money(received - amount) if method == PaymentMethod.CASH else ZERO

        completed = status == PaymentStatus.COMPLETED
        payment = Payment.objects.create(
            tenant_id=tenant_id,
            session=session,
            debt=debt,
            shift=shift if completed else None,
            method=method,
            status=status,
            amount=amount,
            amount_received=received,
            change_amount=change,
            provider_transaction_id=provider_transaction_id or "",
            provider_ref=provider_ref or "",
            cashier_id=cashier_id,
            paid_at=paid_at or timezone.now(),
        )

        if shift is not None and completed:
            ShiftService.record_payment(shift=shift, payment=payment, actor_id=cashier_id)

        logger.info(
            "payment %s %s %s %s (session=%s debt=%s shift=%s)",
            payment.id, status, method, amount,
            getattr(session, "id", None), getattr(debt, "id", None), getattr(shift, "id", None) if completed else None,
        )
        return payment
