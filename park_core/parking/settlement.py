# park_core/parking/settlement.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from park_core.audit.services import AuditService
from park_core.common import error_codes
from park_core.common.api.exceptions import ConflictError, DomainValidationError
from park_core.common.money import ZERO, money
from park_core.debts.models import Debt
from park_core.debts.services import DebtService
from park_core.parking.models import ParkingSession
from park_core.parking.services import ensure_active, quote_for_session
from park_core.payments.models import Payment, PaymentMethod
from park_core.payments.services import PaymentService
from park_core.pricing.services import Quote
from park_core.shifts.services import ShiftService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    session: ParkingSession
    quote: Quote
    payment: Payment | None = None
    debt: Debt | None = None
    change: Decimal = ZERO


class SettlementService:
    """
    Transaction boundary for ending a session: quote, payment or debt,
    shift operation and the state transition commit together or not at all.

    Lock order is always session, then shift.
    """

    @staticmethod
    def _lock_active(*, tenant_id: UUID, session_id: UUID) -> ParkingSession:
        session = ParkingSession.objects.select_for_update().get(id=session_id, tenant_id=tenant_id)
        ensure_active(session)
        return session

    @staticmethod
    def _tendered(*, method: str, net: Decimal, amount: Decimal | None) -> Decimal:
        if method not in PaymentMethod.values:
            raise ValidationError({"payment_method": f"Must be one of {', '.join(PaymentMethod.values)}."})

        if amount is None:
            if method == PaymentMethod.CASH:
                raise ValidationError({"amount": "Amount received is required for CASH payments."})
            return net

        received = money(amount)
        if received < net:
            raise DomainValidationError(
                {"amount": f"Amount {received} does not cover the amount due ({net})."},
                error_code=error_codes.INSUFFICIENT_PAYMENT,
            )
        if method != PaymentMethod.CASH and received > net:
            raise DomainValidationError(
                {"amount": f"{method} payments must match the amount due ({net})."},
                error_code=error_codes.OVERPAYMENT_NOT_ALLOWED,
            )
        return received

    @staticmethod
    def _complete(session: ParkingSession, *, quote: Quote, operator_id: UUID, event: str, extra: dict) -> None:
        session.mark_completed(quote=quote, operator_out_id=operator_id)
        session.save(
            update_fields=[
                "status",
                "ended_at",
                "operator_out",
                "seconds_total",
                "duration_minutes",
                "gross_amount",
                "discount_amount",
                "net_amount",
                "pricing_rule",
                "discount",
                "updated_at",
            ]
        )
        AuditService.log(
            tenant_id=session.tenant_id,
            event_code=event,
            entity_type="ParkingSession",
            entity_id=session.id,
            actor_id=operator_id,
            metadata={
                "plate": session.plate,
                "duration_minutes": quote.duration_minutes,
                "gross_amount": quote.gross_amount,
                "discount_amount": quote.discount_amount,
                "net_amount": quote.net_amount,
                "rule_id": quote.rule_id,
                **extra,
            },
        )

    @staticmethod
    @transaction.atomic
    def checkout(
        *,
        tenant_id: UUID,
        session_id: UUID,
        operator_id: UUID,
        payment_method: str,
        amount: Decimal | None = None,
        ended_at: datetime | None = None,
        device_id: str | None = None,
        discount_id: UUID | None = None,
        discount_code: str | None = None,
    ) -> CheckoutResult:
        session = SettlementService._lock_active(tenant_id=tenant_id, session_id=session_id)
        quote = quote_for_session(
            session,
            ended_at=ended_at or timezone.now(),
            discount_id=discount_id,
            discount_code=discount_code,
        )
        net = quote.net_amount

        payment = None
        change = ZERO
        if net > ZERO:
            received = SettlementService._tendered(method=payment_method, net=net, amount=amount)

            shift = ShiftService.locked_open_shift(tenant_id=tenant_id, operator_id=operator_id, device_id=device_id)
            if shift is None and payment_method == PaymentMethod.CASH:
                raise ConflictError("Cash checkout requires an open shift.", code=error_codes.NO_SHIFT_OPEN)

            payment = PaymentService.record(
                tenant_id=tenant_id,
                amount=net,
                amount_received=received,
                method=payment_method,
                session=session,
                shift=shift,
                cashier_id=operator_id,
                paid_at=quote.ended_at,
            )
            change = payment.change_amount

        SettlementService._complete(
            session,
            quote=quote,
            operator_id=operator_id,
            event="session.completed",
            extra={"payment_id": payment.id if payment else None, "method": payment_method},
        )
        logger.info("session %s checked out net=%s method=%s", session.id, net, payment_method)
        return CheckoutResult(session=session, quote=quote, payment=payment, change=change)

    @staticmethod
    @transaction.atomic
    def force_checkout_without_payment(
        *,
        tenant_id: UUID,
        session_id: UUID,
        operator_id: UUID,
        ended_at: datetime | None = None,
        discount_id: UUID | None = None,
        discount_code: str | None = None,
    ) -> CheckoutResult:
        """
        Vehicle left without paying: COMPLETED session plus a PENDING debt for the quote.
        """
        session = SettlementService._lock_active(tenant_id=tenant_id, session_id=session_id)
        quote = quote_for_session(
            session,
            ended_at=ended_at or timezone.now(),
            discount_id=discount_id,
            discount_code=discount_code,
        )

        debt = None
        if quote.net_amount > ZERO:
            debt = DebtService.create_from_session(
                session=session,
                amount=quote.net_amount,
                actor_id=operator_id,
                notes="Left without paying.",
            )

        SettlementService._complete(
            session,
            quote=quote,
            operator_id=operator_id,
            event="session.completed_unpaid",
            extra={"debt_id": debt.id if debt else None},
        )
        logger.info("session %s force-checked out, debt=%s", session.id, debt.id if debt else None)
        return CheckoutResult(session=session, quote=quote, debt=debt)

    @staticmethod
    def settle_from_provider(
        *,
        session: ParkingSession,
        amount: Decimal,
        transaction_id: str,
        provider_ref: str = "",
        received_at: datetime | None = None,
    ) -> CheckoutResult:
        """
        Confirmed card/wallet payment for an ACTIVE session. The caller
        (webhook handler) holds the session lock inside its transaction.
        A shortfall against the quote becomes a PENDING session debt.
        """
        ensure_active(session)
        received_at = received_at or timezone.now()
        quote = quote_for_session(session, ended_at=received_at)

        amount = money(amount)
        shift = ShiftService.locked_open_shift(tenant_id=session.tenant_id, operator_id=session.operator_in_id)
        payment = PaymentService.record(
            tenant_id=session.tenant_id,
            amount=amount,
            method=PaymentMethod.WEBPAY,
            session=session,
            shift=shift,
            provider_transaction_id=transaction_id,
            provider_ref=provider_ref,
            paid_at=received_at,
        )

        debt = None
        shortfall = money(quote.net_amount - amount)
        if shortfall > ZERO:
            debt = DebtService.create_from_session(
                session=session,
                amount=shortfall,
                notes=f"Provider payment {transaction_id} short by {shortfall}.",
            )

        SettlementService._complete(
            session,
            quote=quote,
            operator_id=None,
            event="session.completed",
            extra={"payment_id": payment.id, "method": PaymentMethod.WEBPAY, "debt_id": debt.id if debt else None},
        )
        logger.info("session %s settled by provider txn=%s", session.id, transaction_id)
        return CheckoutResult(session=session, quote=quote, payment=payment, debt=debt)
