# park_core/payments/webhooks.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone

from park_core.common.api.exceptions import ExternalServiceError
from park_core.parking.models import ParkingSession
from park_core.parking.settlement import SettlementService
from park_core.payments.models import Payment, PaymentMethod, PaymentStatus
from park_core.payments.services import PaymentService

logger = logging.getLogger(__name__)

APPROVED_STATUSES = frozenset({"APPROVED", "AUTHORIZED", "COMPLETED", "PAID", "SUCCESS"})


@dataclass(frozen=True)
class WebhookOutcome:
    payment: Payment
    replayed: bool = False
    session_completed: bool = False
    debt_id: UUID | None = None


def _existing(*, tenant_id: UUID, transaction_id: str) -> Payment | None:
    # FAILED attempts do not count: the provider may retry the same txn
    return Payment.objects.filter(
        tenant_id=tenant_id,
        provider_transaction_id=transaction_id,
        status=PaymentStatus.COMPLETED,
    ).first()


class PaymentWebhookService:
    """
    Applies a provider confirmation for a parking session.

    Idempotent per (tenant, transaction_id): once a COMPLETED Payment exists
    for the txn, a replay returns it and changes nothing. Non-approved
    deliveries are stored as FAILED rows and never block a later approval.
    """

    @staticmethod
    @transaction.atomic
    def handle(
        *,
        tenant_id: UUID,
        transaction_id: str,
        session_id: UUID,
        amount: Decimal,
        status: str,
        provider_ref: str = "",
        received_at: datetime | None = None,
    ) -> WebhookOutcome:
        transaction_id = (transaction_id or "").strip()
        if not transaction_id:
            raise ExternalServiceError("Provider callback without transaction id.")

        # session lock first: concurrent deliveries of the same txn serialize here
        session = ParkingSession.objects.select_for_update().get(id=session_id, tenant_id=tenant_id)

        existing = _existing(tenant_id=tenant_id, transaction_id=transaction_id)
        if existing is not None:
            logger.warning("webhook replay txn=%s session=%s", transaction_id, session.id)
            return WebhookOutcome(payment=existing, replayed=True)

        received_at = received_at or timezone.now()
        approved = (status or "").strip().upper() in APPROVED_STATUSES

        try:
            with transaction.atomic():
                if not approved:
                    payment = PaymentService.record(
                        tenant_id=tenant_id,
                        amount=amount,
                        method=PaymentMethod.WEBPAY,
                        session=session,
                        status=PaymentStatus.FAILED,
                        provider_transaction_id=transaction_id,
                        provider_ref=provider_ref,
                        paid_at=received_at,
                    )
                    logger.info("webhook txn=%s status=%s recorded as FAILED", transaction_id, status)
                    return WebhookOutcome(payment=payment)

                if not session.is_active:
                    payment = PaymentService.record(
                        tenant_id=tenant_id,
                        amount=amount,
                        method=PaymentMethod.WEBPAY,
                        session=session,
                        provider_transaction_id=transaction_id,
                        provider_ref=provider_ref,
                        paid_at=received_at,
                    )
                    logger.info("webhook txn=%s for %s session %s, no transition", transaction_id, session.status, session.id)
                    return WebhookOutcome(payment=payment)

                result = SettlementService.settle_from_provider(
                    session=session,
                    amount=amount,
                    transaction_id=transaction_id,
                    provider_ref=provider_ref,
                    received_at=received_at,
                )
        except IntegrityError:
            # another delivery stored the same txn between our check and insert
            existing = _existing(tenant_id=tenant_id, transaction_id=transaction_id)
            if existing is None:
                raise
            logger.warning("webhook replay txn=%s lost the insert race", transaction_id)
            return WebhookOutcome(payment=existing, replayed=True)

        logger.info("webhook txn=%s applied to session %s", transaction_id, session.id)
        return WebhookOutcome(
            payment=result.payment,
            session_completed=True,
            debt_id=result.debt.id if result.debt else None,
        )
