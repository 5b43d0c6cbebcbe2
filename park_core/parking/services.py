# park_core/parking/services.py
from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from park_core.audit.services import AuditService
from park_core.common import error_codes
from park_core.common.api.exceptions import ConflictError, InvalidStateError
from park_core.operators.services.membership import operator_by_id
from park_core.parking.models import ParkingSession, SessionStatus, normalize_plate
from park_core.pricing.services import Quote, QuoteService
from park_core.sectors.selectors import sector_by_id, street_in_sector
from park_core.shifts.services import ShiftService
from park_core.tenants.selectors import tenant_plan_limit, tenant_zone

logger = logging.getLogger(__name__)

MONTHLY_SESSION_LIMIT_KEY = "max_sessions_per_month"


def ensure_active(session: ParkingSession) -> None:
    if session.status != SessionStatus.ACTIVE:
        raise InvalidStateError(f"Session is {session.status}, not ACTIVE.")


class ParkingSessionService:
    @staticmethod
    def _check_plan_limit(*, tenant_id: UUID, at: datetime) -> None:
        limit = tenant_plan_limit(tenant_id=tenant_id, key=MONTHLY_SESSION_LIMIT_KEY)
        if limit is None:
            return
        month_start = timezone.localtime(at, tenant_zone(tenant_id=tenant_id)).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        used = ParkingSession.objects.filter(tenant_id=tenant_id, started_at__gte=month_start).count()
        if used >= limit:
            logger.warning("tenant %s reached its monthly session limit (%s)", tenant_id, limit)
            raise ConflictError(
                f"Monthly session limit reached ({limit}).",
                code=error_codes.PLAN_LIMIT_EXCEEDED,
            )

    @staticmethod
    @transaction.atomic
    def create(
        *,
        tenant_id: UUID,
        plate: str,
        sector_id: UUID,
        operator_id: UUID,
        street_id: UUID | None = None,
        is_full_day: bool = False,
        started_at: datetime | None = None,
        device_id: str | None = None,
    ) -> ParkingSession:
        plate = normalize_plate(plate)
        if not plate:
            raise ValidationError({"plate": "Plate is required."})

        sector = sector_by_id(tenant_id=tenant_id, sector_id=sector_id)
        if not sector.is_active:
            raise ValidationError({"sector_id": "Sector is not active."})
        street = None
        if street_id:
            street = street_in_sector(tenant_id=tenant_id, sector_id=sector.id, street_id=street_id)

        operator = operator_by_id(tenant_id=tenant_id, operator_id=operator_id)
        started_at = started_at or timezone.now()

        if ShiftService.current(tenant_id=tenant_id, operator_id=operator.id, device_id=device_id) is None:
            raise ConflictError("Operator has no open shift.", code=error_codes.NO_SHIFT_OPEN)

        ParkingSessionService._check_plan_limit(tenant_id=tenant_id, at=started_at)

        already = ParkingSession.objects.filter(
            tenant_id=tenant_id, sector=sector, plate=plate, status=SessionStatus.ACTIVE
        ).exists()
        if already:
            raise ConflictError(
                f"Plate {plate} already has an active session in this sector.",
                code=error_codes.SESSION_ALREADY_ACTIVE,
            )

        try:
            with transaction.atomic():
                session = ParkingSession.objects.create(
                    tenant_id=tenant_id,
                    plate=plate,
                    sector=sector,
                    street=street,
                    operator_in=operator,
                    status=SessionStatus.ACTIVE,
                    is_full_day=is_full_day,
                    started_at=started_at,
                )
        except IntegrityError:
            raise ConflictError(
                f"Plate {plate} already has an active session in this sector.",
                code=error_codes.SESSION_ALREADY_ACTIVE,
            )

        logger.info("session %s started plate=%s sector=%s", session.id, plate, sector.id)
        return session

    @staticmethod
    def quote(
        *,
        tenant_id: UUID,
        session_id: UUID,
        ended_at: datetime | None = None,
        discount_id: UUID | None = None,
        discount_code: str | None = None,
    ) -> Quote:
        """
        Read-only: nothing is written, repeatable while the session is ACTIVE.
        """
        session = ParkingSession.objects.get(id=session_id, tenant_id=tenant_id)
        ensure_active(session)
        return quote_for_session(
            session,
            ended_at=ended_at or timezone.now(),
            discount_id=discount_id,
            discount_code=discount_code,
        )

    @staticmethod
    @transaction.atomic
    def cancel(*, tenant_id: UUID, session_id: UUID, operator_id: UUID, reason: str = "") -> ParkingSession:
        session = ParkingSession.objects.select_for_update().get(id=session_id, tenant_id=tenant_id)
        ensure_active(session)

        session.mark_canceled(operator_out_id=operator_id, reason=reason)
        session.save(update_fields=["status", "ended_at", "operator_out", "cancel_reason", "updated_at"])

        AuditService.log(
            tenant_id=tenant_id,
            event_code="session.canceled",
            entity_type="ParkingSession",
            entity_id=session.id,
            actor_id=operator_id,
            metadata={"plate": session.plate, "reason": reason},
        )
        logger.info("session %s canceled", session.id)
        return session


def quote_for_session(
    session: ParkingSession,
    *,
    ended_at: datetime,
    discount_id: UUID | None = None,
    discount_code: str | None = None,
) -> Quote:
    return QuoteService.compute(
        tenant_id=session.tenant_id,
        sector_id=session.sector_id,
        started_at=session.started_at,
        ended_at=ended_at,
        is_full_day=session.is_full_day,
        discount_id=discount_id,
        discount_code=discount_code,
    )
