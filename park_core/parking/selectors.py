# park_core/parking/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from park_core.parking.models import ParkingSession, normalize_plate


def sessions_filtered(
    *,
    tenant_id: UUID,
    status: str | None = None,
    plate: str | None = None,
    sector_id: UUID | None = None,
) -> QuerySet[ParkingSession]:
    qs = ParkingSession.objects.filter(tenant_id=tenant_id).order_by("-started_at")

    if status:
        qs = qs.filter(status=status)
    if plate:
        qs = qs.filter(plate=normalize_plate(plate))
    if sector_id:
        qs = qs.filter(sector_id=sector_id)

    return qs
