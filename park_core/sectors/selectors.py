# park_core/sectors/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from park_core.sectors.models import Sector, Street


def sectors_for_tenant(*, tenant_id: UUID, active_only: bool = True) -> QuerySet[Sector]:
    qs = Sector.objects.filter(tenant_id=tenant_id)
    if active_only:
        qs = qs.filter(is_active=True)
    return qs.order_by("name")


def sector_by_id(*, tenant_id: UUID, sector_id: UUID) -> Sector:
    return Sector.objects.get(id=sector_id, tenant_id=tenant_id)


def street_in_sector(*, tenant_id: UUID, sector_id: UUID, street_id: UUID) -> Street:
    return Street.objects.get(id=street_id, tenant_id=tenant_id, sector_id=sector_id)
