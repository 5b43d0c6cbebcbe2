# park_core/tenants/selectors.py
from __future__ import annotations

from uuid import UUID
from zoneinfo import ZoneInfo

from park_core.tenants.models import Tenant, TenantStatus, default_timezone


def tenant_by_id(*, tenant_id: UUID) -> Tenant:
    return Tenant.objects.get(id=tenant_id)


def is_tenant_active(*, tenant_id: UUID) -> bool:
    return Tenant.objects.filter(id=tenant_id, status=TenantStatus.ACTIVE).exists()


def tenant_zone(*, tenant_id: UUID) -> ZoneInfo:
    name = Tenant.objects.filter(id=tenant_id).values_list("timezone", flat=True).first()
    return ZoneInfo(name or default_timezone())


def tenant_plan_limit(*, tenant_id: UUID, key: str) -> int | None:
    metadata = Tenant.objects.filter(id=tenant_id).values_list("metadata", flat=True).first() or {}
    value = metadata.get(key)
    return int(value) if value is not None else None
