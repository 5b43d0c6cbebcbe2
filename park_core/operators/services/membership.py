# park_core/operators/services/membership.py
from __future__ import annotations

from uuid import UUID

from park_core.operators.models import Operator
from park_core.tenants.selectors import is_tenant_active


def operator_for_user(*, user_id: int, tenant_id: UUID) -> Operator | None:
    """
    Resolve user -> active operator of an active tenant.
    This is the single source of truth used by scope enforcement.
    """
    if not is_tenant_active(tenant_id=tenant_id):
        return None
    return Operator.objects.filter(tenant_id=tenant_id, user_id=user_id, is_active=True).first()


def operator_by_id(*, tenant_id: UUID, operator_id: UUID) -> Operator:
    return Operator.objects.get(id=operator_id, tenant_id=tenant_id)
