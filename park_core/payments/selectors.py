# park_core/payments/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from park_core.payments.models import Payment


def payments_filtered(
    *,
    tenant_id: UUID,
    session_id: UUID | None = None,
    debt_id: UUID | None = None,
    shift_id: UUID | None = None,
    method: str | None = None,
    status: str | None = None,
) -> QuerySet[Payment]:
    qs = Payment.objects.filter(tenant_id=tenant_id).order_by("-paid_at")

    if session_id:
        qs = qs.filter(session_id=session_id)
    if debt_id:
        qs = qs.filter(debt_id=debt_id)
    if shift_id:
        qs = qs.filter(shift_id=shift_id)
    if method:
        qs = qs.filter(method=method)
    if status:
        qs = qs.filter(status=status)

    return qs
