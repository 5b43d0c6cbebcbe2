# park_core/shifts/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from park_core.shifts.models import Shift, ShiftOperation


def shifts_filtered(
    *,
    tenant_id: UUID,
    operator_id: UUID | None = None,
    status: str | None = None,
    device_id: str | None = None,
) -> QuerySet[Shift]:
    qs = Shift.objects.filter(tenant_id=tenant_id).order_by("-opened_at")

    if operator_id:
        qs = qs.filter(operator_id=operator_id)
    if status:
        qs = qs.filter(status=status)
    if device_id:
        qs = qs.filter(device_id=device_id)

    return qs


def shift_operations(*, tenant_id: UUID, shift_id: UUID) -> QuerySet[ShiftOperation]:
    return ShiftOperation.objects.filter(tenant_id=tenant_id, shift_id=shift_id).order_by("at", "created_at")
