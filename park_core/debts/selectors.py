# park_core/debts/selectors.py
from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from django.db.models import Count, QuerySet, Sum

from park_core.common.money import ZERO, money
from park_core.debts.models import Debt, DebtOrigin, DebtStatus
from park_core.parking.models import normalize_plate


def debts_qs(*, tenant_id: UUID) -> QuerySet[Debt]:
    return Debt.objects.filter(tenant_id=tenant_id).order_by("-created_at")


def pending_debts_for_plate(*, tenant_id: UUID, plate: str) -> QuerySet[Debt]:
    return debts_qs(tenant_id=tenant_id).filter(plate=normalize_plate(plate), status=DebtStatus.PENDING)


def pending_total_for_plate(*, tenant_id: UUID, plate: str) -> tuple[Decimal, int]:
    agg = pending_debts_for_plate(tenant_id=tenant_id, plate=plate).aggregate(
        total=Sum("principal_amount"), n=Count("id")
    )
    return money(agg["total"] or ZERO), agg["n"] or 0


def pending_summary(*, tenant_id: UUID) -> dict:
    """
    {"total_amount", "count", "by_origin": {origin: {"total_amount", "count"}}}
    """
    rows = (
        Debt.objects.filter(tenant_id=tenant_id, status=DebtStatus.PENDING)
        .values("origin")
        .annotate(total=Sum("principal_amount"), n=Count("id"))
    )

    by_origin = {o: {"total_amount": ZERO, "count": 0} for o in DebtOrigin.values}
    for row in rows:
        by_origin[row["origin"]] = {"total_amount": money(row["total"] or ZERO), "count": row["n"]}

    return {
        "total_amount": money(sum((v["total_amount"] for v in by_origin.values()), ZERO)),
        "count": sum(v["count"] for v in by_origin.values()),
        "by_origin": by_origin,
    }
