# park_core/pricing/selectors.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from django.db.models import Q, QuerySet

from park_core.pricing.models import PricingProfile, PricingRule, SessionDiscount


def active_profiles(*, tenant_id: UUID, sector_id: UUID, at: datetime) -> QuerySet[PricingProfile]:
    return (
        PricingProfile.objects.filter(tenant_id=tenant_id, sector_id=sector_id, is_active=True)
        .filter(Q(active_from__isnull=True) | Q(active_from__lte=at))
        .filter(Q(active_to__isnull=True) | Q(active_to__gte=at))
    )


def active_rules(*, tenant_id: UUID, sector_id: UUID, at: datetime) -> QuerySet[PricingRule]:
    """
    Active rules of the sector's active profiles, in evaluation order.
    Weekday / time-of-day / duration filters are applied in Python by the matcher.
    """
    profile_ids = active_profiles(tenant_id=tenant_id, sector_id=sector_id, at=at).values("id")
    return (
        PricingRule.objects.filter(tenant_id=tenant_id, profile_id__in=profile_ids, is_active=True)
        .select_related("profile")
        .order_by("priority", "id")
    )


def discount_candidates(
    *,
    tenant_id: UUID,
    on_date,
    discount_id: UUID | None = None,
    discount_code: str | None = None,
) -> QuerySet[SessionDiscount]:
    qs = (
        SessionDiscount.objects.filter(tenant_id=tenant_id, is_active=True)
        .filter(Q(valid_from__isnull=True) | Q(valid_from__lte=on_date))
        .filter(Q(valid_until__isnull=True) | Q(valid_until__gte=on_date))
    )
    if discount_id:
        qs = qs.filter(id=discount_id)
    if discount_code:
        qs = qs.filter(code=discount_code)
    return qs.order_by("priority", "id")
