# park_core/pricing/discounts.py
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from django.utils import timezone

from park_core.common.money import ZERO, money
from park_core.pricing.models import DiscountType, SessionDiscount
from park_core.pricing.selectors import discount_candidates
from park_core.tenants.selectors import tenant_zone

logger = logging.getLogger(__name__)


class DiscountResolver:
    """
    Optional reduction on top of a gross quote. At most one discount per quote,
    and only when the caller asks for one (by id or by code).
    """

    @staticmethod
    def resolve(
        *,
        tenant_id: UUID,
        at: datetime,
        discount_id: UUID | None = None,
        discount_code: str | None = None,
    ) -> SessionDiscount | None:
        if not discount_id and not discount_code:
            return None

        on_date = timezone.localtime(at, tenant_zone(tenant_id=tenant_id)).date()
        discount = discount_candidates(
            tenant_id=tenant_id,
            on_date=on_date,
            discount_id=discount_id,
            discount_code=discount_code,
        ).first()

        if discount is None:
            logger.info("requested discount id=%s code=%s not applicable on %s", discount_id, discount_code, on_date)
        return discount

    @staticmethod
    def _profile_amount(discount: SessionDiscount, minutes: int) -> Decimal:
        rate = discount.minute_value or ZERO
        min_dur = discount.minimum_duration or 0

        if min_dur > 0 and discount.min_amount is not None and minutes >= min_dur:
            return discount.min_amount + (minutes - min_dur) * rate
        if min_dur > 0 and discount.min_amount is None:
            return max(minutes, min_dur) * rate
        return minutes * rate

    @staticmethod
    def apply(discount: SessionDiscount, gross: Decimal, minutes: int) -> Decimal:
        """
        Returns the discounted amount. Never negative and never above gross.
        """
        if discount.discount_type == DiscountType.AMOUNT:
            off = discount.value or ZERO
            if discount.max_amount is not None:
                off = min(off, discount.max_amount)
            amount = max(gross - off, ZERO)
        elif discount.discount_type == DiscountType.PERCENTAGE:
            off = gross * (discount.value or ZERO) / Decimal("100")
            if discount.max_amount is not None:
                off = min(off, discount.max_amount)
            amount = gross - off
        else:
            amount = DiscountResolver._profile_amount(discount, minutes)

        if discount.min_amount is not None:
            amount = max(amount, discount.min_amount)

        return money(max(min(amount, gross), ZERO))
