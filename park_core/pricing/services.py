# park_core/pricing/services.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from park_core.common import error_codes
from park_core.common.api.exceptions import DomainValidationError, NoApplicableRuleError
from park_core.common.money import ZERO
from park_core.pricing.calculator import QuoteCalculator
from park_core.pricing.discounts import DiscountResolver
from park_core.pricing.matcher import RuleMatcher
from park_core.pricing.selectors import active_rules


@dataclass(frozen=True)
class Quote:
    """
    Amount owed for a stay, computed without side effects.
    Same (rules, started_at, ended_at, discount) always gives the same Quote.
    """
    sector_id: UUID
    started_at: datetime
    ended_at: datetime
    seconds_total: int
    duration_minutes: int
    is_full_day: bool

    rule_id: UUID | None
    profile_id: UUID | None
    rule_type: str | None

    gross_amount: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    discount_id: UUID | None

    breakdown: tuple[dict, ...] = ()
    min_amount_applied: bool = False
    daily_cap_applied: bool = False


def elapsed(started_at: datetime, ended_at: datetime) -> tuple[int, int]:
    """(seconds, whole minutes) between two instants."""
    if ended_at < started_at:
        raise DomainValidationError(
            {"ended_at": "ended_at must not be earlier than started_at."},
            error_code=error_codes.INVALID_TIME_RANGE,
        )
    seconds = int((ended_at - started_at).total_seconds())
    return seconds, seconds // 60


class QuoteService:
    @staticmethod
    def compute(
        *,
        tenant_id: UUID,
        sector_id: UUID,
        started_at: datetime,
        ended_at: datetime,
        is_full_day: bool = False,
        discount_id: UUID | None = None,
        discount_code: str | None = None,
    ) -> Quote:
        seconds, minutes = elapsed(started_at, ended_at)

        rule = None
        breakdown: tuple[dict, ...] = ()
        min_applied = cap_applied = False

        if is_full_day:
            gross = QuoteCalculator.full_day(active_rules(tenant_id=tenant_id, sector_id=sector_id, at=started_at))
            if gross is None:
                raise NoApplicableRuleError("No daily maximum is configured for a full-day charge in this sector.")
            breakdown = ({"kind": "full_day", "minutes": minutes, "rate": None, "amount": str(gross)},)
        else:
            match = RuleMatcher.match(
                tenant_id=tenant_id,
                sector_id=sector_id,
                at=started_at,
                duration_minutes=minutes,
            )
            rule = match.rule
            result = QuoteCalculator.gross(rule, minutes, match.tiers)
            gross = result.amount
            breakdown = result.breakdown
            min_applied = result.min_amount_applied
            cap_applied = result.daily_cap_applied

        net = gross
        discount = DiscountResolver.resolve(
            tenant_id=tenant_id,
            at=started_at,
            discount_id=discount_id,
            discount_code=discount_code,
        )
        if discount is not None:
            net = DiscountResolver.apply(discount, gross, minutes)

        return Quote(
            sector_id=sector_id,
            started_at=started_at,
            ended_at=ended_at,
            seconds_total=seconds,
            duration_minutes=minutes,
            is_full_day=is_full_day,
            rule_id=rule.id if rule else None,
            profile_id=rule.profile_id if rule else None,
            rule_type=rule.rule_type if rule else None,
            gross_amount=gross,
            discount_amount=max(gross - net, ZERO),
            net_amount=net,
            discount_id=discount.id if discount else None,
            breakdown=breakdown,
            min_amount_applied=min_applied,
            daily_cap_applied=cap_applied,
        )
