# park_core/pricing/calculator.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Sequence

from park_core.common.money import ZERO, money
from park_core.pricing.models import PricingRule, RuleType

MINUTES_PER_DAY = 1440


@dataclass(frozen=True)
class GrossAmount:
    amount: Decimal
    breakdown: tuple[dict, ...] = field(default_factory=tuple)
    min_amount_applied: bool = False
    daily_cap_applied: bool = False


def _line(kind: str, *, minutes: int | None = None, rate: Decimal | None = None, amount: Decimal) -> dict:
    return {
        "kind": kind,
        "minutes": minutes,
        "rate": None if rate is None else str(money(rate)),
        "amount": str(money(amount)),
    }


class QuoteCalculator:
    """
    Matched rule + elapsed minutes -> gross amount (before discounts).
    """

    @staticmethod
    def _time_based(rule: PricingRule, minutes: int) -> tuple[Decimal, list[dict], bool]:
        rate = rule.price_per_min or ZERO
        amount = rate * minutes
        lines = [_line("per_minute", minutes=minutes, rate=rate, amount=amount)]

        if rule.min_amount is None:
            return amount, lines, False

        if rule.min_amount_is_base:
            # min_amount covers the rule's first tier; every minute past it is charged on top
            threshold = rule.min_duration_minutes
            if minutes <= threshold:
                if amount < rule.min_amount:
                    return rule.min_amount, [_line("base", minutes=minutes, amount=rule.min_amount)], True
                return amount, lines, False
            extra = minutes - threshold
            amount = rule.min_amount + rate * extra
            return amount, [
                _line("base", minutes=threshold, amount=rule.min_amount),
                _line("per_minute", minutes=extra, rate=rate, amount=rate * extra),
            ], True

        if amount < rule.min_amount:
            lines.append(_line("minimum", amount=rule.min_amount - amount))
            return rule.min_amount, lines, True
        return amount, lines, False

    @staticmethod
    def _graduated(tiers: Sequence[PricingRule], minutes: int) -> tuple[Decimal, list[dict]]:
        amount = ZERO
        lines: list[dict] = []
        for tier in tiers:
            lower = tier.min_duration_minutes
            if minutes <= lower:
                continue
            upper = minutes if tier.max_duration_minutes is None else min(minutes, tier.max_duration_minutes)
            spent = upper - lower
            if spent <= 0:
                continue
            rate = tier.price_per_min or ZERO
            amount += rate * spent
            lines.append(_line("tier", minutes=spent, rate=rate, amount=rate * spent))
        return amount, lines

    @staticmethod
    def gross(rule: PricingRule, minutes: int, tiers: Iterable[PricingRule] = ()) -> GrossAmount:
        min_applied = False

        if rule.rule_type == RuleType.FIXED:
            amount = rule.fixed_price or ZERO
            lines = [_line("fixed", amount=amount)]
        elif rule.rule_type == RuleType.GRADUATED:
            amount, lines = QuoteCalculator._graduated(tuple(tiers) or (rule,), minutes)
            if rule.min_amount is not None and amount < rule.min_amount:
                lines.append(_line("minimum", amount=rule.min_amount - amount))
                amount = rule.min_amount
                min_applied = True
        else:
            amount, lines, min_applied = QuoteCalculator._time_based(rule, minutes)

        cap_applied = False
        if rule.daily_max_amount is not None:
            # cap per started 24h block; a single block for anything up to a day
            days = max(1, math.ceil(minutes / MINUTES_PER_DAY))
            cap = rule.daily_max_amount * days
            if amount > cap:
                lines.append(_line("daily_cap", amount=cap - amount))
                amount = cap
                cap_applied = True

        return GrossAmount(
            amount=money(amount),
            breakdown=tuple(lines),
            min_amount_applied=min_applied,
            daily_cap_applied=cap_applied,
        )

    @staticmethod
    def full_day(rules: Iterable[PricingRule]) -> Decimal | None:
        """Highest daily cap of the active rules; None when no rule has one."""
        caps = [r.daily_max_amount for r in rules if r.daily_max_amount is not None]
        return money(max(caps)) if caps else None
