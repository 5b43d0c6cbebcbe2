# park_core/pricing/matcher.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time
from uuid import UUID

from django.utils import timezone

from park_core.common.api.exceptions import NoApplicableRuleError
from park_core.pricing.models import PricingRule, RuleType
from park_core.pricing.selectors import active_rules
from park_core.tenants.selectors import tenant_zone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleMatch:
    rule: PricingRule
    # GRADUATED only: every tier of the matched rule's profile, ordered by min_duration_minutes
    tiers: tuple[PricingRule, ...] = ()


def time_window_contains(start: time | None, end: time | None, moment: time) -> bool:
    if start is None and end is None:
        return True
    start = start or time.min
    end = end or time.max
    if start <= end:
        return start <= moment <= end
    # wraps past midnight, e.g. 22:00-06:00
    return moment >= start or moment <= end


def weekday_allowed(days_of_week, weekday: int) -> bool:
    return not days_of_week or weekday in days_of_week


def duration_allowed(rule: PricingRule, minutes: int) -> bool:
    if minutes < rule.min_duration_minutes:
        return False
    return rule.max_duration_minutes is None or minutes <= rule.max_duration_minutes


class RuleMatcher:
    """
    Picks the single tariff rule governing (sector, instant, elapsed minutes).
    Weekday and time of day are read in the tenant's timezone.
    """

    @staticmethod
    def calendar_rules(*, tenant_id: UUID, sector_id: UUID, at: datetime) -> list[PricingRule]:
        """Active rules whose weekday and time-of-day windows contain `at`."""
        local = timezone.localtime(at, tenant_zone(tenant_id=tenant_id))
        weekday = local.weekday()
        moment = local.time().replace(tzinfo=None)

        return [
            r
            for r in active_rules(tenant_id=tenant_id, sector_id=sector_id, at=at)
            if weekday_allowed(r.days_of_week, weekday) and time_window_contains(r.start_time, r.end_time, moment)
        ]

    @staticmethod
    def match(*, tenant_id: UUID, sector_id: UUID, at: datetime, duration_minutes: int) -> RuleMatch:
        candidates = RuleMatcher.calendar_rules(tenant_id=tenant_id, sector_id=sector_id, at=at)
        survivors = [r for r in candidates if duration_allowed(r, duration_minutes)]

        if not survivors:
            logger.warning(
                "no pricing rule for sector=%s at=%s minutes=%s (calendar candidates=%d)",
                sector_id, at.isoformat(), duration_minutes, len(candidates),
            )
            raise NoApplicableRuleError()

        # candidates come ordered by (priority, id)
        rule = survivors[0]

        if rule.rule_type != RuleType.GRADUATED:
            return RuleMatch(rule=rule)

        tiers = sorted(
            (r for r in candidates if r.rule_type == RuleType.GRADUATED and r.profile_id == rule.profile_id),
            key=lambda r: (r.min_duration_minutes, r.priority, str(r.id)),
        )
        return RuleMatch(rule=rule, tiers=tuple(tiers))
