from datetime import time, timedelta
from decimal import Decimal

import pytest

from park_core.common.api.exceptions import NoApplicableRuleError
from park_core.pricing.matcher import RuleMatcher, time_window_contains
from park_core.pricing.models import PricingProfile, PricingRule, RuleType


def _rule(tenant, profile, **kwargs):
    defaults = {"rule_type": RuleType.TIME_BASED, "price_per_min": Decimal("10.00")}
    defaults.update(kwargs)
    return PricingRule.objects.create(tenant_id=tenant.id, profile=profile, **defaults)


def _match(tenant, sector, at, minutes):
    return RuleMatcher.match(tenant_id=tenant.id, sector_id=sector.id, at=at, duration_minutes=minutes)


def test_time_window_wraps_past_midnight():
    assert time_window_contains(time(22, 0), time(6, 0), time(23, 30))
    assert time_window_contains(time(22, 0), time(6, 0), time(5, 59))
    assert not time_window_contains(time(22, 0), time(6, 0), time(12, 0))
    assert time_window_contains(None, None, time(12, 0))


@pytest.mark.django_db
def test_lowest_priority_value_wins(tenant, sector, profile, t0):
    _rule(tenant, profile, name="late", priority=20)
    early = _rule(tenant, profile, name="early", priority=5)

    assert _match(tenant, sector, t0, 10).rule.id == early.id


@pytest.mark.django_db
def test_equal_priority_breaks_ties_by_id(tenant, sector, profile, t0):
    a = _rule(tenant, profile, name="a", priority=1)
    b = _rule(tenant, profile, name="b", priority=1)

    expected = min((a, b), key=lambda r: r.id)
    for _ in range(3):
        assert _match(tenant, sector, t0, 10).rule.id == expected.id


@pytest.mark.django_db
def test_duration_window_filters_rules(tenant, sector, profile, t0):
    short = _rule(tenant, profile, name="short", priority=1, max_duration_minutes=30)
    long_ = _rule(tenant, profile, name="long", priority=2, min_duration_minutes=30)

    assert _match(tenant, sector, t0, 30).rule.id == short.id
    assert _match(tenant, sector, t0, 31).rule.id == long_.id


@pytest.mark.django_db
def test_night_rule_only_applies_inside_its_window(tenant, sector, profile, t0):
    night = _rule(tenant, profile, name="night", priority=1, start_time=time(22, 0), end_time=time(6, 0))
    day = _rule(tenant, profile, name="day", priority=10)

    assert _match(tenant, sector, t0, 10).rule.id == day.id
    assert _match(tenant, sector, t0.replace(hour=23, minute=30), 10).rule.id == night.id


@pytest.mark.django_db
def test_weekday_filter(tenant, sector, profile, t0):
    weekend = _rule(tenant, profile, name="weekend", priority=1, days_of_week=[5, 6])
    weekday = _rule(tenant, profile, name="weekday", priority=2, days_of_week=[0, 1, 2, 3, 4])

    assert _match(tenant, sector, t0, 10).rule.id == weekday.id  # Monday
    assert _match(tenant, sector, t0 + timedelta(days=5), 10).rule.id == weekend.id  # Saturday


@pytest.mark.django_db
def test_weekday_is_read_in_tenant_timezone(tenant, sector, profile, t0):
    tenant.timezone = "America/Santiago"
    tenant.save(update_fields=["timezone"])
    monday_only = _rule(tenant, profile, name="monday", days_of_week=[0])

    # 02:00 UTC Monday is still Sunday evening in Santiago
    with pytest.raises(NoApplicableRuleError):
        _match(tenant, sector, t0.replace(hour=2), 10)
    assert _match(tenant, sector, t0, 10).rule.id == monday_only.id


@pytest.mark.django_db
def test_inactive_rules_and_profiles_are_ignored(tenant, sector, profile, t0):
    _rule(tenant, profile, name="off", priority=1, is_active=False)
    old = PricingProfile.objects.create(
        tenant_id=tenant.id, sector=sector, name="old", active_to=t0 - timedelta(days=1)
    )
    _rule(tenant, old, name="old", priority=0)
    current = _rule(tenant, profile, name="current", priority=5)

    assert _match(tenant, sector, t0, 10).rule.id == current.id


@pytest.mark.django_db
def test_no_rule_raises(tenant, sector, profile, t0):
    _rule(tenant, profile, max_duration_minutes=30)

    with pytest.raises(NoApplicableRuleError):
        _match(tenant, sector, t0, 45)


@pytest.mark.django_db
def test_graduated_match_carries_profile_tiers(tenant, sector, profile, t0):
    first = _rule(tenant, profile, rule_type=RuleType.GRADUATED, min_duration_minutes=0, max_duration_minutes=30)
    second = _rule(tenant, profile, rule_type=RuleType.GRADUATED, min_duration_minutes=30, price_per_min=Decimal("20"))

    match = _match(tenant, sector, t0, 45)

    assert match.rule.id == second.id
    assert [t.id for t in match.tiers] == [first.id, second.id]
