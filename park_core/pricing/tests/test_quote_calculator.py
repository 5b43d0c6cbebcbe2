from decimal import Decimal

import pytest

from park_core.pricing.calculator import QuoteCalculator
from park_core.pricing.models import PricingRule, RuleType


def _rule(**kwargs):
    defaults = {"rule_type": RuleType.TIME_BASED, "min_duration_minutes": 0, "priority": 0}
    defaults.update(kwargs)
    return PricingRule(**defaults)


@pytest.fixture
def per_minute_rule():
    return _rule(
        price_per_min=Decimal("100.00"),
        min_amount=Decimal("500.00"),
        min_amount_is_base=False,
        daily_max_amount=Decimal("5000.00"),
    )


def test_short_stay_is_floored_to_min_amount(per_minute_rule):
    result = QuoteCalculator.gross(per_minute_rule, 3)

    assert result.amount == Decimal("500.00")
    assert result.min_amount_applied is True
    assert result.daily_cap_applied is False


def test_long_stay_is_capped_by_daily_max(per_minute_rule):
    result = QuoteCalculator.gross(per_minute_rule, 60)

    assert result.amount == Decimal("5000.00")
    assert result.daily_cap_applied is True
    assert result.breakdown[-1]["kind"] == "daily_cap"


@pytest.mark.parametrize("minutes", [0, 1, 59, 120])
def test_fixed_price_ignores_duration(minutes):
    rule = _rule(rule_type=RuleType.FIXED, fixed_price=Decimal("1500.00"), max_duration_minutes=120)

    assert QuoteCalculator.gross(rule, minutes).amount == Decimal("1500.00")


def test_time_based_between_floor_and_cap_is_plain_per_minute(per_minute_rule):
    assert QuoteCalculator.gross(per_minute_rule, 12).amount == Decimal("1200.00")


def test_min_amount_as_base_covers_first_tier_then_charges_per_minute():
    rule = _rule(
        price_per_min=Decimal("20.00"),
        min_amount=Decimal("800.00"),
        min_amount_is_base=True,
        min_duration_minutes=30,
    )

    assert QuoteCalculator.gross(rule, 10).amount == Decimal("800.00")
    assert QuoteCalculator.gross(rule, 30).amount == Decimal("800.00")
    # 800 base + 15 extra minutes * 20
    assert QuoteCalculator.gross(rule, 45).amount == Decimal("1100.00")


def test_min_amount_as_base_keeps_per_minute_when_above_floor():
    rule = _rule(
        price_per_min=Decimal("50.00"),
        min_amount=Decimal("300.00"),
        min_amount_is_base=True,
        min_duration_minutes=20,
    )

    result = QuoteCalculator.gross(rule, 10)

    assert result.amount == Decimal("500.00")
    assert result.min_amount_applied is False


def test_graduated_sums_each_tier_entered():
    tiers = (
        _rule(rule_type=RuleType.GRADUATED, min_duration_minutes=0, max_duration_minutes=30, price_per_min=Decimal("10")),
        _rule(rule_type=RuleType.GRADUATED, min_duration_minutes=30, max_duration_minutes=90, price_per_min=Decimal("20")),
        _rule(rule_type=RuleType.GRADUATED, min_duration_minutes=90, price_per_min=Decimal("5")),
    )

    # 30*10 + 60*20 + 10*5
    result = QuoteCalculator.gross(tiers[2], 100, tiers)

    assert result.amount == Decimal("1550.00")
    assert [line["minutes"] for line in result.breakdown] == [30, 60, 10]


def test_graduated_stops_at_the_tier_reached():
    tiers = (
        _rule(rule_type=RuleType.GRADUATED, min_duration_minutes=0, max_duration_minutes=30, price_per_min=Decimal("10")),
        _rule(rule_type=RuleType.GRADUATED, min_duration_minutes=30, price_per_min=Decimal("20")),
    )

    assert QuoteCalculator.gross(tiers[0], 20, tiers).amount == Decimal("200.00")


def test_graduated_applies_min_amount_and_cap_of_matched_rule():
    tier = _rule(
        rule_type=RuleType.GRADUATED,
        price_per_min=Decimal("10"),
        min_amount=Decimal("250.00"),
        daily_max_amount=Decimal("1000.00"),
    )

    assert QuoteCalculator.gross(tier, 5, (tier,)).amount == Decimal("250.00")
    assert QuoteCalculator.gross(tier, 500, (tier,)).amount == Decimal("1000.00")


def test_daily_cap_applies_per_started_day(per_minute_rule):
    # 2000 minutes spans two started days
    assert QuoteCalculator.gross(per_minute_rule, 2000).amount == Decimal("10000.00")


def test_full_day_charges_the_highest_daily_cap():
    rules = [
        _rule(daily_max_amount=Decimal("5000.00")),
        _rule(daily_max_amount=Decimal("8000.00")),
        _rule(daily_max_amount=None),
    ]

    assert QuoteCalculator.full_day(rules) == Decimal("8000.00")
    assert QuoteCalculator.full_day([_rule()]) is None


def test_amounts_are_rounded_half_up_to_cents():
    rule = _rule(price_per_min=Decimal("0.125"))

    assert QuoteCalculator.gross(rule, 1).amount == Decimal("0.13")
