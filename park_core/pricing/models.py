# park_core/pricing/models.py
from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from park_core.common.models import ScopedModel
from park_core.sectors.models import Sector


class PricingProfile(ScopedModel):
    """
    Named, time-bounded tariff configuration for a sector.
    Open-ended on either side when active_from / active_to is null.
    """
    sector = models.ForeignKey(Sector, on_delete=models.PROTECT, related_name="pricing_profiles")

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    active_from = models.DateTimeField(null=True, blank=True)
    active_to = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "pricing_profile"
        indexes = [
            models.Index(fields=["tenant_id", "sector", "is_active"], name="pricing_profile_sector_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class RuleType(models.TextChoices):
    TIME_BASED = "TIME_BASED", "Time based"
    FIXED = "FIXED", "Fixed"
    GRADUATED = "GRADUATED", "Graduated"


class PricingRule(ScopedModel):
    """
    One tariff line within a profile.

    Matching windows:
      - duration: [min_duration_minutes, max_duration_minutes], max null = unbounded
      - weekday: days_of_week (0=Monday .. 6=Sunday), empty = every day
      - time of day: start_time..end_time, may wrap past midnight (22:00-06:00)

    Lower priority value is evaluated first.
    """
    profile = models.ForeignKey(PricingProfile, on_delete=models.CASCADE, related_name="rules")

    name = models.CharField(max_length=255, blank=True)
    rule_type = models.CharField(max_length=16, choices=RuleType.choices, default=RuleType.TIME_BASED)

    min_duration_minutes = models.PositiveIntegerField(default=0)
    max_duration_minutes = models.PositiveIntegerField(null=True, blank=True)

    daily_max_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    min_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    min_amount_is_base = models.BooleanField(default=False)

    price_per_min = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    fixed_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    days_of_week = models.JSONField(default=list, blank=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    priority = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "pricing_rule"
        ordering = ["priority", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(max_duration_minutes__isnull=True)
                | Q(max_duration_minutes__gt=models.F("min_duration_minutes")),
                name="ck_pricing_rule_duration_window",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "profile", "is_active"], name="pricing_rule_profile_idx"),
        ]

    def __str__(self) -> str:
        return self.name or f"{self.rule_type} #{self.priority}"

    def clean(self):
        errors = {}
        if self.rule_type == RuleType.FIXED and self.fixed_price is None:
            errors["fixed_price"] = "FIXED rules need a fixed_price."
        if self.rule_type in (RuleType.TIME_BASED, RuleType.GRADUATED) and self.price_per_min is None:
            errors["price_per_min"] = f"{self.rule_type} rules need a price_per_min."
        if any(not isinstance(d, int) or d < 0 or d > 6 for d in (self.days_of_week or [])):
            errors["days_of_week"] = "Days must be integers 0 (Monday) to 6 (Sunday)."
        if errors:
            raise ValidationError(errors)


class DiscountType(models.TextChoices):
    AMOUNT = "AMOUNT", "Fixed amount"
    PERCENTAGE = "PERCENTAGE", "Percentage"
    PRICING_PROFILE = "PRICING_PROFILE", "Alternate per-minute rate"


class SessionDiscount(ScopedModel):
    """
    Catalog discount applied on top of a computed quote. Not tied to a profile.
    """
    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=64, blank=True, db_index=True)
    description = models.TextField(blank=True)

    discount_type = models.CharField(max_length=16, choices=DiscountType.choices)

    value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    minute_value = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    minimum_duration = models.PositiveIntegerField(null=True, blank=True)

    max_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    min_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    priority = models.IntegerField(default=0)
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "pricing_session_discount"
        ordering = ["priority", "id"]

    def __str__(self) -> str:
        return self.name

    def clean(self):
        errors = {}
        if self.discount_type in (DiscountType.AMOUNT, DiscountType.PERCENTAGE) and self.value is None:
            errors["value"] = f"{self.discount_type} discounts need a value."
        if self.discount_type == DiscountType.PRICING_PROFILE and self.minute_value is None:
            errors["minute_value"] = "PRICING_PROFILE discounts need a minute_value."
        if errors:
            raise ValidationError(errors)
