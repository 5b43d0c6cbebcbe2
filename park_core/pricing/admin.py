# park_core/pricing/admin.py
from django.contrib import admin

from park_core.pricing.models import PricingProfile, PricingRule, SessionDiscount


class PricingRuleInline(admin.StackedInline):
    model = PricingRule
    extra = 0
    ordering = ("priority",)
    fields = (
        "tenant_id",
        ("name", "rule_type", "priority", "is_active"),
        ("min_duration_minutes", "max_duration_minutes"),
        ("price_per_min", "fixed_price"),
        ("min_amount", "min_amount_is_base", "daily_max_amount"),
        ("days_of_week", "start_time", "end_time"),
    )


@admin.register(PricingProfile)
class PricingProfileAdmin(admin.ModelAdmin):
    list_display = ("name", "sector", "is_active", "active_from", "active_to")
    list_filter = ("is_active",)
    search_fields = ("name", "sector__name")
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [PricingRuleInline]


@admin.register(SessionDiscount)
class SessionDiscountAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "discount_type", "value", "minute_value", "priority", "is_active")
    list_filter = ("discount_type", "is_active")
    search_fields = ("name", "code")
    readonly_fields = ("id", "created_at", "updated_at")
