# park_core/operators/admin.py
from django.contrib import admin

from park_core.operators.models import Operator


@admin.register(Operator)
class OperatorAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "tenant_id", "user", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "code", "user__username")
    ordering = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")
