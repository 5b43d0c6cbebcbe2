# park_core/sectors/admin.py
from django.contrib import admin

from park_core.sectors.models import Sector, Street


class StreetInline(admin.TabularInline):
    model = Street
    extra = 0
    fields = ("tenant_id", "name", "is_active")


@admin.register(Sector)
class SectorAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "tenant_id", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    ordering = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")
    inlines = [StreetInline]
