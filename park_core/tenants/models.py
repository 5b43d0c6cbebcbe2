# park_core/tenants/models.py
import uuid

from django.conf import settings
from django.db import models


class TenantStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    SUSPENDED = "SUSPENDED", "Suspended"
    INACTIVE = "INACTIVE", "Inactive"


def default_timezone() -> str:
    return getattr(settings, "PARK_DEFAULT_TIMEZONE", "America/Santiago")


class Tenant(models.Model):
    """
    Parking company. Root of all scoping in the system.
    NOT a ScopedModel (it *is* the tenant).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=64, unique=True)

    status = models.CharField(
        max_length=16,
        choices=TenantStatus.choices,
        default=TenantStatus.ACTIVE,
        db_index=True,
    )

    # IANA zone used for weekday / time-of-day tariff windows
    timezone = models.CharField(max_length=64, default=default_timezone)

    # plan limits and flags, e.g. {"max_sessions_per_month": 5000}
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tenants_tenant"

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"
