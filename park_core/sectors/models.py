# park_core/sectors/models.py
from django.db import models

from park_core.common.models import ScopedModel


class Sector(ScopedModel):
    """
    Managed parking zone. Pricing profiles and sessions hang off a sector.
    """
    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=64)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "sectors_sector"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "code"], name="uq_sector_tenant_code"),
        ]

    def __str__(self) -> str:
        return self.name


class Street(ScopedModel):
    sector = models.ForeignKey(Sector, on_delete=models.PROTECT, related_name="streets")
    name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "sectors_street"

    def __str__(self) -> str:
        return f"{self.name} ({self.sector.name})"
