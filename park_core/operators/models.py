# park_core/operators/models.py
from django.conf import settings
from django.db import models

from park_core.common.models import ScopedModel


class Operator(ScopedModel):
    """
    Person who works the street with a handheld or sits at the cash desk.
    Anchored to Django's AUTH_USER_MODEL; one row per (tenant, user).
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="park_operators",
        null=True,
        blank=True,
    )

    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=64)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "operators_operator"
        constraints = [
            models.UniqueConstraint(fields=["tenant_id", "code"], name="uq_operator_tenant_code"),
            models.UniqueConstraint(fields=["tenant_id", "user"], name="uq_operator_tenant_user"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"
