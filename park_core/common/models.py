# park_core/common/models.py
from __future__ import annotations

import uuid
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class TimeStampedModel(models.Model):
    """
    Standard timestamps for all entities.
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class ScopedModel(TimeStampedModel):
    """
    Enforces tenant scope at the data layer.
    Every service receives tenant_id explicitly and filters on it.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant_id = models.UUIDField(db_index=True)

    class Meta:
        abstract = True


class AppendOnlyModel(models.Model):
    """
    Ledger rows: inserted once, never updated or deleted through the ORM.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            from park_core.common.api.exceptions import ConflictError
            from park_core.common.error_codes import APPEND_ONLY

            raise ConflictError(f"{type(self).__name__} records cannot be modified.", code=APPEND_ONLY)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        from park_core.common.api.exceptions import ConflictError
        from park_core.common.error_codes import APPEND_ONLY

        raise ConflictError(f"{type(self).__name__} records cannot be deleted.", code=APPEND_ONLY)


# -------------------------------------------------------------------
# Durable idempotency
# -------------------------------------------------------------------

class IdempotencyRecord(TimeStampedModel):
    """
    Stores idempotent responses durably.

    Keyed by:
      (tenant_id, operator_id, method, path, idempotency_key)

    A retried checkout from a handheld with a flaky connection gets the
    first response back instead of a 409.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant_id = models.UUIDField(db_index=True)
    operator_id = models.UUIDField(db_index=True)

    method = models.CharField(max_length=16)
    path = models.CharField(max_length=255)
    idempotency_key = models.CharField(max_length=255)

    status_code = models.PositiveIntegerField(default=200)
    response_data = models.JSONField(default=dict, encoder=DjangoJSONEncoder)

    class Meta:
        db_table = "common_idempotency_record"
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "operator_id", "method", "path", "idempotency_key"],
                name="uq_idempo_scope_operator_method_path_key",
            )
        ]

    def __str__(self) -> str:
        return f"{self.method} {self.path} {self.idempotency_key}"
