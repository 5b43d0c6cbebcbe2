# park_core/audit/models.py
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from park_core.common.models import ScopedModel
from park_core.operators.models import Operator


class AuditEvent(ScopedModel):
    """
    Immutable audit record: who settled, closed or canceled what, and with which amounts.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "shift.closed"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "Shift"
    entity_id = models.UUIDField(db_index=True)

    actor = models.ForeignKey(
        Operator,
        on_delete=models.PROTECT,
        related_name="audit_events",
        null=True,
        blank=True,
    )

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict, encoder=DjangoJSONEncoder)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["tenant_id", "occurred_at"], name="audit_tenant_occurred_idx"),
            models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
        ]
