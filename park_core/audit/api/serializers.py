# park_core/audit/api/serializers.py
from rest_framework import serializers

from park_core.audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "tenant_id",
            "event_code",
            "entity_type",
            "entity_id",
            "actor",
            "occurred_at",
            "metadata",
        ]
        read_only_fields = fields
