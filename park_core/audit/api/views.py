# park_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets

from park_core.audit.api.serializers import AuditEventSerializer
from park_core.audit.models import AuditEvent
from park_core.audit.selectors import list_audit_events
from park_core.common.api.pagination import paginate
from park_core.common.api.params import uuid_or_none
from park_core.common.scope import require_scope


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    Read-only audit timeline (scoped to the tenant).
    """
    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    @extend_schema(
        tags=["Audit"],
        responses={200: AuditEventSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="entity_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="entity_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="event_code", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="actor", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        qs = list_audit_events(
            tenant_id=scope.tenant_id,
            entity_type=request.query_params.get("entity_type") or None,
            entity_id=uuid_or_none(request.query_params.get("entity_id"), "entity_id"),
            event_code=request.query_params.get("event_code") or None,
            actor_id=uuid_or_none(request.query_params.get("actor"), "actor"),
        )
        return paginate(request, qs, AuditEventSerializer)
