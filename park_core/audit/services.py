# park_core/audit/services.py
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from park_core.audit.models import AuditEvent


class AuditService:
    """
    Central audit writer. Runs inside the caller's transaction so an
    aborted settlement leaves no audit trail behind.
    """

    @staticmethod
    def log(
        *,
        tenant_id: UUID,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        actor_id: UUID | None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        return AuditEvent.objects.create(
            tenant_id=tenant_id,
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            metadata=metadata or {},
        )
