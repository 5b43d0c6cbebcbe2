# park_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter


class ParkAutoSchema(AutoSchema):
    """
    Adds the tenant scope header to every scoped endpoint and the optional
    Idempotency-Key header to writes. Auth and webhook endpoints are left alone.
    """

    SCOPE_HEADER = OpenApiParameter(
        name="X-Tenant-Id",
        type=OpenApiTypes.UUID,
        location=OpenApiParameter.HEADER,
        required=True,
        description="Tenant scope UUID.",
    )

    IDEMPOTENCY_HEADER = OpenApiParameter(
        name="Idempotency-Key",
        type=OpenApiTypes.STR,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Optional key for safely retrying a POST.",
    )

    UNSCOPED_MODULES = (
        "rest_framework_simplejwt.",
        "drf_spectacular.",
    )

    def _is_unscoped_endpoint(self) -> bool:
        view = getattr(self, "view", None)
        if view is None:
            return False
        module = view.__class__.__module__ or ""
        return module.startswith(self.UNSCOPED_MODULES)

    def get_override_parameters(self):
        params = list(super().get_override_parameters() or [])
        existing = {p.name.lower() for p in params}

        if self.method == "POST" and "idempotency-key" not in existing:
            params.append(self.IDEMPOTENCY_HEADER)

        if not self._is_unscoped_endpoint() and "x-tenant-id" not in existing:
            params.append(self.SCOPE_HEADER)

        return params
