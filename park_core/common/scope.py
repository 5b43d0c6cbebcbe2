# park_core/common/scope.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from rest_framework.exceptions import PermissionDenied, ValidationError


@dataclass(frozen=True)
class Scope:
    tenant_id: UUID
    operator_id: UUID


HDR_TENANT = "X-Tenant-Id"
HDR_DEVICE = "X-Device-Id"

MISSING_SCOPE_MSG = "Missing scope header. Provide X-Tenant-Id."
INVALID_SCOPE_MSG = "Invalid scope header. Provide a valid UUID for X-Tenant-Id."
NOT_AN_OPERATOR_MSG = "You are not an active operator of the selected tenant."


def _get_header(request, name: str) -> Optional[str]:
    """
    request.headers is case-insensitive; fallback to META for the test client.
    """
    headers = getattr(request, "headers", None)
    if headers is not None:
        v = headers.get(name)
        if v:
            return v
    meta_key = "HTTP_" + name.upper().replace("-", "_")
    return request.META.get(meta_key)


def resolve_tenant_from_headers(request) -> Optional[UUID]:
    """
    Returns the tenant UUID, None when the header is absent.
    Raises 400 when it is present but not a UUID.
    """
    raw = _get_header(request, HDR_TENANT)
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        raise ValidationError(INVALID_SCOPE_MSG)


def require_tenant(request) -> UUID:
    tenant_id = resolve_tenant_from_headers(request)
    if tenant_id is None:
        raise ValidationError(MISSING_SCOPE_MSG)
    return tenant_id


def device_from_headers(request) -> str:
    return (_get_header(request, HDR_DEVICE) or "").strip()


def apply_scope_from_headers(request, user=None) -> Scope | None:
    """
    If the tenant header is present:
      - validates it
      - resolves the operator behind the user for that tenant (403 if none)
      - sets request.scope and returns it

    If no header: returns None and does nothing.
    """
    tenant_id = resolve_tenant_from_headers(request)
    if tenant_id is None:
        return None

    u = user or getattr(request, "user", None)
    if not u or not getattr(u, "is_authenticated", False):
        raise PermissionDenied("Authentication required to set scope.")

    from park_core.operators.services.membership import operator_for_user

    operator = operator_for_user(user_id=u.id, tenant_id=tenant_id)
    if operator is None:
        raise PermissionDenied(NOT_AN_OPERATOR_MSG)

    scope = Scope(tenant_id=tenant_id, operator_id=operator.id)
    request.scope = scope
    return scope


def require_scope(request) -> Scope:
    """
    Scope for the current request. Prefers what the authentication class
    already attached; otherwise resolves it (session or forced auth).
    """
    scope = getattr(request, "scope", None)
    if isinstance(scope, Scope):
        return scope

    scope = apply_scope_from_headers(request)
    if scope is None:
        raise ValidationError(MISSING_SCOPE_MSG)
    return scope
