# park_core/common/idempotency.py
from __future__ import annotations

import threading

from django.conf import settings
from django.db import IntegrityError, transaction

from park_core.common.models import IdempotencyRecord

_LOCK = threading.Lock()
_STORE = {}  # in-process store, used when PARK_IDEMPOTENCY_USE_DB is off


def _use_db() -> bool:
    return bool(getattr(settings, "PARK_IDEMPOTENCY_USE_DB", False))


def get_key(request):
    # DRF test client: "HTTP_IDEMPOTENCY_KEY" becomes request.META["HTTP_IDEMPOTENCY_KEY"]
    return request.META.get("HTTP_IDEMPOTENCY_KEY")


def _norm(tenant_id, operator_id, method, path, key):
    return (str(tenant_id), str(operator_id), method.upper(), path, str(key))


def load_response(tenant_id, operator_id, method, path, key):
    """
    Returns (status_code, response_data) stored for this key, or None.
    """
    if not key:
        return None

    if not _use_db():
        with _LOCK:
            return _STORE.get(_norm(tenant_id, operator_id, method, path, key))

    rec = (
        IdempotencyRecord.objects.filter(
            tenant_id=tenant_id,
            operator_id=operator_id,
            method=method.upper(),
            path=path,
            idempotency_key=str(key),
        )
        .order_by("-created_at")
        .first()
    )
    return None if rec is None else (rec.status_code, rec.response_data)


def save_response(tenant_id, operator_id, method, path, key, response_data, status_code: int = 200):
    if not key:
        return

    if not _use_db():
        with _LOCK:
            _STORE[_norm(tenant_id, operator_id, method, path, key)] = (int(status_code), response_data)
        return

    try:
        with transaction.atomic():
            IdempotencyRecord.objects.create(
                tenant_id=tenant_id,
                operator_id=operator_id,
                method=method.upper(),
                path=path,
                idempotency_key=str(key),
                status_code=int(status_code),
                response_data=response_data,
            )
    except IntegrityError:
        # already saved by a concurrent request
        return
