# park_core/common/api/exceptions.py
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from park_core.common import error_codes

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = request.headers.get("X-Request-Id") if request is not None else None
        rid = rid or uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope. Every non-2xx response of the API has this shape.
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


class DomainValidationError(ValidationError):
    """
    400 with a stable, branchable code (e.g. INSUFFICIENT_PAYMENT).
    """

    def __init__(self, detail=None, *, error_code: str = error_codes.VALIDATION_ERROR):
        super().__init__(detail=detail, code=error_code)
        self.error_code = error_code


class NotFoundError(NotFound):
    default_code = error_codes.NOT_FOUND


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Use when business rules block an action (shift already open, debt not pending, ...).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = error_codes.CONFLICT

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)
        self.error_code = code or self.default_code


class InvalidStateError(ConflictError):
    default_detail = "Operation not allowed in the current state."
    default_code = error_codes.INVALID_STATE


class NoApplicableRuleError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "No pricing rule applies to this sector at the given time and duration."
    default_code = error_codes.NO_APPLICABLE_RULE


class PersistenceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "The operation could not be stored. It was rolled back and can be retried."
    default_code = error_codes.PERSISTENCE_ERROR


class ExternalServiceError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider callback could not be processed."
    default_code = error_codes.EXTERNAL_SERVICE_ERROR


def _code_for(exc: Exception, http_status: int) -> str:
    explicit = getattr(exc, "error_code", None)
    if explicit:
        return explicit
    if isinstance(exc, ValidationError):
        return error_codes.VALIDATION_ERROR
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return error_codes.NOT_FOUND
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def _translate(exc: Exception) -> Exception:
    if isinstance(exc, ObjectDoesNotExist):
        return NotFoundError(str(exc) or None)
    if isinstance(exc, DatabaseError):
        logger.exception("database error, transaction rolled back")
        return PersistenceError()
    return exc


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    exc = _translate(exc)
    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        logger.exception("unhandled error", exc_info=exc)
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)

    data = response.data

    # 1) {"detail": "..."} only -> message=detail, details=None
    # 2) {"detail": "...", ...} -> message=detail, details=rest
    # 3) anything else (field errors) -> generic message, details=data
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        message = str(data.get("detail"))
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None
    elif isinstance(data, list) and len(data) == 1:
        message = str(data[0])
        details = None

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
