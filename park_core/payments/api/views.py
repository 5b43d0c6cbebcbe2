# park_core/payments/api/views.py
from __future__ import annotations

import hmac
import logging
from uuid import UUID

from django.conf import settings
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import BasePermission
from rest_framework.response import Response
from rest_framework.views import APIView

from park_core.common.api.exceptions import ExternalServiceError
from park_core.common.api.pagination import paginate
from park_core.common.api.params import uuid_or_none
from park_core.common.scope import require_scope, require_tenant
from park_core.payments.api.serializers import PaymentSerializer, PaymentWebhookSerializer
from park_core.payments.models import Payment
from park_core.payments.selectors import payments_filtered
from park_core.payments.webhooks import PaymentWebhookService

logger = logging.getLogger(__name__)

HDR_WEBHOOK_SECRET = "X-Webhook-Secret"


class HasWebhookSecret(BasePermission):
    message = "Invalid webhook secret."

    def has_permission(self, request, view):
        expected = getattr(settings, "PARK_WEBHOOK_SECRET", "") or ""
        given = request.headers.get(HDR_WEBHOOK_SECRET) or ""
        if not expected:
            logger.warning("payment webhook rejected: PARK_WEBHOOK_SECRET is not configured")
            return False
        return hmac.compare_digest(given.encode(), expected.encode())


class PaymentViewSet(viewsets.GenericViewSet):
    """
    Payments (read-only). Writes happen through checkout, debt settlement and the provider webhook.
    """
    serializer_class = PaymentSerializer
    queryset = Payment.objects.none()

    @extend_schema(
        tags=["Payments"],
        responses={200: PaymentSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="session", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="debt", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="shift", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="method", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        qs = payments_filtered(
            tenant_id=scope.tenant_id,
            session_id=uuid_or_none(request.query_params.get("session"), "session"),
            debt_id=uuid_or_none(request.query_params.get("debt"), "debt"),
            shift_id=uuid_or_none(request.query_params.get("shift"), "shift"),
            method=request.query_params.get("method") or None,
            status=request.query_params.get("status") or None,
        )
        return paginate(request, qs, PaymentSerializer)

    @extend_schema(tags=["Payments"], responses={200: PaymentSerializer})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)

        payment = payments_filtered(tenant_id=scope.tenant_id).get(id=UUID(str(pk)))
        return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)


class PaymentWebhookView(APIView):
    """
    Provider callback: {transaction_id, session_id, amount, status, provider_ref}.
    Authenticated by X-Webhook-Secret, scoped by X-Tenant-Id.
    """
    authentication_classes = []
    permission_classes = [HasWebhookSecret]

    @extend_schema(
        tags=["Payments"],
        request=PaymentWebhookSerializer,
        responses={200: OpenApiTypes.OBJECT},
        parameters=[
            OpenApiParameter(name=HDR_WEBHOOK_SECRET, type=OpenApiTypes.STR, location=OpenApiParameter.HEADER, required=True),
        ],
    )
    def post(self, request):
        tenant_id = require_tenant(request)

        ser = PaymentWebhookSerializer(data=request.data)
        if not ser.is_valid():
            logger.warning("malformed payment webhook: %s", ser.errors)
            raise ExternalServiceError(f"Malformed provider payload: {ser.errors}")
        data = ser.validated_data

        outcome = PaymentWebhookService.handle(
            tenant_id=tenant_id,
            transaction_id=data["transaction_id"],
            session_id=data["session_id"],
            amount=data["amount"],
            status=data["status"],
            provider_ref=data.get("provider_ref", ""),
        )
        return Response(
            {
                "payment": PaymentSerializer(outcome.payment).data,
                "replayed": outcome.replayed,
                "session_completed": outcome.session_completed,
                "debt_id": str(outcome.debt_id) if outcome.debt_id else None,
            },
            status=status.HTTP_200_OK,
        )
