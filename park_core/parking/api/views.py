# park_core/parking/api/views.py
from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from park_core.common.api.pagination import paginate
from park_core.common.api.params import datetime_or_none, uuid_or_none
from park_core.common.idempotency import get_key, load_response, save_response
from park_core.common.scope import device_from_headers, require_scope
from park_core.debts.selectors import pending_total_for_plate
from park_core.parking.api.serializers import (
    CheckoutSerializer,
    ForceCheckoutSerializer,
    ParkingSessionSerializer,
    QuoteSerializer,
    SessionCancelSerializer,
    SessionCreateSerializer,
)
from park_core.parking.models import ParkingSession
from park_core.parking.selectors import sessions_filtered
from park_core.parking.services import ParkingSessionService
from park_core.parking.settlement import CheckoutResult, SettlementService
from park_core.payments.api.serializers import PaymentSerializer


def _result_payload(result: CheckoutResult) -> dict:
    return {
        "session": ParkingSessionSerializer(result.session).data,
        "quote": QuoteSerializer(asdict(result.quote)).data,
        "payment": PaymentSerializer(result.payment).data if result.payment else None,
        "debt_id": str(result.debt.id) if result.debt else None,
        "change": str(result.change),
    }


class ParkingSessionViewSet(viewsets.GenericViewSet):
    """
    Parking sessions:
    - create (ACTIVE) / list / retrieve
    - quote (read-only)
    - checkout, force-checkout-without-payment, cancel
    """
    serializer_class = ParkingSessionSerializer
    queryset = ParkingSession.objects.none()

    @extend_schema(
        tags=["Sessions"],
        responses={200: ParkingSessionSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="plate", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="sector", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        qs = sessions_filtered(
            tenant_id=scope.tenant_id,
            status=request.query_params.get("status") or None,
            plate=request.query_params.get("plate") or None,
            sector_id=uuid_or_none(request.query_params.get("sector"), "sector"),
        )
        return paginate(request, qs, ParkingSessionSerializer)

    @extend_schema(tags=["Sessions"], responses={200: ParkingSessionSerializer})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)

        session = sessions_filtered(tenant_id=scope.tenant_id).get(id=UUID(str(pk)))
        return Response(ParkingSessionSerializer(session).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Sessions"], request=SessionCreateSerializer, responses={201: OpenApiTypes.OBJECT})
    def create(self, request):
        scope = require_scope(request)

        ser = SessionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        session = ParkingSessionService.create(
            tenant_id=scope.tenant_id,
            plate=data["plate"],
            sector_id=data["sector_id"],
            street_id=data.get("street_id"),
            operator_id=data.get("operator_id") or scope.operator_id,
            is_full_day=data.get("is_full_day", False),
            started_at=data.get("started_at"),
            device_id=device_from_headers(request) or None,
        )

        total, count = pending_total_for_plate(tenant_id=scope.tenant_id, plate=session.plate)
        out = ParkingSessionSerializer(session).data
        out["pending_debts"] = {"total_amount": str(total), "count": count}
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Sessions"],
        responses={200: QuoteSerializer},
        parameters=[
            OpenApiParameter(
                name="ended_at",
                type=OpenApiTypes.DATETIME,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Defaults to now.",
            ),
            OpenApiParameter(name="discount_code", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="discount_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    @action(detail=True, methods=["get"], url_path="quote")
    def quote(self, request, pk=None):
        scope = require_scope(request)

        quote = ParkingSessionService.quote(
            tenant_id=scope.tenant_id,
            session_id=UUID(str(pk)),
            ended_at=datetime_or_none(request.query_params.get("ended_at"), "ended_at"),
            discount_id=uuid_or_none(request.query_params.get("discount_id"), "discount_id"),
            discount_code=request.query_params.get("discount_code") or None,
        )
        return Response(QuoteSerializer(asdict(quote)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Sessions"], request=CheckoutSerializer, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="checkout")
    def checkout(self, request, pk=None):
        scope = require_scope(request)

        idem = get_key(request)
        if idem:
            cached = load_response(scope.tenant_id, scope.operator_id, request.method, request.path, idem)
            if cached is not None:
                status_code, data = cached
                return Response(data, status=status_code)

        ser = CheckoutSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        result = SettlementService.checkout(
            tenant_id=scope.tenant_id,
            session_id=UUID(str(pk)),
            operator_id=scope.operator_id,
            payment_method=data["payment_method"],
            amount=data.get("amount"),
            ended_at=data.get("ended_at"),
            device_id=device_from_headers(request) or None,
            discount_id=data.get("discount_id"),
            discount_code=data.get("discount_code") or None,
        )

        out = _result_payload(result)
        if idem:
            save_response(
                scope.tenant_id, scope.operator_id, request.method, request.path, idem, out, status.HTTP_200_OK
            )
        return Response(out, status=status.HTTP_200_OK)

    @extend_schema(tags=["Sessions"], request=ForceCheckoutSerializer, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="force-checkout-without-payment")
    def force_checkout_without_payment(self, request, pk=None):
        scope = require_scope(request)

        ser = ForceCheckoutSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        result = SettlementService.force_checkout_without_payment(
            tenant_id=scope.tenant_id,
            session_id=UUID(str(pk)),
            operator_id=scope.operator_id,
            ended_at=data.get("ended_at"),
            discount_id=data.get("discount_id"),
            discount_code=data.get("discount_code") or None,
        )
        return Response(_result_payload(result), status=status.HTTP_200_OK)

    @extend_schema(tags=["Sessions"], request=SessionCancelSerializer, responses={200: ParkingSessionSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        scope = require_scope(request)

        ser = SessionCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        session = ParkingSessionService.cancel(
            tenant_id=scope.tenant_id,
            session_id=UUID(str(pk)),
            operator_id=scope.operator_id,
            reason=ser.validated_data.get("reason", ""),
        )
        return Response(ParkingSessionSerializer(session).data, status=status.HTTP_200_OK)
