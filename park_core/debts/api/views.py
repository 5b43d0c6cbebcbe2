# park_core/debts/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from park_core.common.api.pagination import paginate
from park_core.common.scope import device_from_headers, require_scope
from park_core.debts.api.filters import DebtFilter
from park_core.debts.api.serializers import (
    DebtCancelSerializer,
    DebtCreateSerializer,
    DebtSerializer,
    DebtSettleSerializer,
)
from park_core.debts.models import Debt
from park_core.debts.selectors import debts_qs, pending_debts_for_plate, pending_summary, pending_total_for_plate
from park_core.debts.services import DebtService
from park_core.operators.services.membership import operator_by_id
from park_core.payments.api.serializers import PaymentSerializer


class DebtViewSet(viewsets.GenericViewSet):
    """
    Debt ledger:
    - list (plate/status/origin filters) / retrieve
    - create manual or fine debts
    - settle / cancel
    - pending summary, pending by plate
    """
    serializer_class = DebtSerializer
    queryset = Debt.objects.none()
    filterset_class = DebtFilter

    @extend_schema(tags=["Debts"], responses={200: DebtSerializer(many=True)})
    def list(self, request):
        scope = require_scope(request)

        f = DebtFilter(request.query_params, queryset=debts_qs(tenant_id=scope.tenant_id))
        if not f.is_valid():
            raise ValidationError(f.errors)
        return paginate(request, f.qs, DebtSerializer)

    @extend_schema(tags=["Debts"], responses={200: DebtSerializer})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)

        debt = debts_qs(tenant_id=scope.tenant_id).get(id=UUID(str(pk)))
        return Response(DebtSerializer(debt).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Debts"], request=DebtCreateSerializer, responses={201: DebtSerializer})
    def create(self, request):
        scope = require_scope(request)

        ser = DebtCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        debt = DebtService.create_manual(
            tenant_id=scope.tenant_id,
            plate=data["plate"],
            amount=data["amount"],
            origin=data["origin"],
            notes=data.get("notes", ""),
            actor_id=scope.operator_id,
        )
        return Response(DebtSerializer(debt).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Debts"], request=DebtSettleSerializer, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="settle")
    def settle(self, request, pk=None):
        scope = require_scope(request)

        ser = DebtSettleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        cashier_id = scope.operator_id
        if data.get("cashier_operator_id"):
            cashier_id = operator_by_id(tenant_id=scope.tenant_id, operator_id=data["cashier_operator_id"]).id

        result = DebtService.settle(
            tenant_id=scope.tenant_id,
            debt_id=UUID(str(pk)),
            amount=data["amount"],
            method=data["method"],
            cashier_id=cashier_id,
            device_id=device_from_headers(request) or None,
        )
        return Response(
            {"debt": DebtSerializer(result.debt).data, "payment": PaymentSerializer(result.payment).data},
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Debts"], request=DebtCancelSerializer, responses={200: DebtSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        scope = require_scope(request)

        ser = DebtCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        debt = DebtService.cancel(
            tenant_id=scope.tenant_id,
            debt_id=UUID(str(pk)),
            actor_id=scope.operator_id,
            reason=ser.validated_data.get("reason", ""),
        )
        return Response(DebtSerializer(debt).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Debts"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["get"], url_path="pending-summary")
    def pending_summary(self, request):
        scope = require_scope(request)

        summary = pending_summary(tenant_id=scope.tenant_id)
        out = {
            "total_amount": str(summary["total_amount"]),
            "count": summary["count"],
            "by_origin": {
                origin: {"total_amount": str(row["total_amount"]), "count": row["count"]}
                for origin, row in summary["by_origin"].items()
            },
        }
        return Response(out, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Debts"],
        responses={200: OpenApiTypes.OBJECT},
        parameters=[
            OpenApiParameter(name="plate", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=True),
        ],
    )
    @action(detail=False, methods=["get"], url_path="by-plate")
    def by_plate(self, request):
        scope = require_scope(request)

        plate = (request.query_params.get("plate") or "").strip()
        if not plate:
            raise ValidationError({"plate": "This query parameter is required."})

        total, count = pending_total_for_plate(tenant_id=scope.tenant_id, plate=plate)
        debts = pending_debts_for_plate(tenant_id=scope.tenant_id, plate=plate)
        return Response(
            {
                "plate": plate.upper(),
                "total_amount": str(total),
                "count": count,
                "results": DebtSerializer(debts, many=True).data,
            },
            status=status.HTTP_200_OK,
        )
