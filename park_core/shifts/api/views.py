# park_core/shifts/api/views.py
from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from park_core.common.api.exceptions import NotFoundError
from park_core.common.api.pagination import paginate
from park_core.common.api.params import uuid_or_none
from park_core.common.scope import device_from_headers, require_scope
from park_core.shifts.api.serializers import (
    CashAdjustmentCreateSerializer,
    CashAdjustmentSerializer,
    ShiftCancelSerializer,
    ShiftCloseSerializer,
    ShiftOpenSerializer,
    ShiftOperationSerializer,
    ShiftSerializer,
    ShiftTotalsSerializer,
)
from park_core.shifts.models import Shift
from park_core.shifts.selectors import shift_operations, shifts_filtered
from park_core.shifts.services import ShiftService


def _with_totals(shift: Shift) -> dict:
    data = ShiftSerializer(shift).data
    data["totals"] = ShiftTotalsSerializer(asdict(ShiftService.calculate_totals(shift=shift))).data
    return data


class ShiftViewSet(viewsets.GenericViewSet):
    """
    Operator cash drawer:
    - open / current / close / cancel
    - cash adjustments (WITHDRAWAL | DEPOSIT)
    - operations timeline
    """
    serializer_class = ShiftSerializer
    queryset = Shift.objects.none()

    @extend_schema(
        tags=["Shifts"],
        responses={200: ShiftSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="operator_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="device_id", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        qs = shifts_filtered(
            tenant_id=scope.tenant_id,
            operator_id=uuid_or_none(request.query_params.get("operator_id"), "operator_id"),
            status=request.query_params.get("status") or None,
            device_id=request.query_params.get("device_id") or None,
        )
        return paginate(request, qs, ShiftSerializer)

    @extend_schema(tags=["Shifts"], responses={200: OpenApiTypes.OBJECT})
    def retrieve(self, request, pk=None):
        scope = require_scope(request)

        shift = shifts_filtered(tenant_id=scope.tenant_id).get(id=UUID(str(pk)))
        return Response(_with_totals(shift), status=status.HTTP_200_OK)

    @extend_schema(tags=["Shifts"], request=ShiftOpenSerializer, responses={201: ShiftSerializer})
    @action(detail=False, methods=["post"], url_path="open")
    def open(self, request):
        scope = require_scope(request)

        ser = ShiftOpenSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        shift = ShiftService.open(
            tenant_id=scope.tenant_id,
            operator_id=data.get("operator_id") or scope.operator_id,
            opening_float=data["opening_float"],
            sector_id=data.get("sector_id"),
            device_id=data.get("device_id") or device_from_headers(request),
            actor_id=scope.operator_id,
            notes=data.get("notes", ""),
        )
        return Response(ShiftSerializer(shift).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Shifts"],
        responses={200: OpenApiTypes.OBJECT},
        parameters=[
            OpenApiParameter(
                name="operator_id",
                type=OpenApiTypes.UUID,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Defaults to the calling operator.",
            ),
            OpenApiParameter(name="device_id", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    @action(detail=False, methods=["get"], url_path="current")
    def current(self, request):
        scope = require_scope(request)

        operator_id = uuid_or_none(request.query_params.get("operator_id"), "operator_id") or scope.operator_id
        device_id = request.query_params.get("device_id") or device_from_headers(request) or None

        shift = ShiftService.current(tenant_id=scope.tenant_id, operator_id=operator_id, device_id=device_id)
        if shift is None:
            raise NotFoundError("No open shift for this operator.")
        return Response(_with_totals(shift), status=status.HTTP_200_OK)

    @extend_schema(tags=["Shifts"], request=CashAdjustmentCreateSerializer, responses={201: CashAdjustmentSerializer})
    @action(detail=True, methods=["post"], url_path="adjustment")
    def adjustment(self, request, pk=None):
        scope = require_scope(request)

        ser = CashAdjustmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        adj = ShiftService.record_adjustment(
            tenant_id=scope.tenant_id,
            shift_id=UUID(str(pk)),
            adjustment_type=data["type"],
            amount=data["amount"],
            reason=data["reason"],
            actor_id=scope.operator_id,
            receipt_number=data.get("receipt_number", ""),
            approved_by_id=data.get("approved_by_operator_id"),
        )
        return Response(CashAdjustmentSerializer(adj).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Shifts"], request=ShiftCloseSerializer, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request, pk=None):
        scope = require_scope(request)

        ser = ShiftCloseSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        shift = ShiftService.close(
            tenant_id=scope.tenant_id,
            shift_id=UUID(str(pk)),
            declared_cash=ser.validated_data["closing_declared_cash"],
            closer_id=scope.operator_id,
            notes=ser.validated_data.get("notes", ""),
        )
        return Response(_with_totals(shift), status=status.HTTP_200_OK)

    @extend_schema(tags=["Shifts"], request=ShiftCancelSerializer, responses={200: ShiftSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        scope = require_scope(request)

        ser = ShiftCancelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        shift = ShiftService.cancel(
            tenant_id=scope.tenant_id,
            shift_id=UUID(str(pk)),
            actor_id=scope.operator_id,
            reason=ser.validated_data.get("reason", ""),
        )
        return Response(ShiftSerializer(shift).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Shifts"], responses={200: ShiftOperationSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="operations")
    def operations(self, request, pk=None):
        scope = require_scope(request)

        shift = shifts_filtered(tenant_id=scope.tenant_id).get(id=UUID(str(pk)))
        qs = shift_operations(tenant_id=scope.tenant_id, shift_id=shift.id)
        return Response(ShiftOperationSerializer(qs, many=True).data, status=status.HTTP_200_OK)
