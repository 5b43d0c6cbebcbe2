# park_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from park_core.audit.api.views import AuditEventViewSet
from park_core.debts.api.views import DebtViewSet
from park_core.parking.api.views import ParkingSessionViewSet
from park_core.payments.api.views import PaymentViewSet, PaymentWebhookView
from park_core.shifts.api.views import ShiftViewSet

router = DefaultRouter()

router.register(r"sessions", ParkingSessionViewSet, basename="sessions")
router.register(r"debts", DebtViewSet, basename="debts")
router.register(r"shifts", ShiftViewSet, basename="shifts")
router.register(r"payments", PaymentViewSet, basename="payments")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("payments/webhook/", PaymentWebhookView.as_view(), name="payments-webhook"),
    path("", include(router.urls)),
]
