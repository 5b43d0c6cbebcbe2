# park_core/debts/api/filters.py
from __future__ import annotations

import django_filters

from park_core.debts.models import Debt, DebtOrigin, DebtStatus
from park_core.parking.models import normalize_plate


class DebtFilter(django_filters.FilterSet):
    plate = django_filters.CharFilter(method="filter_plate")
    status = django_filters.ChoiceFilter(choices=DebtStatus.choices)
    origin = django_filters.ChoiceFilter(choices=DebtOrigin.choices)
    session = django_filters.UUIDFilter(field_name="session_id")
    created_from = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_to = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Debt
        fields = ["plate", "status", "origin", "session"]

    def filter_plate(self, queryset, name, value):
        return queryset.filter(plate=normalize_plate(value))
