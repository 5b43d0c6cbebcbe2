# park_core/common/api/pagination.py
from __future__ import annotations

from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class ParkPagination(PageNumberPagination):
    """
    Page sizes come from PARK_PAGE_SIZE / PARK_MAX_PAGE_SIZE so handheld
    clients can be tuned per deployment. `?page_size=` is clamped to the max.
    """
    page_size_query_param = "page_size"

    def get_page_size(self, request):
        self.page_size = settings.PARK_PAGE_SIZE
        self.max_page_size = settings.PARK_MAX_PAGE_SIZE
        return super().get_page_size(request)


def paginate(request, queryset, serializer_class, *, context: dict | None = None) -> Response:
    """Lists always answer { count, next, previous, results }."""
    paginator = ParkPagination()
    page = paginator.paginate_queryset(queryset, request)
    ser = serializer_class(page, many=True, context=context or {"request": request})
    return paginator.get_paginated_response(ser.data)
