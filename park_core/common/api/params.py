# park_core/common/api/params.py
from __future__ import annotations

from uuid import UUID

from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework.exceptions import ValidationError


def uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError({field_name: "Invalid UUID"})


def datetime_or_none(value: str | None, field_name: str):
    if not value:
        return None
    try:
        parsed = parse_datetime(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError({field_name: "Invalid ISO-8601 datetime"})
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed
