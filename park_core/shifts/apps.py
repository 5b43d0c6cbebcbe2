# park_core/shifts/apps.py
from __future__ import annotations

from django.apps import AppConfig


class ShiftsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "park_core.shifts"
