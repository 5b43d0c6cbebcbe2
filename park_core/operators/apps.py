# park_core/operators/apps.py
from __future__ import annotations

from django.apps import AppConfig


class OperatorsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "park_core.operators"
