# park_core/debts/apps.py
from __future__ import annotations

from django.apps import AppConfig


class DebtsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "park_core.debts"
