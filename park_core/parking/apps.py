# park_core/parking/apps.py
from __future__ import annotations

from django.apps import AppConfig


class ParkingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "park_core.parking"
