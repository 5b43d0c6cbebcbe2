# config/settings/test.py
from .base import *  # noqa

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PARK_WEBHOOK_SECRET = "test-webhook-secret"
PARK_IDEMPOTENCY_USE_DB = True

LOGGING["loggers"]["park_core"]["level"] = "WARNING"  # noqa: F405
