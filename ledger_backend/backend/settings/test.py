# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS (pytest-django)

- In-memory SQLite, tables created straight from models (--no-migrations)
- Fast password hashing
- Quiet console logging
- Fixed ledger defaults regardless of the developer's .env
"""

from __future__ import annotations

from .base import *  # noqa: F403

DEBUG = False
SECRET_KEY = "test-secret-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_CLASSES": (),
}

LEDGER_JOURNAL_PREFIX = "JU"
LEDGER_CANCELLATION_MODE = "void"
LEDGER_CASH_FLOW_ALLOCATION = "first_match"
LEDGER_ALLOW_DEACTIVATION_WITH_LATER_POSTINGS = False
SALES_INVOICE_PREFIX = "INV"
SALES_DEFAULT_TAX_RATE = "0"
PURCHASE_ORDER_PREFIX = "PO"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "WARNING"},
}
