# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS

- DEBUG on, human-readable console logging (LOG_FORMAT still wins)
- SQLite unless DATABASE_URL says otherwise
- Frontend dev server allowed for CORS/CSRF
- Browsable API enabled next to JSON
"""

from __future__ import annotations

from backend.logging_config import get_logging_config

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK, env

DEBUG = True
LOGGING = get_logging_config(DEBUG)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

_frontend_origins = env.list("CORS_ALLOWED_ORIGINS", default=["http://localhost:5173"])
CORS_ALLOWED_ORIGINS = _frontend_origins
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=_frontend_origins)

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_RENDERER_CLASSES": (
        "rest_framework.renderers.JSONRenderer",
        "rest_framework.renderers.BrowsableAPIRenderer",
    ),
}
