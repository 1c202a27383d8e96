# accounting/api/errors.py

"""
Domain error -> HTTP response mapping shared by every app's views.

    ValidationError / InvalidStateError / InsufficientStockError -> 400
    NotFoundError                                              -> 404
    DuplicateError                                             -> 409
    ConfigurationError / PartialFailureError                   -> 500
"""

from __future__ import annotations

import logging

from rest_framework.response import Response

from accounting.services.exceptions import AccountingServiceError

logger = logging.getLogger(__name__)


def service_error_response(exc: AccountingServiceError) -> Response:
    status_code = getattr(exc, "http_status", 400)
    if status_code >= 500:
        logger.error(
            "Service failure",
            extra={"error": exc.__class__.__name__, "detail": str(exc), **exc.details},
        )

    payload = {"detail": str(exc), "code": exc.__class__.__name__}
    if exc.details:
        payload["context"] = {
            key: value if isinstance(value, (int, float, bool)) else str(value)
            for key, value in exc.details.items()
        }
    return Response(payload, status=status_code)
