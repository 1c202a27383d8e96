# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for the ledger, the statement generators and the
inventory-ledger bridge.

Every error carries an `http_status` so the API layer can map failures
without inspecting messages:
- 400: malformed input, illegal state transition, insufficient stock
- 404: missing entity
- 409: duplicate document number / code
- 500: configuration problems and half-applied operations
"""


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""

    http_status = 400

    def __init__(self, message: str = "", **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        return self.message


class ValidationError(AccountingServiceError):
    """Malformed input, unbalanced entry or invalid account reference."""


class NotFoundError(AccountingServiceError):
    """Raised when an account, journal entry or document does not exist."""

    http_status = 404


class InvalidStateError(AccountingServiceError):
    """Raised on an illegal lifecycle transition (e.g. editing a posted entry)."""


class DuplicateError(AccountingServiceError):
    """Raised when a unique document number or account code collides."""

    http_status = 409


class InsufficientStockError(AccountingServiceError):
    """
    Raised before any stock mutation when a product cannot cover a request.

    Carries the shortfall so callers can tell the user exactly what is missing.
    """

    def __init__(self, message: str = "", *, product=None, requested=0, available=0):
        self.product = product
        self.requested = int(requested or 0)
        self.available = int(available or 0)
        self.shortfall = max(self.requested - self.available, 0)
        super().__init__(
            message
            or f"Insufficient stock for {product}: requested {self.requested}, "
            f"available {self.available} (short by {self.shortfall})",
            product=str(product) if product is not None else "",
            requested=self.requested,
            available=self.available,
            shortfall=self.shortfall,
        )


class ConfigurationError(AccountingServiceError):
    """Required chart-of-accounts entries are missing; never silently defaulted."""

    http_status = 500


class PartialFailureError(AccountingServiceError):
    """A multi-step operation is found half-applied and needs operator attention."""

    http_status = 500
