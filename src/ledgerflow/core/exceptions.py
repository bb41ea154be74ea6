"""Custom exception classes for the bookkeeping pipeline.

Each exception carries an error_code that maps to the catalog in errors.py
and the HTTP status returned when it reaches the API boundary.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger pipeline errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "SYNC_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
        message: Optional human-readable message overriding the catalog text
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
        message: str | None = None,
    ):
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        self.message = message
        super().__init__(message or error_code)


class ProviderError(LedgerError):
    """Raised when the banking-data provider rejects or fails a request.

    The provider's own error message is kept in ``message`` so the sync job
    can record it on the bank account.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("SYNC_001", details=details, http_status=502, message=message)


class LLMError(LedgerError):
    """Raised when the language model call fails or its answer can't be parsed.

    Codes: AI_001 (call failed), AI_002 (unparsable output), AI_003 (not configured).
    """

    def __init__(self, error_code: str, details: dict[str, Any] | None = None):
        super().__init__(error_code, details=details, http_status=503 if error_code == "AI_003" else 502)


class CategorizationError(LedgerError):
    """Raised when an AI categorization batch has to be abandoned."""

    pass


class ReconciliationError(LedgerError):
    """Raised when the reconciliation model output can't be used."""

    pass


class NotFoundError(LedgerError):
    """Raised when a user-scoped resource doesn't exist."""

    def __init__(self, error_code: str, details: dict[str, Any] | None = None):
        super().__init__(error_code, details=details, http_status=404)


class ValidationError(LedgerError):
    """Raised when a write would break a ledger invariant.

    This includes:
    - Category type differing from the transaction type
    - Negative amounts on manual entry
    - Duplicate category names
    """

    def __init__(self, error_code: str, details: dict[str, Any] | None = None):
        super().__init__(error_code, details=details, http_status=400)
