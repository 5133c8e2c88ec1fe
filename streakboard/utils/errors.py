"""Custom exception hierarchy for the Streakboard API."""

from __future__ import annotations


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=422)


class TransientStoreError(AppError):
    """Raised when a read or write against the store fails.

    Never swallowed by the reconciler, aggregator or snapshot builder so the
    caller can schedule a retry.
    """

    def __init__(self, reason: str = "Database request failed") -> None:
        super().__init__(message=reason, code="STORE_UNAVAILABLE", status_code=503)


class DuplicateComputationError(AppError):
    """Raised when an insert loses a race against a uniqueness constraint."""

    def __init__(self, table: str, reason: str | None = None) -> None:
        self.table = table
        super().__init__(
            message=reason or f"Duplicate row in {table}",
            code="DUPLICATE_COMPUTATION",
            status_code=409,
        )
