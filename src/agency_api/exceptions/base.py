"""
Application-level exceptions.

Two failure families reach the HTTP layer:

    - RequestValidationFailed: the body broke one or more field rules (400).
    - PersistenceError: the store rejected the statement, dropped the connection,
      or no pooled connection became free in time (500).

Both inherit `to_payload()` and `http_status()` from `ApiError`, so the
exception handlers stay one-liners.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Violation:
    """A single (field, reason) pair produced by request validation."""

    field: str
    reason: str
    location: str = "body"

    def to_payload(self) -> dict:
        return {"field": self.field, "reason": self.reason, "location": self.location}


class ApiError(Exception):
    """
    Base exception for errors the API reports to clients.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error
    - error_code: canonical short code used by clients
    """

    # Map canonical error_code -> HTTP status.
    ERROR_CODE_TO_STATUS = {
        "validation_failed": 400,
        "persistence_failure": 500,
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        JSON-serializable body for the HTTP response:
            {"success": false, "message": "...", "code": "...", "fields": [...]}
        """
        payload = {"success": False, "message": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class RequestValidationFailed(ApiError):
    """Raised with every violation found in a request body, never just the first."""

    def __init__(self, violations: Iterable[Violation], message: str = "Validation failed"):
        self.violations = list(violations)
        if not self.violations:
            raise ValueError("RequestValidationFailed needs at least one violation")
        # dict.fromkeys keeps first-seen order while dropping repeats
        fields = list(dict.fromkeys(v.field for v in self.violations))
        super().__init__(message, fields=fields, error_code="validation_failed")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["errors"] = [v.to_payload() for v in self.violations]
        return payload


class PersistenceError(ApiError):
    """
    The store could not execute a statement.

    `message` is the store's own message, verbatim; `kind` is a coarse label
    ("unique", "pool_timeout", ...) kept for logs and never sent to clients.
    """

    def __init__(self, message: str, *, kind: str = "unknown"):
        super().__init__(message, error_code="persistence_failure")
        self.kind = kind


__all__ = [
    "Violation",
    "ApiError",
    "RequestValidationFailed",
    "PersistenceError",
]
