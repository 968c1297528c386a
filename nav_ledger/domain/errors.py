"""Typed rejections raised by the accounting core."""
from __future__ import annotations

from typing import Any, Mapping


class LedgerError(Exception):
    """Base class for deterministic rejections of invalid input or state."""

    code = "LEDGER_ERROR"

    def __init__(self, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({rendered})"


class NotFoundError(LedgerError):
    code = "NOT_FOUND"


class ValidationError(LedgerError):
    code = "VALIDATION"


class BusinessRuleError(LedgerError):
    code = "BUSINESS_RULE"


class ConflictError(LedgerError):
    code = "CONFLICT"
