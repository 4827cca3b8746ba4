"""Exception taxonomy."""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for all skin-ledger errors."""


class FormatError(LedgerError, ValueError):
    """Import text is structurally unusable (missing header column, no rows)."""


class ValidationError(LedgerError, ValueError):
    """A transaction entry failed local validation before submission."""


class RowSubmissionError(LedgerError, RuntimeError):
    """The transaction-creation collaborator rejected a single row."""

    def __init__(self, reason: str, status: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status = status


class ApiError(LedgerError, RuntimeError):
    """A read request to the portfolio API failed."""
