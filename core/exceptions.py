"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the exceptions raised by the screen interface stores
and the mock trading backend.

- Provides a small, explicit exception hierarchy
- Lets the HTTP and push boundaries map failures to responses
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
ScreenInterfaceError (base)
├── InvalidArgumentError   -> client error (400)
├── NotFoundError          -> missing symbol/table/field (404)
├── DuplicateSymbolError   -> add on existing symbol (409)
└── InvalidIndexError      -> row index out of bounds (400)

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    """Expected client mistake, informational."""

    MEDIUM = "medium"
    """Operation target missing or conflicting."""

    HIGH = "high"
    """Unexpected internal failure."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class ScreenInterfaceError(Exception):
    """
    Base exception for all screen interface errors.

    All exceptions carry:
    - severity: for logging level selection
    - context: for debugging
    - status_code: HTTP status the boundary should answer with
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    status_code: int = 500

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/responses."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return self.message


# ============================================================
# DOMAIN ERRORS
# ============================================================

class InvalidArgumentError(ScreenInterfaceError):
    """Missing or malformed required input."""

    default_severity = Severity.LOW
    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if field:
            context["field"] = field
        if value is not None:
            context["value"] = str(value)[:100]

        super().__init__(message, context=context, **kwargs)


class NotFoundError(ScreenInterfaceError):
    """Operation target (symbol, table, field) does not exist."""

    status_code = 404

    def __init__(self, kind: str, key: str, message: Optional[str] = None):
        super().__init__(
            message or f"{kind} {key} not found",
            context={"kind": kind, "key": key},
        )
        self.kind = kind
        self.key = key


class DuplicateSymbolError(ScreenInterfaceError):
    """A position already exists for the symbol."""

    status_code = 409

    def __init__(self, symbol: str):
        super().__init__(
            f"Position for {symbol} already exists. Use UpdateRow to modify it.",
            context={"symbol": symbol},
        )
        self.symbol = symbol


class InvalidIndexError(ScreenInterfaceError):
    """
    Row index outside the table's current bounds.

    Indices are positional, so a concurrent delete can shift them
    between a read and a write.
    """

    default_severity = Severity.LOW
    status_code = 400

    def __init__(self, table_id: str, row_index: Any, row_count: int):
        super().__init__(
            "Invalid row index",
            context={
                "table_id": table_id,
                "row_index": row_index,
                "row_count": row_count,
            },
        )
        self.table_id = table_id
        self.row_index = row_index
        self.row_count = row_count


class InternalServiceError(ScreenInterfaceError):
    """Unexpected failure inside an operation, wrapped with its context."""

    default_severity = Severity.HIGH
    status_code = 500

    def __init__(self, operation: str, cause: Exception):
        super().__init__(f"{operation} error: {cause}", cause=cause)
        self.operation = operation


__all__ = [
    "Severity",
    "ScreenInterfaceError",
    "InvalidArgumentError",
    "NotFoundError",
    "DuplicateSymbolError",
    "InvalidIndexError",
    "InternalServiceError",
]
