"""
Admin console exceptions

- PersistenceError: the row store could not read or write (propagated as-is by services).
- ConfigurationValidationError: structurally invalid write input, raised before any write.

Malformed cosmetic values (bad colour, unknown social platform, out-of-range opacity)
are never errors; the schema layer normalizes them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError


class AdminConsoleError(Exception):
    """Base exception with structured details for logging/serialization."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"


class PersistenceError(AdminConsoleError):
    """The persistence collaborator failed (store unreachable, write rejected)."""

    def __init__(self, message: str, *, table: str, operation: str) -> None:
        super().__init__(message, {"table": table, "operation": operation})
        self.table = table
        self.operation = operation


class ConfigurationValidationError(AdminConsoleError):
    """
    Write input violates the schema.

    errors: [{"loc": ["modes", 0, "mode"], "msg": "..."}, ...]
    """

    def __init__(self, message: str, errors: Sequence[Dict[str, Any]]) -> None:
        self.errors: List[Dict[str, Any]] = [dict(e) for e in errors]
        super().__init__(message, {"errors": self.errors})

    @classmethod
    def from_pydantic(cls, exc: ValidationError, message: str = "Invalid configuration payload") -> "ConfigurationValidationError":
        errors = [
            {"loc": list(err.get("loc") or ()), "msg": str(err.get("msg") or "")}
            for err in exc.errors()
        ]
        return cls(message, errors)

    @property
    def paths(self) -> List[str]:
        """Dotted field paths, e.g. 'modes.0.mode'."""
        return [".".join(str(p) for p in e.get("loc") or []) for e in self.errors]


def safe_exc(e: BaseException) -> str:
    """Exception text, single line, trimmed to 300 chars (avoid leaking long driver dumps)."""
    try:
        s = str(e or "")
    except Exception:
        return ""
    s = s.replace("\n", " ").replace("\r", " ").strip()
    if len(s) > 300:
        s = s[:300] + "..."
    return s
