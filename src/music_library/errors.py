"""
Error taxonomy shared by the access layer and the HTTP boundary.

Every failure surfaced to a caller is one of these classes; `main` renders them
as JSON with the shape ``{"detail": {"error": ..., "message": ...}}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LibraryError(Exception):
    """Base class for classified failures."""

    status_code = 500
    error = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class AuthenticationError(LibraryError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    error = "not_authenticated"


class ForbiddenError(LibraryError):
    """The caller is authenticated but its role lacks the capability."""

    status_code = 403
    error = "forbidden"


class NotFoundError(LibraryError):
    """The resource does not exist, or is not owned by the caller."""

    status_code = 404
    error = "not_found"


class ValidationError(LibraryError):
    status_code = 400
    error = "validation_error"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        if self.field is not None:
            detail["field"] = self.field
        return detail


class PersistenceError(LibraryError):
    """A storage write failed; `step` names the phase of a multi-step unit."""

    status_code = 500
    error = "persistence_error"

    def __init__(self, message: str, *, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.step = step

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        if self.step is not None:
            detail["step"] = self.step
        return detail


class DatabaseUnavailableError(PersistenceError):
    status_code = 503
    error = "database_unavailable"
