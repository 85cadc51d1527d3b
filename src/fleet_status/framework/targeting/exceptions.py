"""
Targeting Exceptions

Errors raised while validating a target declaration or expanding it into
concrete endpoint names. All of them are terminal for a dispatch call.
"""

from typing import Any


class TargetingError(Exception):
    """Base exception for target validation and resolution errors."""

    def __init__(self, message: str, kind: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "kind": self.kind,
        }


class TargetValidationError(TargetingError):
    """Raised when a target is missing a field required by its kind."""


class InvalidTargetKindError(TargetValidationError):
    """Raised when a target names an unknown kind."""


class EmptyTargetError(TargetingError):
    """Raised when a target resolves to no endpoint at all."""


class NoMatchError(TargetingError):
    """Raised when a well-formed target matches zero registered endpoints."""

    def __init__(self, kind: str, criterion: str, message: str | None = None):
        super().__init__(message or f"no endpoints match {kind}: {criterion}", kind=kind)
        self.criterion = criterion

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["criterion"] = self.criterion
        return data
