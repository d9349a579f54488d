"""
Error taxonomy for claim intake and triage.

Every error carries a machine-readable code and a details dict so the API
layer can translate it without inspecting message text.
"""

from typing import Any, Dict, Optional


class ClaimsFlowError(Exception):
    """Base exception for all ClaimsFlow errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ClaimsFlowError):
    """Unknown claim or session identifier."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(
            message=f"{kind.capitalize()} not found: {identifier}",
            error_code="NOT_FOUND",
            details={"kind": kind, "id": identifier},
        )


class InvalidTransitionError(ClaimsFlowError):
    """Step input for the wrong intake step, or an out-of-order status change."""

    def __init__(self, message: str, current: Optional[str] = None, requested: Optional[str] = None):
        details = {}
        if current is not None:
            details["current"] = current
        if requested is not None:
            details["requested"] = requested
        super().__init__(
            message=message,
            error_code="INVALID_TRANSITION",
            details=details,
        )


class ValidationFailedError(ClaimsFlowError):
    """Malformed input that the user can correct."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_FAILED",
            details={"field": field} if field else {},
        )


class DependencyUnavailableError(ClaimsFlowError):
    """An external collaborator (policy lookup, enrichment) failed."""

    def __init__(self, dependency: str, message: str, retryable: bool = True):
        self.retryable = retryable
        super().__init__(
            message=f"{dependency} unavailable: {message}",
            error_code="DEPENDENCY_UNAVAILABLE",
            details={"dependency": dependency, "retryable": retryable},
        )
