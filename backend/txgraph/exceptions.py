"""
Exception hierarchy for TxGraph.

Every engine error inherits from TxGraphError and can be rendered with
to_dict() so the serving layer can turn it into a response body.
"""

from typing import Any, Dict, List, Optional


class TxGraphError(Exception):
    """Base exception for all TxGraph errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: str = "TXGRAPH_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TxGraphError):
    """Raised when environment configuration cannot be parsed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ValidationError(TxGraphError):
    """Raised when raw network data fails structural validation."""

    def __init__(
        self,
        message: str,
        issues: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        self.issues = issues or []
        details["issues"] = self.issues
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidConfiguration(TxGraphError):
    """Raised when analysis parameters are malformed."""

    def __init__(
        self,
        message: str,
        parameter: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["parameter"] = parameter
        super().__init__(message, code="INVALID_CONFIGURATION", details=details)


class DeadlineExceeded(TxGraphError):
    """Raised when an analysis pass runs past its time budget."""

    def __init__(
        self,
        message: str,
        budget_seconds: float,
        elapsed_seconds: float,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["budget_seconds"] = budget_seconds
        details["elapsed_seconds"] = round(elapsed_seconds, 4)
        super().__init__(message, code="DEADLINE_EXCEEDED", details=details)
