"""
Custom exceptions for the transaction gateway.
"""
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from core.validation import SchemaViolation


class GatewayException(Exception):
    """Base exception for all gateway errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(GatewayException):
    """Raised when an upstream payload does not satisfy its schema."""

    def __init__(
        self,
        message: str,
        violations: Optional[List["SchemaViolation"]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.violations = list(violations or [])
        details = dict(details or {})
        details.setdefault("violations", [v.to_dict() for v in self.violations])
        super().__init__(message, details=details)


class FetchError(GatewayException):
    """Raised when an upstream request fails (network, non-2xx, timeout)."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.url = url
        self.status_code = status_code
        details = dict(details or {})
        details.setdefault("url", url)
        details.setdefault("status_code", status_code)
        super().__init__(message, details=details)


class ConfigurationError(GatewayException):
    """Raised when configuration or schema registration is invalid."""
    pass


class DataNotFoundError(GatewayException):
    """Raised when required data is not found."""
    pass


class InvalidTransactionIdError(GatewayException):
    """Raised when a transaction id cannot be parsed."""
    pass


class InvalidAddressError(GatewayException):
    """Raised when a caller-supplied address is not a valid hex address."""
    pass
