"""
Exceptions raised by the ERP SOAP adapter.

Every failure leaving the adapter is classified: local envelope validation,
transport, protocol (unparseable response), authentication, or a remote fault
carrying the ERP's own code and message.
"""

from enum import Enum
from typing import Optional


class FaultCategory(str, Enum):
    """Classification of a remote fault."""
    SENDER = "SENDER"
    RECEIVER = "RECEIVER"
    AUTHENTICATION = "AUTHENTICATION"
    BUSINESS_RULE = "BUSINESS_RULE"
    UNKNOWN = "UNKNOWN"


class ErpError(Exception):
    """Base class for all ERP adapter errors."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation


class EnvelopeValidationError(ErpError, ValueError):
    """Raised before any network call when a required parameter is missing."""


class ErpTransportError(ErpError):
    """Raised when the HTTP exchange itself fails (network, timeout, non-SOAP 5xx)."""

    def __init__(self, message: str, operation: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, operation)
        self.status_code = status_code


class ErpProtocolError(ErpError):
    """Raised when the response is not a well-formed envelope for the operation."""


class ErpFault(ErpError):
    """A structured fault returned by the ERP."""

    def __init__(
        self,
        message: str,
        code: str,
        category: FaultCategory = FaultCategory.UNKNOWN,
        operation: Optional[str] = None,
    ):
        super().__init__(message, operation)
        self.code = code
        self.category = category

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ErpAuthenticationError(ErpFault):
    """Raised when the ERP rejects the application credentials or session."""

    def __init__(self, message: str = "Authentication with the ERP failed", code: str = "AuthenticationFailed",
                 operation: Optional[str] = "Login"):
        super().__init__(message, code=code, category=FaultCategory.AUTHENTICATION, operation=operation)
