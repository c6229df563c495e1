"""
Error handling utilities for the member services Lambda handlers.

This module defines the service error taxonomy, translates adapter exceptions
into it, and shapes the JSON error responses returned through API Gateway.
"""

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from aws_lambda_powertools.event_handler import Response, content_types
from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel, Field

from member_services.handlers.utils.observability import logger, metrics, tracer


class ErrorSeverity(str, Enum):
    """Error severity levels for classification."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    REMOTE_REJECTION = "REMOTE_REJECTION"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    SECURITY = "SECURITY"


class ErrorContext(BaseModel):
    """Context information for errors."""

    request_id: str = Field(description="Unique request identifier")
    operation: str = Field(description="Operation being performed")
    resource_id: Optional[str] = Field(default=None, description="Resource identifier")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    additional_data: Dict[str, Any] = Field(default_factory=dict)


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.BUSINESS_LOGIC,
        context: Optional[ErrorContext] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context
        self.user_message = user_message or message
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and response."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.model_dump(mode="json") if self.context else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class ValidationError(BaseServiceError):
    """Raised when the request is missing required fields or is malformed."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
        )
        self.field_errors = field_errors or []


class UnauthorizedRequestError(BaseServiceError):
    """Raised when the inbound request does not carry a valid token."""

    def __init__(self, message: str = "Request is not authorized", context: Optional[ErrorContext] = None):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.SECURITY,
            context=context,
        )


class AuthenticationFailedError(BaseServiceError):
    """Raised when an external system rejects our credentials."""

    def __init__(self, service_name: str, message: Optional[str] = None, context: Optional[ErrorContext] = None):
        super().__init__(
            message=message or f"Authentication with {service_name} failed",
            error_code="AUTHENTICATION_FAILED",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.AUTHENTICATION,
            context=context,
            user_message=f"Authentication with {service_name} failed",
        )
        self.service_name = service_name


class RemoteRejectionError(BaseServiceError):
    """Raised when an external system rejects a request on business grounds."""

    def __init__(
        self,
        message: str,
        service_name: str,
        remote_code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code="REMOTE_REJECTION",
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.REMOTE_REJECTION,
            context=context,
        )
        self.service_name = service_name
        self.remote_code = remote_code


class BusinessLogicError(BaseServiceError):
    """Raised when a local business rule stops the request."""

    def __init__(
        self,
        message: str,
        error_code: str = "BUSINESS_LOGIC_ERROR",
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.BUSINESS_LOGIC,
            context=context,
        )


class ExternalServiceError(BaseServiceError):
    """Raised when external service calls fail."""

    def __init__(
        self,
        message: str,
        service_name: str,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_SERVICE,
            context=context,
            user_message=f"{service_name} is unavailable or returned an error",
        )
        self.service_name = service_name


class ResourceNotFoundError(BaseServiceError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        message: Optional[str] = None,
    ):
        # remote services report their own wording without the id
        if message is None:
            message = f"{resource_type} with ID '{resource_id}' not found"
        super().__init__(
            message=message,
            error_code="RESOURCE_NOT_FOUND",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.BUSINESS_LOGIC,
            context=context,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConfigurationError(BaseServiceError):
    """Raised when the function is deployed without the configuration it needs."""

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.INFRASTRUCTURE,
            context=context,
            user_message="The service is misconfigured",
        )


def create_error_context(
    request_id: str,
    operation: str,
    resource_id: Optional[str] = None,
    **additional_data: Any,
) -> ErrorContext:
    """Create an error context for consistent error handling."""
    return ErrorContext(
        request_id=request_id,
        operation=operation,
        resource_id=resource_id,
        additional_data=additional_data,
    )


@tracer.capture_method
def log_error_metrics(error: BaseServiceError) -> None:
    """Log error metrics for monitoring and alerting."""

    metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name=f"Error{error.category.value.title().replace('_', '')}Count", unit=MetricUnit.Count, value=1)

    tracer.put_annotation("error_code", error.error_code)
    tracer.put_annotation("error_category", error.category.value)
    tracer.put_metadata("error_details", error.to_dict())

    logger.error(
        "Service error occurred",
        extra={
            "error_id": error.error_id,
            "error_code": error.error_code,
            "error_severity": error.severity.value,
            "error_category": error.category.value,
            "error_message": error.message,
            "context": error.context.model_dump(mode="json") if error.context else None,
        }
    )


def format_error_response(error: BaseServiceError) -> Dict[str, Any]:
    """Format error for API response."""

    response: Dict[str, Any] = {
        "success": False,
        "error": {
            "code": error.error_code,
            "category": error.category.value,
            "message": error.user_message,
            "error_id": error.error_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }

    if isinstance(error, ValidationError) and error.field_errors:
        response["error"]["field_errors"] = error.field_errors

    if isinstance(error, RemoteRejectionError):
        response["error"]["service"] = error.service_name
        if error.remote_code:
            response["error"]["remote_code"] = error.remote_code

    if isinstance(error, (AuthenticationFailedError, ExternalServiceError)):
        response["error"]["service"] = error.service_name

    return response


def get_http_status_code(error: BaseServiceError) -> int:
    """Get appropriate HTTP status code for error."""

    status_mapping = {
        "VALIDATION_ERROR": 400,
        "UNAUTHORIZED": 401,
        "RESOURCE_NOT_FOUND": 404,
        "CUSTOMER_NOT_FOUND": 404,
        "CHECKOUT_NOT_PAID": 409,
        "BUSINESS_LOGIC_ERROR": 422,
        "FILE_PROCESSING_ERROR": 422,
        "REMOTE_REJECTION": 422,
        "AUTHENTICATION_FAILED": 502,
        "EXTERNAL_SERVICE_ERROR": 502,
    }

    return status_mapping.get(error.error_code, 500)


def create_api_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Create a standardized JSON response for the API Gateway resolver."""

    default_headers = {"X-Request-ID": str(uuid.uuid4())}
    if headers:
        default_headers.update(headers)

    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=body if isinstance(body, str) else json.dumps(body, default=str),
        headers=default_headers,
    )


def service_error_response(error: BaseServiceError) -> Response:
    """Log a service error and turn it into its HTTP response."""
    log_error_metrics(error)
    return create_api_response(
        status_code=get_http_status_code(error),
        body=format_error_response(error),
    )
