"""
REST API resolver factory for the Lambda handlers.

Every handler builds its own resolver through :func:`create_resolver`, which
wires CORS and the exception handlers that translate adapter exceptions into
the service error taxonomy and its JSON error body.
"""

from typing import Optional

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, CORSConfig, Response
from aws_lambda_powertools.metrics import MetricUnit
from pydantic import ValidationError as PydanticValidationError

from member_services.clients.errors import (
    ClientAuthenticationError,
    ClientError,
    ClientNotFoundError,
    ClientRequestError,
)
from member_services.erp.errors import (
    EnvelopeValidationError,
    ErpAuthenticationError,
    ErpError,
    ErpFault,
)
from member_services.handlers.utils.errors import (
    AuthenticationFailedError,
    BaseServiceError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ExternalServiceError,
    RemoteRejectionError,
    ResourceNotFoundError,
    ValidationError,
    create_error_context,
    service_error_response,
)
from member_services.handlers.utils.observability import logger, metrics

ERP_SERVICE_NAME = '24SevenOffice'

cors_config = CORSConfig(
    allow_origin='*',
    max_age=600,
    allow_headers=['content-type', 'authorization', 'x-appwrite-user-jwt'],
)


def translate_exception(exc: Exception, context: Optional[ErrorContext] = None) -> BaseServiceError:
    """
    Map an adapter exception onto the service error taxonomy.

    Args:
        exc: exception raised by the ERP adapter, an HTTP client or pydantic
        context: request context attached to the resulting error

    Returns:
        The service error to report; unknown exceptions become an internal error
    """
    if isinstance(exc, BaseServiceError):
        return exc
    if isinstance(exc, PydanticValidationError):
        field_errors = [
            {'field': '.'.join(str(part) for part in error['loc']) or 'body', 'message': error['msg']}
            for error in exc.errors()
        ]
        return ValidationError(message='Request validation failed', field_errors=field_errors, context=context)
    if isinstance(exc, EnvelopeValidationError):
        return ValidationError(message=exc.message, context=context)
    if isinstance(exc, ErpAuthenticationError):
        return AuthenticationFailedError(ERP_SERVICE_NAME, message=exc.message, context=context)
    if isinstance(exc, ErpFault):
        return RemoteRejectionError(exc.message, ERP_SERVICE_NAME, remote_code=exc.code, context=context)
    if isinstance(exc, ErpError):
        return ExternalServiceError(exc.message, ERP_SERVICE_NAME, context=context)
    if isinstance(exc, ClientAuthenticationError):
        return AuthenticationFailedError(exc.service_name, message=exc.message, context=context)
    if isinstance(exc, ClientNotFoundError):
        return ResourceNotFoundError(exc.service_name, message=exc.message, context=context)
    if isinstance(exc, ClientRequestError):
        return RemoteRejectionError(exc.message, exc.service_name, remote_code=str(exc.status_code), context=context)
    if isinstance(exc, ClientError):
        return ExternalServiceError(exc.message, exc.service_name, context=context)
    return BaseServiceError(
        message=str(exc) or exc.__class__.__name__,
        error_code='INTERNAL_SERVER_ERROR',
        severity=ErrorSeverity.CRITICAL,
        category=ErrorCategory.INFRASTRUCTURE,
        context=context,
        user_message='An unexpected error occurred',
    )


def current_error_context(app: APIGatewayRestResolver, operation: str, **additional_data) -> ErrorContext:
    request_context = app.current_event.request_context
    request_id = request_context.request_id if request_context and request_context.request_id else 'unknown'
    return create_error_context(request_id=request_id, operation=operation, **additional_data)


def create_resolver(service: str) -> APIGatewayRestResolver:
    """Resolver for one function, with the shared error translation registered."""
    app = APIGatewayRestResolver(cors=cors_config)

    def _respond(exc: Exception) -> Response:
        context = current_error_context(app, operation=service)
        return service_error_response(translate_exception(exc, context))

    @app.exception_handler(BaseServiceError)
    def handle_service_error(exc: BaseServiceError) -> Response:
        return service_error_response(exc)

    @app.exception_handler(PydanticValidationError)
    def handle_request_validation(exc: PydanticValidationError) -> Response:
        metrics.add_metric(name='ValidationError', unit=MetricUnit.Count, value=1)
        return _respond(exc)

    @app.exception_handler(ErpError)
    def handle_erp_error(exc: ErpError) -> Response:
        return _respond(exc)

    @app.exception_handler(ClientError)
    def handle_client_error(exc: ClientError) -> Response:
        return _respond(exc)

    @app.exception_handler(Exception)
    def handle_unexpected(exc: Exception) -> Response:
        logger.exception('Unexpected error in handler', extra={'service': service, 'error': str(exc)})
        metrics.add_metric(name='UnexpectedError', unit=MetricUnit.Count, value=1)
        return _respond(exc)

    return app
