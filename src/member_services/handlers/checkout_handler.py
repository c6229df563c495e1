"""
Checkout Handler - starts a Vipps checkout for a signed-in app user.

The caller's Appwrite session JWT scopes the document store client, so the
checkout record is created with the user's own permissions.
"""

from typing import Any, Dict, Optional

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.data_classes import APIGatewayProxyEvent
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import ErrorContext, UnauthorizedRequestError, create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.request_body import bearer_token, header_value, parse_request
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.checkout import CheckoutService
from member_services.models.input import CheckoutRequest

CHECKOUT_PATH = '/checkout'
USER_JWT_HEADER = 'x-appwrite-user-jwt'

app = create_resolver('checkout')


def user_jwt(event: APIGatewayProxyEvent, context: Optional[ErrorContext] = None) -> str:
    """Session JWT from the Appwrite header, or a bearer token."""
    token = header_value(event, USER_JWT_HEADER) or bearer_token(event)
    if not token:
        raise UnauthorizedRequestError('A signed-in user is required to start a checkout', context=context)
    return token


@app.post(CHECKOUT_PATH)
@tracer.capture_method
def create_checkout() -> Response:
    context = current_error_context(app, operation='create_checkout')
    token = user_jwt(app.current_event, context)
    request = parse_request(app.current_event, CheckoutRequest, context)

    with Dependencies(app.lambda_context) as dependencies:
        app_database, _ = dependencies.database_ids()
        service = CheckoutService(
            payment_client=dependencies.payment(),
            document_store=dependencies.document_store(user_jwt=token),
            database_id=app_database,
        )
        response = service.create_checkout(request, dependencies.payment_callback_url(), context)

    return create_api_response(status_code=201, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('checkout')
    return app.resolve(event, context)
