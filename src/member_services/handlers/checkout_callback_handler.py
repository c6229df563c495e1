"""
Checkout Callback Handler - receives Vipps payment callbacks.

Only the reference in the body is used; the payment state is read back from
Vipps before anything is recorded.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.request_body import header_value, parse_request
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.checkout import CheckoutService
from member_services.models.input import CheckoutCallbackRequest

CHECKOUT_CALLBACK_PATH = '/checkout/callback'

app = create_resolver('checkout_callback')


@app.post(CHECKOUT_CALLBACK_PATH)
@tracer.capture_method
def checkout_callback() -> Response:
    context = current_error_context(app, operation='checkout_callback')
    request = parse_request(app.current_event, CheckoutCallbackRequest, context)
    context.resource_id = request.reference

    logger.info('Checkout callback received', extra={
        'reference': request.reference,
        'reported_state': request.session_state,
    })

    with Dependencies(app.lambda_context) as dependencies:
        app_database, _ = dependencies.database_ids()
        service = CheckoutService(
            payment_client=dependencies.payment(),
            document_store=dependencies.document_store(),
            database_id=app_database,
        )
        response = service.reconcile_callback(request, header_value(app.current_event, 'Authorization'), context)

    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('checkout-callback')
    return app.resolve(event, context)
