"""
Membership Order Handler - Lambda function for webshop membership orders.

Receives the order the webshop posts after checkout and turns it into an ERP
customer category and invoice.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.request_body import parse_request
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.membership_orders import MembershipOrderService
from member_services.models.input import MembershipOrderRequest

MEMBERSHIP_ORDERS_PATH = '/membership-orders'

app = create_resolver('membership_order')


@app.post(MEMBERSHIP_ORDERS_PATH)
@tracer.capture_method
def create_membership_order() -> Response:
    """
    Register a membership bought in the webshop.

    Returns:
        The ERP customer and invoice created for the order
    """
    context = current_error_context(app, operation='create_membership_order')
    request = parse_request(app.current_event, MembershipOrderRequest, context)

    logger.info('Membership order received', extra={
        'selected_variation': request.selected_variation,
        'price': request.price,
    })

    with Dependencies(app.lambda_context) as dependencies:
        flags = dependencies.membership_flags()
        service = MembershipOrderService(
            erp_client=dependencies.erp(),
            notifier=dependencies.status_notifier(),
            should_invoice=flags.SHOULD_INVOICE,
            should_create_customer=flags.SHOULD_CREATE_CUSTOMER,
        )
        response = service.process_order(request, context)

    return create_api_response(status_code=201, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('membership-order')
    return app.resolve(event, context)
