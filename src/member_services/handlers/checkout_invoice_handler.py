"""
Checkout Invoice Handler - invoices a paid checkout in the ERP.

Receives the reconciled checkout record, with its user and membership
relations expanded, once the payment has gone through.
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
from member_services.logic.checkout_invoicing import CheckoutInvoiceService
from member_services.models.input import PaidCheckoutRequest

CHECKOUT_INVOICE_PATH = '/checkout/invoice'

app = create_resolver('checkout_invoice')


@app.post(CHECKOUT_INVOICE_PATH)
@tracer.capture_method
def invoice_checkout() -> Response:
    context = current_error_context(app, operation='invoice_checkout')
    request = parse_request(app.current_event, PaidCheckoutRequest, context)
    context.resource_id = request.reference

    logger.info('Paid checkout received', extra={
        'reference': request.reference,
        'paid_amount': request.paid_amount,
        'payment_method': request.payment_method,
    })

    with Dependencies(app.lambda_context) as dependencies:
        service = CheckoutInvoiceService(
            erp_client=dependencies.erp(),
            should_invoice=dependencies.membership_flags().SHOULD_INVOICE,
        )
        response = service.invoice_checkout(request, context)

    return create_api_response(status_code=201, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('checkout-invoice')
    return app.resolve(event, context)
