"""
Receipts Handler - reads date, amount and currency from receipt text.

Foreign currency amounts are converted to NOK with the rate of the receipt
date. The body is either ``{"text": ...}`` or the raw receipt text.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.request_body import parse_body
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.assistants import AssistantService
from member_services.models.input import ReceiptAnalysisRequest

RECEIPT_ANALYSIS_PATH = '/receipts/analyze'

app = create_resolver('receipts')


@app.post(RECEIPT_ANALYSIS_PATH)
@tracer.capture_method
def analyze_receipt() -> Response:
    current_error_context(app, operation='analyze_receipt')
    body = parse_body(app.current_event)
    if not isinstance(body, dict):
        body = {'text': body}
    request = ReceiptAnalysisRequest.model_validate(body)

    with Dependencies(app.lambda_context) as dependencies:
        service = AssistantService(dependencies.language_model(), exchange_rates=dependencies.exchange_rates())
        response = service.analyze_receipt(request.text)

    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('receipts')
    return app.resolve(event, context)
