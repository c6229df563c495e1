"""Expense Description Handler - summarises attachment descriptions into one expense purpose."""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.request_body import parse_request
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.assistants import AssistantService
from member_services.models.input import ExpenseDescriptionRequest

EXPENSE_DESCRIPTION_PATH = '/expenses/description'

app = create_resolver('expense_description')


@app.post(EXPENSE_DESCRIPTION_PATH)
@tracer.capture_method
def describe_expense() -> Response:
    context = current_error_context(app, operation='describe_expense')
    request = parse_request(app.current_event, ExpenseDescriptionRequest, context)

    with Dependencies(app.lambda_context) as dependencies:
        response = AssistantService(dependencies.language_model()).describe_expense(request)

    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('expense-description')
    return app.resolve(event, context)
