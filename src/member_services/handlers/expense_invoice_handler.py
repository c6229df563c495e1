"""
Expense Invoice Handler - hands a submitted expense to the Power Automate flow.

The flow creates the invoice document and answers with its id, which is stored
on the expense.
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
from member_services.logic.expense_submission import ExpenseSubmissionService
from member_services.models.input import Expense

EXPENSE_INVOICE_PATH = '/expenses/invoice'

app = create_resolver('expense_invoice')


@app.post(EXPENSE_INVOICE_PATH)
@tracer.capture_method
def submit_expense() -> Response:
    context = current_error_context(app, operation='submit_expense')
    expense = parse_request(app.current_event, Expense, context)
    context.resource_id = expense.id

    with Dependencies(app.lambda_context) as dependencies:
        app_database, _ = dependencies.database_ids()
        service = ExpenseSubmissionService(
            expense_flow=dependencies.expense_flow(),
            document_store=dependencies.document_store(),
            database_id=app_database,
        )
        response = service.submit(expense, context)

    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('expense-invoice')
    return app.resolve(event, context)
