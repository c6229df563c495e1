"""
Expense Approval Handler - uploads an approved expense to the ERP.

The invoice document and every receipt are filed under one stamp number.
Receipts that fail are reported in the response instead of failing the request.
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
from member_services.logic.expense_approval import ExpenseApprovalService
from member_services.models.input import ExpenseApprovalRequest

EXPENSE_APPROVAL_PATH = '/expenses/approve'

app = create_resolver('expense_approval')


@app.post(EXPENSE_APPROVAL_PATH)
@tracer.capture_method
def approve_expense() -> Response:
    context = current_error_context(app, operation='approve_expense')
    request = parse_request(app.current_event, ExpenseApprovalRequest, context)
    context.resource_id = request.expense_id

    with Dependencies(app.lambda_context) as dependencies:
        app_database, _ = dependencies.database_ids()
        service = ExpenseApprovalService(
            erp_client=dependencies.erp(),
            document_store=dependencies.document_store(),
            database_id=app_database,
        )
        response = service.approve(request.expense_id, context)

    if response.failed_receipts:
        logger.warning('Expense approved with failed receipts', extra={
            'expense_id': request.expense_id,
            'failed_receipts': len(response.failed_receipts),
        })

    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('expense-approval')
    return app.resolve(event, context)
