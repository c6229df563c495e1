"""ERP Departments Handler - mirrors the ERP department list into the document store."""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.departments import DepartmentSyncService

DEPARTMENT_SYNC_PATH = '/erp/departments/sync'

app = create_resolver('erp_departments')


@app.post(DEPARTMENT_SYNC_PATH)
@tracer.capture_method
def sync_departments() -> Response:
    context = current_error_context(app, operation='sync_departments')

    with Dependencies(app.lambda_context) as dependencies:
        _, erp_database = dependencies.database_ids()
        service = DepartmentSyncService(
            erp_client=dependencies.erp(),
            document_store=dependencies.document_store(),
            database_id=erp_database,
        )
        response = service.sync(context)

    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('erp-departments')
    return app.resolve(event, context)
