"""
Board Members Handler - looks up a department's board in the MS Graph directory.

The department name comes from the document store; directory users are matched
on it with progressively looser strategies.
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
from member_services.logic.board_members import BoardMembersService
from member_services.models.input import BoardMembersRequest

BOARD_MEMBERS_PATH = '/board-members'

app = create_resolver('board_members')


@app.post(BOARD_MEMBERS_PATH)
@tracer.capture_method
def find_board_members() -> Response:
    context = current_error_context(app, operation='find_board_members')
    request = parse_request(app.current_event, BoardMembersRequest, context)
    context.resource_id = request.department_id

    with Dependencies(app.lambda_context) as dependencies:
        app_database, _ = dependencies.database_ids()
        service = BoardMembersService(
            document_store=dependencies.document_store(),
            directory=dependencies.directory(),
            database_id=app_database,
        )
        response = service.find_board_members(request, context)

    logger.info('Board members resolved', extra={
        'department_id': request.department_id,
        'count': response.count,
        'strategy': response.strategy,
    })
    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('board-members')
    return app.resolve(event, context)
