"""
Verify Membership Handler - checks a student's membership in the ERP.

The app posts the student number either as JSON (``{"snumber": ...}``) or as
the bare body.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.request_body import parse_body
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.membership_verification import MembershipVerificationService
from member_services.models.input import VerifyMembershipRequest

VERIFY_MEMBERSHIP_PATH = '/memberships/verify'

app = create_resolver('verify_membership')


@app.post(VERIFY_MEMBERSHIP_PATH)
@tracer.capture_method
def verify_membership() -> Response:
    context = current_error_context(app, operation='verify_membership')
    body = parse_body(app.current_event)
    if not isinstance(body, dict):
        body = {'snumber': body}
    request = VerifyMembershipRequest.model_validate(body)

    with Dependencies(app.lambda_context) as dependencies:
        app_database, _ = dependencies.database_ids()
        service = MembershipVerificationService(
            erp_client=dependencies.erp(),
            document_store=dependencies.document_store(),
            database_id=app_database,
        )
        response = service.verify(request.snumber, context)

    metrics.add_metric(name='MembershipVerified', unit=MetricUnit.Count, value=1)
    return create_api_response(status_code=200, body=response.to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('verify-membership')
    return app.resolve(event, context)
