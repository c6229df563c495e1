"""Status webhook (Power Automate flow that records membership order outcomes)."""

from typing import Optional

import httpx
from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel, Field

from member_services.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpServiceClient
from member_services.clients.errors import ClientError
from member_services.handlers.utils.observability import logger, metrics

STATUS_RECEIVED = 'Mottatt'
STATUS_INVOICE_FAILED = 'Faktura feilet'
STATUS_INVOICE_CREATED = 'Faktura opprettet'


class StatusUpdate(BaseModel):
    student_id: int = Field(serialization_alias='studentId')
    name: str
    membership_type: str = Field(serialization_alias='membershipType')
    status: str
    campus_name: str = Field(serialization_alias='campusName')


class StatusNotifier(HttpServiceClient):
    """Posts status updates; failures are logged and never propagate."""

    service_name = 'Status webhook'

    def __init__(
        self,
        webhook_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(webhook_url, headers={'Content-Type': 'application/json'}, timeout=timeout,
                         http_client=http_client)

    def send(self, update: StatusUpdate) -> bool:
        try:
            self.request('POST', self.base_url, json=update.model_dump(by_alias=True))
        except ClientError as exc:
            metrics.add_metric(name='StatusWebhookFailure', unit=MetricUnit.Count, value=1)
            logger.error('Failed to send status update', extra={
                'student_id': update.student_id,
                'status': update.status,
                'error': str(exc),
            })
            return False
        logger.info('Status update sent', extra={'student_id': update.student_id, 'status': update.status})
        return True
