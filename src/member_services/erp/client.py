"""
ERP client: authentication, the authenticated call wrapper and session scoping.

A session token obtained from ``Login`` lives only as long as one
:class:`ErpSession`, which in turn lives only as long as one Lambda invocation.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterable, Optional

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from member_services.erp import endpoints
from member_services.erp.accounts import AccountService
from member_services.erp.attachments import AttachmentService
from member_services.erp.companies import CompanyService
from member_services.erp.departments import ClientService
from member_services.erp.envelope import Parameter, RemoteOperation, build_envelope
from member_services.erp.errors import (
    ErpAuthenticationError,
    ErpFault,
    ErpTransportError,
)
from member_services.erp.invoices import InvoiceService
from member_services.erp.models import Credential
from member_services.erp.parser import parse_response, result_text
from member_services.handlers.utils.observability import logger, metrics, tracer

DEFAULT_TIMEOUT_SECONDS = 30.0
SESSION_COOKIE = 'ASP.NET_SessionId'


@dataclass(frozen=True)
class ErpCredentials:
    application_id: str
    username: str
    password: str = field(repr=False)

    def to_parameter(self) -> Parameter:
        credential = Credential(application_id=self.application_id, password=self.password, username=self.username)
        return Parameter('credential', credential)


class ErpClient:
    """Performs SOAP calls against the ERP over a shared httpx client."""

    def __init__(
        self,
        credentials: ErpCredentials,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.credentials = credentials
        self.timeout = timeout
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client()

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> 'ErpClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @tracer.capture_method(capture_response=False)
    def call(
        self,
        operation: RemoteOperation,
        parameters: Iterable[Parameter] = (),
        session_token: Optional[str] = None,
    ) -> Optional[ET.Element]:
        """
        Send one operation and return its result element.

        The envelope is built before any network activity so that missing
        parameters raise EnvelopeValidationError without a request.
        """
        payload = build_envelope(operation, parameters)
        headers = operation.http_headers()
        if session_token:
            headers['Cookie'] = f'{SESSION_COOKIE}={session_token}'

        logger.debug('Calling ERP operation', extra={
            'erp_service': operation.service.name,
            'erp_operation': operation.name,
            'payload_bytes': len(payload),
        })

        try:
            response = self._http.post(operation.service.url, content=payload, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise ErpTransportError(f'{operation.name} timed out after {self.timeout}s', operation.name) from exc
        except httpx.HTTPError as exc:
            raise ErpTransportError(f'{operation.name} failed: {exc}', operation.name) from exc

        metrics.add_metric(name='ErpCall', unit=MetricUnit.Count, value=1)

        if response.status_code in (401, 403):
            raise ErpAuthenticationError(
                f'ERP refused {operation.name} with HTTP {response.status_code}',
                operation=operation.name,
            )

        # SOAP faults arrive as HTTP 500 with an envelope body; anything else non-2xx is transport.
        if response.status_code >= 400 and b'Envelope' not in response.content:
            raise ErpTransportError(
                f'{operation.name} returned HTTP {response.status_code}',
                operation.name,
                status_code=response.status_code,
            )

        return parse_response(operation, response.content)

    @tracer.capture_method(capture_response=False)
    def login(self) -> 'ErpSession':
        """Authenticate with the application credentials and open a session."""
        operation = endpoints.AUTHENTICATE.operation('Login')
        try:
            result = self.call(operation, [self.credentials.to_parameter()])
        except ErpAuthenticationError:
            raise
        except ErpFault as exc:
            raise ErpAuthenticationError(exc.message, code=exc.code) from exc

        token = result_text(result)
        if not token:
            metrics.add_metric(name='ErpAuthenticationFailure', unit=MetricUnit.Count, value=1)
            raise ErpAuthenticationError('ERP returned an empty session for the application credentials')

        logger.info('Authenticated with ERP', extra={'erp_username': self.credentials.username})
        return ErpSession(self, token)

    def authenticated_call(
        self,
        operation: RemoteOperation,
        parameters: Iterable[Parameter] = (),
    ) -> Optional[ET.Element]:
        """One authentication round trip followed by exactly one operation round trip."""
        parameters = list(parameters)
        # fail before Login when the request itself is invalid
        build_envelope(operation, parameters)
        return self.login().call(operation, parameters)


class ErpSession:
    """An authenticated session, scoped to a single invocation."""

    def __init__(self, client: ErpClient, token: str):
        self.client = client
        self.token = token

    def call(self, operation: RemoteOperation, parameters: Iterable[Parameter] = ()) -> Optional[ET.Element]:
        return self.client.call(operation, parameters, session_token=self.token)

    @cached_property
    def invoices(self) -> InvoiceService:
        return InvoiceService(self)

    @cached_property
    def companies(self) -> CompanyService:
        return CompanyService(self)

    @cached_property
    def clients(self) -> ClientService:
        return ClientService(self)

    @cached_property
    def attachments(self) -> AttachmentService:
        return AttachmentService(self)

    @cached_property
    def accounts(self) -> AccountService:
        return AccountService(self)
