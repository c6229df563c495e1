"""
Pytest configuration and shared fixtures for the member services tests.

Remote systems are faked at the HTTP layer with ``httpx.MockTransport`` so
tests can assert exactly which requests were sent and how many.
"""

import json
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
import pytest

# Powertools reads these when the observability module is first imported
os.environ.update({
    "AWS_DEFAULT_REGION": "eu-north-1",
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
    "POWERTOOLS_SERVICE_NAME": "test-member-services",
    "POWERTOOLS_METRICS_NAMESPACE": "TestMemberServices",
    "POWERTOOLS_TRACE_DISABLED": "true",
    "POWERTOOLS_DEV": "false",
    "LOG_LEVEL": "DEBUG",
    "STAGE": "test",
})

TEST_ENVIRONMENT = {
    "ERP_APPLICATION_ID": "00000000-0000-0000-0000-000000000001",
    "ERP_USERNAME": "api@example.com",
    "ERP_PASSWORD": "erp-password",
    "APPWRITE_ENDPOINT": "https://appwrite.test/v1",
    "APPWRITE_PROJECT_ID": "project-1",
    "APPWRITE_API_KEY": "server-key",
    "STATUS_WEBHOOK_URL": "https://flow.test/status",
    "VIPPS_CLIENT_ID": "vipps-client",
    "VIPPS_CLIENT_SECRET": "vipps-secret",
    "VIPPS_SUBSCRIPTION_KEY": "vipps-subscription",
    "VIPPS_MERCHANT_SERIAL_NUMBER": "123456",
    "VIPPS_CALLBACK_URL": "https://api.test/checkout/callback",
    "VIPPS_TEST_MODE": "true",
    "WC_CONSUMER_KEY": "ck_test",
    "WC_CONSUMER_SECRET": "cs_test",
    "WC_STORE_URL": "https://shop.test/wp-json/wc/v3",
    "AZURE_TENANT_ID": "tenant-1",
    "AZURE_CLIENT_ID": "graph-client",
    "AZURE_CLIENT_SECRET": "graph-secret",
    "OPENAI_API_KEY": "sk-test",
    "POWERAUTOMATE_URL": "https://flow.test/expense",
}

WEBSERVICES_NS = "http://24sevenOffice.com/webservices"
SOAP12_NS = "http://www.w3.org/2003/05/soap-envelope"


def soap_response(
    operation: str,
    result: Optional[str] = "",
    namespace: str = WEBSERVICES_NS,
) -> bytes:
    """A SOAP 1.2 response envelope; ``result=None`` leaves out the result element."""
    inner = "" if result is None else f"<{operation}Result>{result}</{operation}Result>"
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<soap:Envelope xmlns:soap="{SOAP12_NS}">'
        f'<soap:Body><{operation}Response xmlns="{namespace}">{inner}</{operation}Response></soap:Body>'
        '</soap:Envelope>'
    ).encode("utf-8")


def soap_fault(code: str, reason: str) -> bytes:
    return (
        f'<soap:Envelope xmlns:soap="{SOAP12_NS}"><soap:Body><soap:Fault>'
        f'<soap:Code><soap:Value>soap:{code}</soap:Value></soap:Code>'
        f'<soap:Reason><soap:Text xml:lang="en">{reason}</soap:Text></soap:Reason>'
        '</soap:Fault></soap:Body></soap:Envelope>'
    ).encode("utf-8")


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


@dataclass
class ErpCall:
    operation: str
    element: ET.Element
    request: httpx.Request

    def parameter(self, name: str) -> Optional[ET.Element]:
        for child in self.element:
            if _local(child.tag) == name:
                return child
        return None


Responder = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """
    One MockTransport handler standing in for every remote system.

    ERP requests are answered per SOAP operation; everything else is routed
    by method and URL path, the longest matching path fragment winning.
    """

    ERP_HOST_SUFFIX = "24sevenoffice.com"

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.erp_calls: list[ErpCall] = []
        self._erp: Dict[str, list[tuple[int, bytes]]] = {}
        self._routes: list[tuple[str, str, Responder]] = []

    def erp(self, operation: str, result: Optional[str] = "", status: int = 200,
            content: Optional[bytes] = None) -> "FakeBackend":
        """Queue a response for an operation; the last queued response repeats."""
        body = content if content is not None else soap_response(operation, result)
        self._erp.setdefault(operation, []).append((status, body))
        return self

    def erp_login(self, token: str = "session-token") -> "FakeBackend":
        return self.erp("Login", token)

    def route(self, method: str, path: str, json_body: Any = None, status: int = 200,
              handler: Optional[Callable[[httpx.Request], httpx.Response]] = None) -> "FakeBackend":
        payload = json_body if json_body is not None else {}
        responder: Responder = handler or (lambda request: httpx.Response(status, json=payload))
        self._routes.append((method.upper(), path, responder))
        return self

    def calls(self, operation: str) -> list[ErpCall]:
        return [call for call in self.erp_calls if call.operation == operation]

    def sent(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and path in r.url.path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host.lower().endswith(self.ERP_HOST_SUFFIX):
            return self._erp_response(request)

        matches = [
            (path, responder) for method, path, responder in self._routes
            if method == request.method and path in request.url.path
        ]
        if not matches:
            return httpx.Response(404, json={"message": f"no route for {request.method} {request.url}"})
        _, responder = max(matches, key=lambda match: len(match[0]))
        return responder(request)

    def _erp_response(self, request: httpx.Request) -> httpx.Response:
        root = ET.fromstring(request.content)
        body = next(child for child in root if _local(child.tag) == "Body")
        element = next(iter(body))
        operation = _local(element.tag)
        self.erp_calls.append(ErpCall(operation, element, request))

        queued = self._erp.get(operation)
        if not queued:
            return httpx.Response(500, content=soap_fault("Receiver", f"no stub for {operation}"))
        status, body = queued.pop(0) if len(queued) > 1 else queued[0]
        return httpx.Response(status, content=body, headers={"Content-Type": "application/soap+xml; charset=utf-8"})


@dataclass
class FakeLambdaContext:
    function_name: str = "test-member-services"
    function_version: str = "$LATEST"
    memory_limit_in_mb: int = 512
    invoked_function_arn: str = "arn:aws:lambda:eu-north-1:123456789012:function:test-member-services"
    aws_request_id: str = "test-request-id-123"
    log_group_name: str = "/aws/lambda/test-member-services"
    log_stream_name: str = "2024/01/01/[$LATEST]test123"
    remaining_millis: int = 30000

    def get_remaining_time_in_millis(self) -> int:
        return self.remaining_millis


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Full configuration for every function, with the env model cache reset around each test."""
    for key, value in TEST_ENVIRONMENT.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("ERP_SECRET_NAME", raising=False)
    monkeypatch.delenv("SHOULD_INVOICE", raising=False)
    monkeypatch.delenv("SHOULD_CREATE_CUSTOMER", raising=False)
    monkeypatch.setenv("LAMBDA_ENV_MODELER_DISABLE_CACHE", "true")
    yield


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http_client(backend) -> httpx.Client:
    with httpx.Client(transport=httpx.MockTransport(backend)) as client:
        yield client


@pytest.fixture
def patched_http(backend, monkeypatch) -> FakeBackend:
    """Route every client a handler builds through the fake backend."""
    monkeypatch.setattr(
        "member_services.handlers.utils.dependencies.create_http_client",
        lambda: httpx.Client(transport=httpx.MockTransport(backend)),
    )
    return backend


@pytest.fixture
def erp_client(http_client):
    from member_services.erp import ErpClient, ErpCredentials

    credentials = ErpCredentials(application_id="app-id", username="api@example.com", password="secret")
    return ErpClient(credentials, http_client=http_client, timeout=5.0)


@pytest.fixture
def document_store(http_client):
    from member_services.clients.document_store import DocumentStoreClient

    return DocumentStoreClient(
        endpoint="https://appwrite.test/v1",
        project_id="project-1",
        api_key="server-key",
        http_client=http_client,
    )


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


@pytest.fixture
def api_gateway_event() -> Callable[..., Dict[str, Any]]:
    """Factory for API Gateway REST proxy events."""

    def build(
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        query: Optional[Dict[str, str]] = None,
        is_base64: bool = False,
    ) -> Dict[str, Any]:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)
        request_headers = {"Content-Type": "application/json", "User-Agent": "test-agent/1.0"}
        request_headers.update(headers or {})
        return {
            "resource": path,
            "httpMethod": method,
            "path": path,
            "headers": request_headers,
            "multiValueHeaders": {key: [value] for key, value in request_headers.items()},
            "body": body,
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "httpMethod": method,
                "path": path,
                "resourcePath": path,
                "protocol": "HTTP/1.1",
                "requestTime": "01/Jan/2024:12:00:00 +0000",
                "requestTimeEpoch": 1704110400000,
                "identity": {"sourceIp": "127.0.0.1", "userAgent": "test-agent/1.0"},
            },
            "pathParameters": None,
            "queryStringParameters": query,
            "multiValueQueryStringParameters": {key: [value] for key, value in query.items()} if query else None,
            "stageVariables": None,
            "isBase64Encoded": is_base64,
        }

    return build


@pytest.fixture
def chat_completion() -> Callable[[Dict[str, Any]], httpx.Response]:
    """OpenAI chat completion response whose message content is ``payload`` as JSON."""

    def build(payload: Dict[str, Any]) -> httpx.Response:
        return httpx.Response(200, json={
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 1704110400,
            "model": "gpt-4o-mini",
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": json.dumps(payload)},
                "finish_reason": "stop",
            }],
            "usage": {"prompt_tokens": 10, "completion_tokens": 10, "total_tokens": 20},
        })

    return build


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
