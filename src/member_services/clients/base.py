"""
Shared httpx plumbing for the JSON/REST clients.

Every request carries an explicit timeout. Non-2xx responses are mapped onto
the :mod:`member_services.clients.errors` hierarchy so handlers can translate
them without knowing which system answered.
"""

from typing import Any, Optional

import httpx

from member_services.clients.errors import (
    ClientAuthenticationError,
    ClientNotFoundError,
    ClientRequestError,
    ClientUnavailableError,
)
from member_services.handlers.utils.observability import logger

DEFAULT_TIMEOUT_SECONDS = 15.0


class HttpServiceClient:
    """Base class for clients of one remote HTTP service."""

    service_name = 'external service'

    def __init__(
        self,
        base_url: str,
        headers: Optional[dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.headers = headers or {}
        self.timeout = timeout
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client()

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def url(self, path: str) -> str:
        if path.startswith(('http://', 'https://')):
            return path
        return f'{self.base_url}/{path.lstrip("/")}'

    def request(self, method: str, path: str, headers: Optional[dict[str, str]] = None, **kwargs: Any) -> httpx.Response:
        url = self.url(path)
        merged_headers = {**self.headers, **(headers or {})}
        try:
            response = self._http.request(method, url, headers=merged_headers, timeout=self.timeout, **kwargs)
        except httpx.TimeoutException as exc:
            raise ClientUnavailableError(self.service_name, f'{method} {url} timed out') from exc
        except httpx.HTTPError as exc:
            raise ClientUnavailableError(self.service_name, f'{method} {url} failed: {exc}') from exc

        self.raise_for_status(response)
        return response

    def request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self.request(method, path, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ClientUnavailableError(self.service_name, 'response is not JSON', response.status_code) from exc

    def raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        message = _error_message(response)
        logger.warning('External service returned an error', extra={
            'service': self.service_name,
            'status_code': status,
            'error_message': message,
        })
        if status in (401, 403):
            raise ClientAuthenticationError(self.service_name, message, status)
        if status == 404:
            raise ClientNotFoundError(self.service_name, message, status)
        if status < 500:
            raise ClientRequestError(self.service_name, message, status)
        raise ClientUnavailableError(self.service_name, message, status)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or f'HTTP {response.status_code}'
    if isinstance(body, dict):
        for key in ('message', 'detail', 'title', 'error_description', 'error'):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and isinstance(value.get('message'), str):
                return value['message']
    return f'HTTP {response.status_code}'
