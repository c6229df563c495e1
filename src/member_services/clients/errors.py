"""Exceptions raised by the HTTP clients for the external systems."""

from typing import Optional


class ClientError(Exception):
    """Base class for external client failures."""

    def __init__(self, service_name: str, message: str, status_code: Optional[int] = None):
        super().__init__(f'{service_name}: {message}')
        self.service_name = service_name
        self.message = message
        self.status_code = status_code


class ClientAuthenticationError(ClientError):
    """The remote system rejected our credentials (HTTP 401/403)."""


class ClientNotFoundError(ClientError):
    """The remote system has no such resource (HTTP 404)."""


class ClientRequestError(ClientError):
    """The remote system rejected the request (other HTTP 4xx)."""


class ClientUnavailableError(ClientError):
    """Network failure, timeout or HTTP 5xx."""
