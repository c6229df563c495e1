"""Directory client (Microsoft Graph, application permissions)."""

from typing import Any, Optional

import httpx

from member_services.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpServiceClient
from member_services.clients.errors import ClientAuthenticationError

GRAPH_URL = 'https://graph.microsoft.com/v1.0'
TOKEN_URL = 'https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token'
GRAPH_SCOPE = 'https://graph.microsoft.com/.default'
USER_FIELDS = 'id,displayName,userPrincipalName,mail,department,jobTitle,businessPhones,mobilePhone'


def odata_literal(value: str) -> str:
    """Quote a string for use inside an OData filter expression."""
    return "'" + value.replace("'", "''") + "'"


class DirectoryClient(HttpServiceClient):
    service_name = 'Microsoft Graph'

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(GRAPH_URL, timeout=timeout, http_client=http_client)
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self._access_token: Optional[str] = None

    def _token(self) -> str:
        if self._access_token is None:
            payload = self.request_json(
                'POST',
                TOKEN_URL.format(tenant_id=self.tenant_id),
                data={
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                    'scope': GRAPH_SCOPE,
                    'grant_type': 'client_credentials',
                },
            )
            token = (payload or {}).get('access_token')
            if not token:
                raise ClientAuthenticationError(self.service_name, 'token response carried no access_token')
            self._access_token = token
        return self._access_token

    def find_users(self, odata_filter: str, advanced: bool = False) -> list[dict[str, Any]]:
        """Users matching an OData filter; ``advanced`` enables functions such as contains()."""
        headers = {'Authorization': f'Bearer {self._token()}'}
        params = {'$filter': odata_filter, '$select': USER_FIELDS}
        if advanced:
            headers['ConsistencyLevel'] = 'eventual'
            params['$count'] = 'true'
        payload = self.request_json('GET', 'users', headers=headers, params=params)
        return list((payload or {}).get('value') or [])

    def users_in_department(self, department: str) -> list[dict[str, Any]]:
        return self.find_users(f'department eq {odata_literal(department)}')

    def users_with_department_containing(self, term: str) -> list[dict[str, Any]]:
        return self.find_users(f'contains(department, {odata_literal(term)})', advanced=True)
