"""
Document store and file storage client (Appwrite REST API).

Authenticates either with a server API key (admin scope) or with a user JWT
forwarded from the calling app (session scope).
"""

import json
from typing import Any, Optional, Sequence

import httpx

from member_services.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpServiceClient


class Query:
    """Builders for the JSON query strings accepted by the document API."""

    @staticmethod
    def _build(method: str, attribute: Optional[str] = None, values: Optional[Sequence[Any]] = None) -> str:
        query: dict[str, Any] = {'method': method}
        if attribute is not None:
            query['attribute'] = attribute
        if values is not None:
            query['values'] = list(values)
        return json.dumps(query, separators=(',', ':'))

    @staticmethod
    def equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, (list, tuple)) else [value]
        return Query._build('equal', attribute, values)

    @staticmethod
    def search(attribute: str, value: str) -> str:
        return Query._build('search', attribute, [value])

    @staticmethod
    def select(attributes: Sequence[str]) -> str:
        return Query._build('select', values=attributes)

    @staticmethod
    def order_desc(attribute: str) -> str:
        return Query._build('orderDesc', attribute)

    @staticmethod
    def limit(count: int) -> str:
        return Query._build('limit', values=[count])


class DocumentStoreClient(HttpServiceClient):
    service_name = 'Appwrite'

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        api_key: Optional[str] = None,
        user_jwt: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        headers = {'X-Appwrite-Project': project_id, 'Content-Type': 'application/json'}
        if api_key:
            headers['X-Appwrite-Key'] = api_key
        if user_jwt:
            headers['X-Appwrite-JWT'] = user_jwt
        super().__init__(endpoint, headers=headers, timeout=timeout, http_client=http_client)

    @staticmethod
    def _documents_path(database_id: str, collection_id: str) -> str:
        return f'databases/{database_id}/collections/{collection_id}/documents'

    def get_document(self, database_id: str, collection_id: str, document_id: str) -> dict[str, Any]:
        return self.request_json('GET', f'{self._documents_path(database_id, collection_id)}/{document_id}')

    def create_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        return self.request_json(
            'POST',
            self._documents_path(database_id, collection_id),
            json={'documentId': document_id, 'data': data},
        )

    def update_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        return self.request_json(
            'PATCH',
            f'{self._documents_path(database_id, collection_id)}/{document_id}',
            json={'data': data},
        )

    def list_documents(
        self,
        database_id: str,
        collection_id: str,
        queries: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        params = [('queries[]', query) for query in queries]
        result = self.request_json('GET', self._documents_path(database_id, collection_id), params=params)
        return list((result or {}).get('documents') or [])

    def get_file(self, bucket_id: str, file_id: str) -> dict[str, Any]:
        return self.request_json('GET', f'storage/buckets/{bucket_id}/files/{file_id}')

    def get_file_download(self, bucket_id: str, file_id: str) -> bytes:
        return self.request('GET', f'storage/buckets/{bucket_id}/files/{file_id}/download').content

    def get_account(self) -> dict[str, Any]:
        """The account the forwarded user JWT belongs to."""
        return self.request_json('GET', 'account')
