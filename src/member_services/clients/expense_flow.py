"""Expense submission flow (Power Automate HTTP trigger that produces the expense invoice)."""

from typing import Any, Optional

import httpx

from member_services.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpServiceClient
from member_services.clients.errors import ClientUnavailableError


class ExpenseFlowClient(HttpServiceClient):
    service_name = 'Power Automate'

    def __init__(
        self,
        flow_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(flow_url, headers={'Content-Type': 'application/json'}, timeout=timeout,
                         http_client=http_client)

    def submit(self, payload: dict[str, Any]) -> str:
        """Submit an expense; returns the invoice id the flow assigned."""
        result = self.request_json('POST', self.base_url, json=payload) or {}
        invoice_id = result.get('invoiceId')
        if invoice_id in (None, ''):
            raise ClientUnavailableError(self.service_name, 'flow response carried no invoiceId')
        return str(invoice_id)
