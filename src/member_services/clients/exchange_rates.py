"""Historical exchange rates (Frankfurter API)."""

from datetime import date
from typing import Optional

import httpx

from member_services.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpServiceClient

FRANKFURTER_URL = 'https://api.frankfurter.app'
BASE_CURRENCY = 'NOK'


class ExchangeRateClient(HttpServiceClient):
    service_name = 'Frankfurter'

    def __init__(
        self,
        base_url: str = FRANKFURTER_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(base_url, timeout=timeout, http_client=http_client)

    def rate_to_nok(self, on: date, currency: str) -> Optional[float]:
        """NOK per unit of ``currency`` on a given date; None when no rate is published."""
        currency = currency.upper()
        if currency == BASE_CURRENCY:
            return 1.0
        payload = self.request_json('GET', on.isoformat(), params={'from': currency, 'to': BASE_CURRENCY})
        rate = ((payload or {}).get('rates') or {}).get(BASE_CURRENCY)
        return float(rate) if rate is not None else None
