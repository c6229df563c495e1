"""Storefront client (WooCommerce REST API v3)."""

from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from member_services.clients.base import DEFAULT_TIMEOUT_SECONDS, HttpServiceClient

DEFAULT_STORE_URL = 'https://biso.no/wp-json/wc/v3'


class LabeledValue(BaseModel):
    value: str = ''
    label: str = 'N/A'


class StoreProduct(BaseModel):
    """Projection of a storefront product returned to the app."""

    id: int
    name: str
    campus: LabeledValue = Field(default_factory=LabeledValue)
    department: LabeledValue = Field(default_factory=LabeledValue)
    images: list[str] = Field(default_factory=list)
    price: str = ''
    sale_price: str = ''
    description: str = ''
    url: str = ''

    @classmethod
    def from_store(cls, product: dict[str, Any]) -> 'StoreProduct':
        acf = product.get('acf') or {}
        return cls(
            id=product['id'],
            name=product.get('name') or '',
            campus=_labeled(acf.get('campus')),
            department=_labeled(acf.get('department')),
            images=[image['src'] for image in product.get('images') or [] if image.get('src')],
            price=str(product.get('price') or ''),
            sale_price=str(product.get('sale_price') or ''),
            description=product.get('description') or '',
            url=product.get('permalink') or '',
        )


def _labeled(value: Any) -> LabeledValue:
    if isinstance(value, dict) and value:
        return LabeledValue(value=str(value.get('value') or ''), label=str(value.get('label') or 'N/A'))
    return LabeledValue()


class StorefrontClient(HttpServiceClient):
    service_name = 'WooCommerce'

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        base_url: str = DEFAULT_STORE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        super().__init__(base_url, timeout=timeout, http_client=http_client)
        self._auth_params = {'consumer_key': consumer_key, 'consumer_secret': consumer_secret}

    def list_products(self, per_page: int = 100) -> list[StoreProduct]:
        products = self.request_json('GET', 'products', params={**self._auth_params, 'per_page': per_page})
        return [StoreProduct.from_store(product) for product in products or []]

    def get_product(self, product_id: int) -> StoreProduct:
        return StoreProduct.from_store(self.request_json('GET', f'products/{product_id}', params=self._auth_params))
