"""Webshop product listing for the app."""

from typing import Optional

from member_services.clients.storefront import StoreProduct, StorefrontClient
from member_services.handlers.utils.observability import logger, tracer
from member_services.models.input import ProductFilterRequest


def filter_products(products: list[StoreProduct], filters: ProductFilterRequest) -> list[StoreProduct]:
    """Keep products whose campus and department values equal the requested ones, when given."""
    return [
        product for product in products
        if (not filters.campus or product.campus.value == filters.campus)
        and (not filters.department or product.department.value == filters.department)
    ]


class WebshopService:
    def __init__(self, storefront: StorefrontClient):
        self.storefront = storefront

    @tracer.capture_method(capture_response=False)
    def list_products(self, filters: Optional[ProductFilterRequest] = None) -> list[StoreProduct]:
        filters = filters or ProductFilterRequest()
        products = self.storefront.list_products()
        selected = filter_products(products, filters)
        logger.info('Products listed', extra={
            'total': len(products),
            'returned': len(selected),
            'campus': filters.campus,
            'department': filters.department,
        })
        return selected

    def get_product(self, product_id: int) -> StoreProduct:
        return self.storefront.get_product(product_id)
