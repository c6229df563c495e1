"""Webshop Handler - product listing for the app, filtered by campus and department."""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from member_services.handlers.utils.dependencies import Dependencies
from member_services.handlers.utils.errors import ValidationError, create_api_response
from member_services.handlers.utils.observability import logger, metrics, record_invocation, tracer
from member_services.handlers.utils.request_body import parse_request
from member_services.handlers.utils.rest_api_resolver import create_resolver, current_error_context
from member_services.logic.webshop import WebshopService
from member_services.models.input import ProductFilterRequest
from member_services.models.output import ProductListResponse, ProductResponse

PRODUCTS_PATH = '/webshop/products'

app = create_resolver('webshop')


def _list(filters: ProductFilterRequest) -> Response:
    with Dependencies(app.lambda_context) as dependencies:
        products = WebshopService(dependencies.storefront()).list_products(filters)
    return create_api_response(status_code=200, body=ProductListResponse(products=products).to_json())


@app.get(PRODUCTS_PATH)
@tracer.capture_method
def list_products() -> Response:
    filters = ProductFilterRequest.model_validate(app.current_event.query_string_parameters or {})
    return _list(filters)


@app.post(PRODUCTS_PATH)
@tracer.capture_method
def search_products() -> Response:
    context = current_error_context(app, operation='search_products')
    return _list(parse_request(app.current_event, ProductFilterRequest, context))


@app.get(PRODUCTS_PATH + '/<product_id>')
@tracer.capture_method
def get_product(product_id: str) -> Response:
    context = current_error_context(app, operation='get_product', resource_id=product_id)
    if not product_id.isdigit():
        raise ValidationError(
            message='Product id must be numeric',
            field_errors=[{'field': 'product_id', 'message': 'must be numeric'}],
            context=context,
        )

    with Dependencies(app.lambda_context) as dependencies:
        product = WebshopService(dependencies.storefront()).get_product(int(product_id))

    return create_api_response(status_code=200, body=ProductResponse(product=product).to_json())


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    record_invocation('webshop')
    return app.resolve(event, context)
