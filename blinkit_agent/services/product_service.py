"""
blinkit_agent/services/product_service.py

Product search, product details and category browsing.

Browsing needs no login. Search always goes through the extraction strategy
selector so every result lands in known-item memory. Details and categories try the public JSON
endpoints first and fall back to the worker.
"""

from typing import Any

from blinkit_agent.constants import (
    DEFAULT_CATEGORY_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    ENDPOINT_CATEGORIES,
    category_products_endpoint,
    product_details_endpoint,
)
from blinkit_agent.core.extraction import ExtractionStrategySelector
from blinkit_agent.data_models.catalog import Category, Product, ProductDetails
from blinkit_agent.data_models.outcomes import SearchResult
from blinkit_agent.data_models.protocol import (
    CategoryParams,
    InterceptResult,
    ItemParams,
    LimitParams,
    ScrapeResult,
    SearchParams,
    WorkerAction,
)
from blinkit_agent.exceptions import WorkflowError
from blinkit_agent.services.base import BaseService
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


# Private functions _______________________________________________________________________________

def _product_from_api(raw: dict[str, Any]) -> Product:
    price = raw.get("price") or 0
    return Product(
        id=str(raw.get("product_id") or raw.get("id") or ""),
        name=raw.get("name") or "Unknown",
        price=price,
        mrp=raw.get("mrp") or price,
        unit=raw.get("unit") or "",
        in_stock=raw.get("is_in_stock") is not False,
        image_url=raw.get("image_url") or "",
    )


class WorkerSearchDriver:
    """The selector's page operations, each one worker command."""

    def __init__(self, service: BaseService) -> None:
        self._service = service

    def intercept_search(self, query: str, limit: int) -> InterceptResult:
        return self._service._dispatch(WorkerAction.SEARCH_INTERCEPT, SearchParams(query=query, limit=limit))

    def scrape_results(self, limit: int) -> ScrapeResult:
        return self._service._dispatch(WorkerAction.SCRAPE_RESULTS, LimitParams(limit=limit))

    def search_via_ui(self, query: str, limit: int) -> bool:
        result = self._service._dispatch(WorkerAction.SEARCH_VIA_UI, SearchParams(query=query, limit=limit))
        return result.submitted


# Exports _________________________________________________________________________________________

class ProductService(BaseService):

    def __init__(self, context) -> None:
        super().__init__(context)
        self.selector = ExtractionStrategySelector(WorkerSearchDriver(self), context.memory)

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> SearchResult:
        query = query.strip()
        if not query:
            raise WorkflowError("Search query must not be empty.")
        result = self.selector.search(query, limit)
        logger.info("Search '%s': %s via %s, %d items", query, result.outcome, result.strategy, len(result.items))
        return result

    def get_details(self, product_id: str) -> ProductDetails:
        try:
            response = self.context.http_client.post(product_details_endpoint(product_id), body={})
            product = response.data.get("product") if isinstance(response.data, dict) else None
            if response.ok and isinstance(product, dict):
                image_url = product.get("image_url") or ""
                return ProductDetails(
                    id=product_id,
                    name=product.get("name") or "Unknown",
                    price=product.get("price") or 0,
                    mrp=product.get("mrp") or product.get("price") or 0,
                    unit=product.get("unit") or "",
                    brand=product.get("brand"),
                    description=product.get("description"),
                    in_stock=product.get("is_in_stock") is not False,
                    image_url=image_url,
                    images=product.get("images") or ([image_url] if image_url else []),
                )
        except WorkflowError as e:
            logger.debug("HTTP product details failed, falling back to the browser: %s", e)
        return self._dispatch(WorkerAction.GET_PRODUCT_DETAILS, ItemParams(item_id=product_id))

    def browse_categories(self) -> list[Category]:
        try:
            response = self.context.http_client.get(ENDPOINT_CATEGORIES)
            raw = response.data.get("categories") if isinstance(response.data, dict) else None
            if response.ok and isinstance(raw, list):
                return [
                    Category(id=str(c.get("id") or ""), name=c.get("name") or "Unknown", icon_url=c.get("icon_url"))
                    for c in raw if isinstance(c, dict)
                ]
        except WorkflowError as e:
            logger.debug("HTTP categories failed, falling back to the browser: %s", e)
        return self._dispatch(WorkerAction.BROWSE_CATEGORIES).categories

    def browse_category(self, category_id: str, limit: int = DEFAULT_CATEGORY_LIMIT) -> list[Product]:
        try:
            response = self.context.http_client.get(category_products_endpoint(category_id))
            raw = response.data.get("products") if isinstance(response.data, dict) else None
            if response.ok and isinstance(raw, list):
                return [_product_from_api(p) for p in raw[:limit] if isinstance(p, dict)]
        except WorkflowError as e:
            logger.debug("HTTP category products failed, falling back to the browser: %s", e)
        return self._dispatch(WorkerAction.BROWSE_CATEGORY, CategoryParams(category_id=category_id, limit=limit)).items
