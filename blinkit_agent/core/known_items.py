"""
blinkit_agent/core/known_items.py

Process-lifetime memory of which search query surfaced each item.

Used by cart recovery to bring an item back on screen after the user has
navigated away from the results that contained it.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from blinkit_agent.data_models.catalog import Product
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


@dataclass(frozen=True)
class KnownItem:
    """Where an item was last seen."""
    item_id: str
    source_query: str
    display_name: str


class KnownItemMemory:
    """
    Mapping of item id to the query that produced it.

    Later writes for the same id overwrite earlier ones. Entries are never pruned,
    so growth is bounded by the distinct items seen in one run.
    """

    def __init__(self) -> None:
        self._items: dict[str, KnownItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get(self, item_id: str) -> KnownItem | None:
        return self._items.get(item_id)

    def remember(self, product: Product, source_query: str) -> bool:
        """
        Record a product under the query that found it.
        Returns:
            bool: False when the product has no stable id and was skipped.
        """
        if not product.has_stable_id:
            return False
        self._items[product.id] = KnownItem(
            item_id=product.id,
            source_query=source_query,
            display_name=product.name,
        )
        return True

    def remember_all(self, products: Iterable[Product], source_query: str) -> int:
        """Record every product with a stable id. Returns how many were recorded."""
        recorded = sum(1 for product in products if self.remember(product, source_query))
        if recorded:
            logger.debug("Remembered %d items for query '%s'", recorded, source_query)
        return recorded
