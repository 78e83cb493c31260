"""
blinkit_agent/services/cart_service.py

Cart operations. Item-level operations first make sure the item's card is on
the page, re-running its source search through cart recovery when it is not.
"""

from typing import Any

from blinkit_agent.constants import DEFAULT_SEARCH_LIMIT
from blinkit_agent.core.extraction import ExtractionStrategySelector
from blinkit_agent.core.recovery import CartRecovery
from blinkit_agent.data_models.catalog import CartSnapshot
from blinkit_agent.data_models.protocol import CartItemParams, ItemParams, WorkerAction
from blinkit_agent.services.base import BaseService
from blinkit_agent.services.product_service import WorkerSearchDriver
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class CartService(BaseService):

    def __init__(self, context) -> None:
        super().__init__(context)
        selector = ExtractionStrategySelector(WorkerSearchDriver(self), context.memory)
        self.recovery = CartRecovery(
            memory=context.memory,
            search=lambda query: selector.search(query, DEFAULT_SEARCH_LIMIT),
            locate=self._locate,
        )

    def _locate(self, item_id: str) -> bool:
        return self._dispatch(WorkerAction.LOCATE_ITEM, ItemParams(item_id=item_id)).present

    def get_cart(self) -> CartSnapshot:
        self._require_login()
        cart: CartSnapshot = self._dispatch(WorkerAction.GET_CART)
        decision = self.context.spend_guard.check(cart.total)
        if decision.warning:
            cart = cart.model_copy(update={"spending_warning": decision.warning})
        return cart

    def add_to_cart(self, item_id: str, quantity: int = 1) -> dict[str, Any]:
        """Add ``quantity`` units and report the new cart total with any spend warning."""
        self._require_login()
        recovered = self.recovery.ensure_present(item_id)
        result = self._dispatch(WorkerAction.ADD_TO_CART, CartItemParams(item_id=item_id, quantity=quantity))

        cart = self.get_cart()
        known = self.context.memory.get(item_id)
        return {
            "success": True,
            "item_name": known.display_name if known else item_id,
            "quantity_added": result.quantity,
            "limit_reached": result.limit_reached,
            "recovered": recovered,
            "cart_total": cart.total,
            "spending_warning": cart.spending_warning,
        }

    def update_item(self, item_id: str, quantity: int) -> CartSnapshot:
        self._require_login()
        self.recovery.ensure_present(item_id)
        self._dispatch(WorkerAction.UPDATE_CART_ITEM, CartItemParams(item_id=item_id, quantity=quantity))
        return self.get_cart()

    def remove_from_cart(self, item_id: str, quantity: int = 1) -> dict[str, Any]:
        self._require_login()
        self.recovery.ensure_present(item_id)
        self._dispatch(WorkerAction.REMOVE_FROM_CART, CartItemParams(item_id=item_id, quantity=quantity))
        cart = self.get_cart()
        return {"success": True, "removed_item": item_id, "new_cart_total": cart.total}

    def clear_cart(self) -> dict[str, Any]:
        self._require_login()
        result = self._dispatch(WorkerAction.CLEAR_CART)
        return {"success": True, "items_removed_count": result.items_removed}
