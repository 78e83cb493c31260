"""
blinkit_agent/services/checkout_service.py

Checkout behind the spend guard, plus order history and tracking.
"""

from typing import Any

from blinkit_agent.constants import DEFAULT_ORDER_LIMIT
from blinkit_agent.data_models.catalog import OrderSummary, OrderTracking
from blinkit_agent.data_models.protocol import OrdersParams, TrackParams, WorkerAction
from blinkit_agent.exceptions import SpendLimitExceededError
from blinkit_agent.services.base import BaseService
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class CheckoutService(BaseService):

    def checkout(self) -> dict[str, Any]:
        """
        Proceed from the cart. Blocked before any checkout step when the cart
        total is over the hard limit.
        Raises:
            SpendLimitExceededError: If the cart total exceeds max_order_amount.
        """
        self._require_login()
        cart = self._dispatch(WorkerAction.GET_CART)
        decision = self.context.spend_guard.check(cart.total)
        if decision.exceeded_hard_limit:
            logger.warning("Checkout blocked at cart total %.2f", cart.total)
            raise SpendLimitExceededError(
                decision.warning or "Spending limit exceeded.",
                total=cart.total,
                limit=self.context.spend_guard.max_order_amount,
            )

        result = self._dispatch(WorkerAction.CHECKOUT).model_dump()
        result["cart_total"] = cart.total
        if decision.warning:
            result["spending_warning"] = decision.warning
        return result

    def get_order_history(self, limit: int = DEFAULT_ORDER_LIMIT) -> list[OrderSummary]:
        self._require_login()
        return self._dispatch(WorkerAction.GET_ORDERS, OrdersParams(limit=limit)).orders

    def track_order(self, order_id: str | None = None) -> OrderTracking:
        self._require_login()
        return self._dispatch(WorkerAction.TRACK_ORDER, TrackParams(order_id=order_id))
