"""
blinkit_agent/services/quick_checkout_service.py

One-call checkout: cart, spend guard, checkout, address, payment screen and UPI.
Stops before paying; pay_now stays an explicit user step.
"""

from typing import Any

from blinkit_agent.constants import PAYMENT_NAVIGATION_DEADLINE
from blinkit_agent.data_models.protocol import AddressIndexParams, NavigateParams, UpiParams, WorkerAction
from blinkit_agent.exceptions import SpendLimitExceededError, WorkflowError
from blinkit_agent.services.base import BaseService
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class QuickCheckoutService(BaseService):

    def quick_checkout(self, upi_id: str | None = None) -> dict[str, Any]:
        """
        Run every step up to payment and report what was completed.
        Args:
            upi_id (str | None): UPI id to select on the payment screen, if any.
        Returns:
            dict[str, Any]: Cart summary, selected address, UPI ids, steps_completed and next_action.
        Raises:
            WorkflowError: If the cart is empty.
            SpendLimitExceededError: If the cart total exceeds the hard limit.
        """
        self._require_login()
        steps: list[str] = []

        cart = self._dispatch(WorkerAction.GET_CART)
        if cart.total <= 0:
            raise WorkflowError("Cart is empty. Add items before checking out.")
        steps.append("cart_opened")

        decision = self.context.spend_guard.check(cart.total)
        if decision.exceeded_hard_limit:
            raise SpendLimitExceededError(
                decision.warning or "Spending limit exceeded.",
                total=cart.total,
                limit=self.context.spend_guard.max_order_amount,
            )

        checkout = self._dispatch(WorkerAction.CHECKOUT)
        steps.append("checkout_initiated")

        address_selected = None
        if checkout.next_step == "select_address":
            addresses = self._dispatch(WorkerAction.GET_ADDRESSES).addresses
            if addresses:
                self._dispatch(WorkerAction.SELECT_ADDRESS, AddressIndexParams(index=0))
                address_selected = f"{addresses[0].label}: {addresses[0].address_line}"
                steps.append("address_selected")

        reached = checkout.next_step == "payment"
        if not reached:
            outcome = self._dispatch(
                WorkerAction.NAVIGATE_TO_PAYMENT,
                NavigateParams(deadline_seconds=PAYMENT_NAVIGATION_DEADLINE),
            )
            reached = outcome.reached
            if not reached:
                logger.warning("Payment screen not reached; cleared %s", list(outcome.cleared_steps))
        if reached:
            steps.append("payment_reached")

        upi = self._dispatch(WorkerAction.GET_UPI_IDS)
        steps.append("upi_ids_loaded")

        if upi_id:
            self._dispatch(WorkerAction.SELECT_UPI_ID, UpiParams(upi_id=upi_id))
            steps.append("upi_selected")
            next_action = "Call pay_now, then approve the payment in your UPI app."
        elif upi.upi_ids:
            next_action = "Pick a UPI id with select_upi_id, then call pay_now."
        else:
            next_action = upi.hint or "Enter a UPI id with select_upi_id, then call pay_now."

        return {
            "cart_summary": {"item_count": cart.item_count, "total": cart.total},
            "address_selected": address_selected,
            "upi_ids": upi.upi_ids,
            "steps_completed": steps,
            "next_action": next_action,
            "spending_warning": decision.warning,
        }
