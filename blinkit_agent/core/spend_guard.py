"""
blinkit_agent/core/spend_guard.py

Checks a cart total against the configured warning threshold and hard limit.
"""

from blinkit_agent.data_models.outcomes import SpendDecision
from blinkit_agent.data_models.settings import Settings


def _format_amount(amount: float) -> str:
    return f"{amount:.2f}".rstrip("0").rstrip(".")


class SpendGuard:
    """
    Pure check of a cart total T against warn threshold W and max order amount X.

    T > X blocks checkout; W < T <= X allows it with a warning; T <= W allows it silently.
    Equality at either threshold counts as not exceeded. W <= X is expected but not enforced.
    """

    def __init__(self, warn_threshold: float, max_order_amount: float) -> None:
        self.warn_threshold = warn_threshold
        self.max_order_amount = max_order_amount

    @classmethod
    def from_settings(cls, settings: Settings) -> "SpendGuard":
        return cls(
            warn_threshold=settings.warn_threshold,
            max_order_amount=settings.max_order_amount,
        )

    def check(self, cart_total: float) -> SpendDecision:
        """
        Evaluate a cart total.
        Args:
            cart_total (float): Cart total in rupees.
        Returns:
            SpendDecision: allowed, exceeded_hard_limit and an optional warning message.
        """
        total = _format_amount(cart_total)
        if cart_total > self.max_order_amount:
            return SpendDecision(
                allowed=False,
                exceeded_hard_limit=True,
                warning=(
                    f"Cart total ₹{total} exceeds the hard limit of ₹{_format_amount(self.max_order_amount)}. "
                    "Checkout is blocked. Remove items to proceed."
                ),
            )

        if cart_total > self.warn_threshold:
            return SpendDecision(
                allowed=True,
                exceeded_hard_limit=False,
                warning=(
                    f"Cart total ₹{total} exceeds the warning threshold of ₹{_format_amount(self.warn_threshold)}. "
                    "Please review before proceeding."
                ),
            )

        return SpendDecision(allowed=True, exceeded_hard_limit=False)
