"""
blinkit_agent/worker/cart_flow.py

Cart flows. Items are addressed by their product card on the current page;
the orchestrator makes sure the card is rendered before calling these.
"""

import re

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from blinkit_agent.constants import CLEAR_CART_MAX_CLICKS
from blinkit_agent.data_models.catalog import CartSnapshot
from blinkit_agent.data_models.protocol import (
    AddToCartResult,
    ClearCartResult,
    RemoveFromCartResult,
    UpdateCartResult,
)
from blinkit_agent.exceptions import StoreUnavailableError, WorkflowError
from blinkit_agent.utils.logger import get_logger
from blinkit_agent.worker import selectors
from blinkit_agent.worker.page_utils import (
    DebugTracer,
    inner_text_or,
    is_visible,
    locator_visible,
    store_unavailable_reason,
)
from blinkit_agent.worker.parsers import parse_price

logger = get_logger(name=__name__)

_TOTAL_PATTERN = re.compile(r"(?:Grand Total|Total|To Pay)[^\d₹]*[₹]?\s*([\d,.]+)", re.IGNORECASE)


# Private functions _______________________________________________________________________________

def _card(page: Page, item_id: str) -> Locator:
    card = page.locator(selectors.product_by_id(item_id))
    if card.count() == 0:
        raise WorkflowError(f"Product {item_id} not found on current page.")
    return card.first


def _plus_button(card: Locator) -> Locator:
    plus = card.locator(selectors.ICON_PLUS)
    if plus.count() > 0:
        return plus.first.locator("..")
    return card.locator("text='+'").first


def _minus_button(card: Locator) -> Locator | None:
    minus = card.locator(selectors.ICON_MINUS)
    if minus.count() > 0:
        return minus.first.locator("..")
    fallback = card.locator("text='-'")
    if fallback.count() > 0:
        return fallback.first
    return None


def _quantity_limit_hit(page: Page) -> bool:
    return locator_visible(page.get_by_text(selectors.QUANTITY_LIMIT_TEXT), timeout_ms=1000)


def _raise_if_unavailable(page: Page) -> None:
    reason = store_unavailable_reason(page)
    if reason:
        raise StoreUnavailableError(reason)


def _open_cart(page: Page) -> None:
    cart_button = page.locator(selectors.CART_BUTTON)
    if cart_button.count() > 0:
        cart_button.first.click()
        page.wait_for_timeout(2000)


def _cart_text(page: Page) -> str:
    drawer = page.locator(selectors.CART_DRAWER).first
    if drawer.count() > 0:
        return inner_text_or(drawer)
    return inner_text_or(page.locator("body"))


def _decrement_to_zero(page: Page, card: Locator, max_clicks: int) -> int:
    """Click minus until the card shows ADD again. Returns the number of clicks."""
    clicks = 0
    while clicks < max_clicks:
        if card.locator("text='ADD'").count() > 0:
            break
        minus = _minus_button(card)
        if minus is None:
            break
        minus.click()
        clicks += 1
        page.wait_for_timeout(300)
    return clicks


# Exports _________________________________________________________________________________________

def add_to_cart(page: Page, item_id: str, quantity: int, tracer: DebugTracer) -> AddToCartResult:
    """
    Press ADD once, then plus for each further unit. Stops early when the site
    reports the per-item quantity limit.
    """
    if quantity < 1:
        raise WorkflowError("Quantity must be at least 1.")
    _raise_if_unavailable(page)
    card = _card(page, item_id)
    tracer.highlight(page, selectors.product_by_id(item_id), "green")

    added = 0
    for i in range(quantity):
        if i == 0:
            add_button = card.locator("text='ADD'")
            if add_button.count() > 0:
                tracer.step(page, "Clicking ADD")
                add_button.first.click()
            else:
                tracer.step(page, "Item already in cart, clicking +")
                _plus_button(card).click()
        else:
            page.wait_for_timeout(500)
            _plus_button(card).click()
        added += 1

        if _quantity_limit_hit(page):
            logger.warning("Quantity limit reached for %s after %d", item_id, added)
            return AddToCartResult(added=True, quantity=added, limit_reached=True)

    page.wait_for_timeout(1000)
    _raise_if_unavailable(page)
    return AddToCartResult(added=True, quantity=added)


def remove_from_cart(page: Page, item_id: str, quantity: int, tracer: DebugTracer) -> RemoveFromCartResult:
    card = _card(page, item_id)
    if _minus_button(card) is None:
        raise WorkflowError(f"Item {item_id} is not in the cart.")

    tracer.step(page, f"Removing {quantity} of {item_id}")
    for _ in range(quantity):
        minus = _minus_button(card)
        if minus is None:
            break
        minus.click()
        page.wait_for_timeout(300)
        if card.locator("text='ADD'").count() > 0:
            break
    return RemoveFromCartResult(removed=True)


def update_cart_item(page: Page, item_id: str, quantity: int, tracer: DebugTracer) -> UpdateCartResult:
    """Set the item's quantity by emptying it and adding ``quantity`` units."""
    card = _card(page, item_id)
    _decrement_to_zero(page, card, CLEAR_CART_MAX_CLICKS)
    if quantity > 0:
        result = add_to_cart(page, item_id, quantity, tracer)
        if result.limit_reached:
            logger.warning("Set %s to %d instead of %d: quantity limit", item_id, result.quantity, quantity)
    return UpdateCartResult(updated=True)


def clear_cart(page: Page, tracer: DebugTracer) -> ClearCartResult:
    """Open the cart and press minus until no line items remain."""
    tracer.step(page, "Opening cart to clear it")
    _open_cart(page)
    drawer = page.locator(selectors.CART_DRAWER).first
    scope = drawer if drawer.count() > 0 else page.locator("body")

    clicks = 0
    while clicks < CLEAR_CART_MAX_CLICKS:
        minus = scope.locator(selectors.ICON_MINUS)
        if minus.count() == 0:
            break
        try:
            minus.first.locator("..").click(timeout=3000)
        except PlaywrightError as e:
            logger.debug("Minus click failed while clearing cart: %s", e)
            break
        clicks += 1
        page.wait_for_timeout(300)
    logger.info("Cleared cart with %d clicks", clicks)
    return ClearCartResult(items_removed=clicks)


def get_cart(page: Page, tracer: DebugTracer) -> CartSnapshot:
    """
    Open the cart drawer and read its total.

    Raises:
        StoreUnavailableError: When the store cannot take orders.
    """
    tracer.step(page, "Opening cart")
    _open_cart(page)
    _raise_if_unavailable(page)

    text = _cart_text(page)
    active = (
        is_visible(page, selectors.BILL_DETAILS_REGEX)
        or is_visible(page, selectors.PROCEED_HAS_TEXT)
        or is_visible(page, selectors.ORDERING_FOR)
        or "₹" in text
    )
    if not active:
        return CartSnapshot(warning="Cart is empty.")

    match = _TOTAL_PATTERN.search(text)
    total = parse_price(match.group(1)) if match else 0.0
    drawer = page.locator(selectors.CART_DRAWER).first
    item_count = drawer.locator(selectors.ICON_MINUS).count() if drawer.count() > 0 else 0
    return CartSnapshot(total=total, subtotal=total, item_count=item_count, raw_cart_text=text)
