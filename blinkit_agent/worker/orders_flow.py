"""
blinkit_agent/worker/orders_flow.py

Order history and tracking.
"""

from playwright.sync_api import Page

from blinkit_agent.constants import ORDERS_URL, TRACKING_TEXT_MAX_CHARS, order_page_url
from blinkit_agent.data_models.catalog import OrderSummary, OrderTracking
from blinkit_agent.data_models.protocol import OrdersResult
from blinkit_agent.exceptions import WorkflowError
from blinkit_agent.worker import selectors
from blinkit_agent.worker.page_utils import inner_text_or


def get_orders(page: Page, limit: int) -> OrdersResult:
    page.goto(ORDERS_URL, wait_until="domcontentloaded", timeout=60_000)
    page.wait_for_timeout(3000)

    orders = []
    for i, card in enumerate(page.locator(selectors.ORDER_CARD).all()[:limit]):
        text = inner_text_or(card).strip()
        if text:
            orders.append(OrderSummary(order_id=f"order-{i}", text=text))
    return OrdersResult(orders=orders)


def track_order(page: Page, order_id: str | None) -> OrderTracking:
    """Open an order page, or the most recent order when no id is given, and return its text."""
    if order_id:
        page.goto(order_page_url(order_id), wait_until="domcontentloaded", timeout=60_000)
    else:
        page.goto(ORDERS_URL, wait_until="domcontentloaded", timeout=60_000)
        page.wait_for_timeout(3000)
        cards = page.locator(selectors.ORDER_CARD)
        if cards.count() == 0:
            raise WorkflowError("No orders found.")
        cards.first.click()
    page.wait_for_timeout(3000)

    text = inner_text_or(page.locator("body"))[:TRACKING_TEXT_MAX_CHARS]
    status = next((line.strip() for line in text.splitlines() if line.strip()), "unknown")
    return OrderTracking(order_id=order_id or "latest", status=status, page_text=text)
