"""
blinkit_agent/worker/location_flow.py

Delivery location and saved address flows.
"""

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from blinkit_agent.data_models.catalog import Address
from blinkit_agent.data_models.protocol import AddressesResult, LocationResult, SelectAddressResult
from blinkit_agent.exceptions import StoreUnavailableError, WorkflowError
from blinkit_agent.utils.logger import get_logger
from blinkit_agent.worker import selectors
from blinkit_agent.worker.page_utils import (
    DebugTracer,
    inner_text_or,
    is_visible,
    store_unavailable_reason,
)

logger = get_logger(name=__name__)

ADDRESS_MODAL_HINT = "Address modal not open. Try checkout first, or click the location bar."


def set_location(page: Page, address_query: str, tracer: DebugTracer) -> LocationResult:
    tracer.step(page, "Opening location search")
    if not is_visible(page, selectors.LOCATION_INPUT_NAME):
        bar = page.locator(selectors.LOCATION_BAR)
        if bar.count() > 0:
            bar.first.click()
            page.wait_for_timeout(1000)

    location_input = page.locator(selectors.LOCATION_INPUT)
    if location_input.count() == 0:
        raise WorkflowError("Location input not found.")

    tracer.step(page, f"Typing location: '{address_query}'")
    location_input.first.fill(address_query)
    page.wait_for_timeout(1000)

    results = page.locator(selectors.LOCATION_SEARCH_RESULT)
    try:
        results.first.wait_for(state="visible", timeout=10_000)
    except PlaywrightError as e:
        raise WorkflowError(f"No location matches for '{address_query}'.") from e
    results.first.click()
    page.wait_for_timeout(2000)

    warning = None
    if is_visible(page, selectors.CURRENTLY_UNAVAILABLE):
        warning = "Store is currently unavailable at this location."
        logger.warning(warning)
    return LocationResult(location_set=True, warning=warning)


def get_addresses(page: Page, tracer: DebugTracer) -> AddressesResult:
    """Read saved addresses from the open address picker. The first one is the default."""
    reason = store_unavailable_reason(page)
    if reason:
        raise StoreUnavailableError(reason)

    if not is_visible(page, selectors.SELECT_DELIVERY_ADDRESS):
        return AddressesResult(hint=ADDRESS_MODAL_HINT)

    tracer.step(page, "Reading saved addresses")
    addresses = []
    for i, item in enumerate(page.locator(selectors.ADDRESS_ITEM).all()):
        label = inner_text_or(item.locator(selectors.ADDRESS_LABEL).first).strip()
        details = inner_text_or(item.locator(selectors.ADDRESS_DETAILS).last).strip()
        addresses.append(Address(index=i, label=label or f"Address {i + 1}", address_line=details, is_default=i == 0))
    return AddressesResult(addresses=addresses)


def select_address(page: Page, index: int, tracer: DebugTracer) -> SelectAddressResult:
    items = page.locator(selectors.ADDRESS_ITEM)
    count = items.count()
    if index < 0 or index >= count:
        raise WorkflowError(
            f"Address index {index} out of range ({count} addresses).",
            next_action="Call get_addresses to list valid indices.",
        )
    tracer.step(page, f"Selecting address {index}")
    items.nth(index).click()
    page.wait_for_timeout(2000)
    return SelectAddressResult(selected=True)
