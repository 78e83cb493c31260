"""
blinkit_agent/worker/checkout_flow.py

Checkout and payment flows: proceeding from the cart, advancing through the
intermediate screens to the payment widget, UPI selection and paying.
"""

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import FrameLocator, Locator, Page

from blinkit_agent.constants import CHECKOUT_NAVIGATION_DEADLINE
from blinkit_agent.data_models.outcomes import NavigationOutcome
from blinkit_agent.data_models.protocol import CheckoutResult, MessageResult, SelectUpiResult, UpiIdsResult
from blinkit_agent.exceptions import StoreUnavailableError, WorkflowError
from blinkit_agent.utils.logger import get_logger
from blinkit_agent.worker import selectors
from blinkit_agent.worker.navigation import ClearingAction, NavigationStateMachine
from blinkit_agent.worker.page_utils import (
    DebugTracer,
    inner_text_or,
    is_visible,
    locator_visible,
    store_unavailable_reason,
)

logger = get_logger(name=__name__)

CLEARING_CLICK_TIMEOUT_MS = 3000
UPI_WIDGET_HINT = "Payment widget not found. Run checkout until the payment screen is shown."


# Private functions _______________________________________________________________________________

def _first_visible(page: Page, candidates: tuple[str, ...]) -> Locator | None:
    for selector in candidates:
        locator = page.locator(selector).first
        if locator_visible(locator):
            return locator
    return None


def _proceed_button(page: Page) -> Locator:
    return page.locator(selectors.PROCEED_TO_PAY).last


def _close_button(page: Page) -> Locator:
    return page.locator(selectors.CLOSE_MODAL).first


def _payment_widget_present(page: Page) -> bool:
    return page.locator(selectors.PAYMENT_WIDGET).count() > 0


def _payment_frame(page: Page) -> FrameLocator:
    return page.frame_locator(selectors.PAYMENT_WIDGET)


def _raise_if_unavailable(page: Page) -> None:
    reason = store_unavailable_reason(page)
    if reason:
        raise StoreUnavailableError(reason)


def payment_navigator(page: Page, tracer: DebugTracer) -> NavigationStateMachine:
    """
    Navigator toward the payment widget. Clearing actions in priority order:
    skip optional steps such as tips, proceed to payment, dismiss overlays.
    """
    def skip_applies() -> bool:
        return _first_visible(page, selectors.SKIP_STEP) is not None

    def skip() -> None:
        target = _first_visible(page, selectors.SKIP_STEP)
        if target is not None:
            tracer.step(page, "Skipping optional step")
            target.click(timeout=CLEARING_CLICK_TIMEOUT_MS)

    def proceed() -> None:
        tracer.step(page, "Proceeding to payment")
        _proceed_button(page).click(timeout=CLEARING_CLICK_TIMEOUT_MS)

    def dismiss() -> None:
        tracer.step(page, "Dismissing overlay")
        _close_button(page).click(timeout=CLEARING_CLICK_TIMEOUT_MS)

    return NavigationStateMachine(
        target_reached=lambda: _payment_widget_present(page),
        actions=[
            ClearingAction("skip_optional_step", skip_applies, skip),
            ClearingAction("proceed_to_payment", lambda: locator_visible(_proceed_button(page)), proceed),
            ClearingAction("dismiss_overlay", lambda: locator_visible(_close_button(page)), dismiss),
        ],
        sleep=lambda seconds: page.wait_for_timeout(seconds * 1000),
    )


# Exports _________________________________________________________________________________________

def navigate_to_payment(page: Page, deadline_seconds: float, tracer: DebugTracer) -> NavigationOutcome:
    return payment_navigator(page, tracer).navigate(deadline_seconds)


def checkout(page: Page, tracer: DebugTracer) -> CheckoutResult:
    """
    Press Proceed in the cart and report which screen follows: the address
    picker, the payment widget, or (after a bounded navigation) neither.
    """
    _raise_if_unavailable(page)

    proceed = page.locator("button, div").filter(has_text="Proceed").last
    if not locator_visible(proceed):
        cart_button = page.locator(selectors.CART_BUTTON)
        if cart_button.count() > 0:
            tracer.step(page, "Opening cart")
            cart_button.first.click()
            page.wait_for_timeout(2000)
    if not locator_visible(proceed, timeout_ms=3000):
        raise WorkflowError("Proceed button not found.", next_action="Check that the cart is not empty.")

    tracer.step(page, "Clicking Proceed")
    proceed.click()
    page.wait_for_timeout(3000)
    _raise_if_unavailable(page)

    if is_visible(page, selectors.SELECT_DELIVERY_ADDRESS):
        return CheckoutResult(
            next_step="select_address",
            message="Address selection required. Use get_addresses and select_address.",
        )
    if _payment_widget_present(page):
        return CheckoutResult(next_step="payment", message="Reached payment page.")

    outcome = navigate_to_payment(page, CHECKOUT_NAVIGATION_DEADLINE, tracer)
    if outcome.reached:
        return CheckoutResult(
            next_step="payment",
            message="Reached payment page.",
            skipped_steps=list(outcome.cleared_steps),
        )
    return CheckoutResult(
        next_step="unknown",
        message="Proceeded from cart but could not confirm the next screen.",
        skipped_steps=list(outcome.cleared_steps),
    )


def get_upi_ids(page: Page, deadline_seconds: float, tracer: DebugTracer) -> UpiIdsResult:
    """List saved UPI ids shown inside the payment widget."""
    if not _payment_widget_present(page):
        navigate_to_payment(page, deadline_seconds, tracer)
    try:
        page.wait_for_selector(selectors.PAYMENT_WIDGET, timeout=20_000)
    except PlaywrightError:
        return UpiIdsResult(hint=UPI_WIDGET_HINT)
    page.wait_for_timeout(2000)

    frame = _payment_frame(page)
    upi_ids = []
    for entry in frame.locator(selectors.VPA_TEXT).all():
        text = inner_text_or(entry).strip()
        if "@" in text and text not in upi_ids:
            upi_ids.append(text)

    hint = None
    if not upi_ids and frame.locator(selectors.ADD_NEW_UPI).count() > 0:
        hint = "No saved UPI ids. Pass a new UPI id to select_upi_id."
    return UpiIdsResult(upi_ids=upi_ids, hint=hint)


def select_upi_id(page: Page, upi_id: str, tracer: DebugTracer) -> SelectUpiResult:
    """Pick a saved VPA, or enter and verify a new one."""
    if not _payment_widget_present(page):
        raise WorkflowError("Payment widget not found.", next_action="Run checkout first.")
    frame = _payment_frame(page)

    saved = frame.locator(f"text='{upi_id}'")
    if saved.count() > 0:
        tracer.step(page, f"Selecting saved UPI id {upi_id}")
        saved.first.click()
        page.wait_for_timeout(1000)
        return SelectUpiResult(selected=True)

    tracer.step(page, f"Entering new UPI id {upi_id}")
    header = frame.locator("text=/UPI/").first
    if header.count() > 0:
        header.click()
        page.wait_for_timeout(1000)
    upi_input = frame.locator(selectors.UPI_INPUT).first
    if upi_input.count() == 0:
        raise WorkflowError("UPI id input not found.")
    upi_input.fill(upi_id)
    verify = frame.locator(selectors.VERIFY_BUTTON)
    if verify.count() > 0:
        verify.first.click()
        page.wait_for_timeout(2000)
    return SelectUpiResult(selected=True)


def pay_now(page: Page, tracer: DebugTracer) -> MessageResult:
    """
    Press Pay Now. Tries the page-level button, any Pay Now element, then the
    button inside the payment widget.
    """
    tracer.step(page, "Clicking Pay Now")
    candidates = [
        page.locator(selectors.ZPAYMENTS_PAY_NOW).first,
        page.locator("div, button").filter(has_text="Pay Now").last,
    ]
    if _payment_widget_present(page):
        candidates.append(_payment_frame(page).locator(selectors.PAY_NOW_FRAME).first)

    for candidate in candidates:
        if not locator_visible(candidate):
            continue
        try:
            candidate.click(timeout=5000)
        except PlaywrightError as e:
            logger.debug("Pay Now candidate click failed: %s", e)
            continue
        logger.info("Pay Now clicked")
        return MessageResult(message="Pay Now clicked. Approve payment on your UPI app.")
    raise WorkflowError("Could not find 'Pay Now' button.", next_action="Check that a UPI id is selected.")
