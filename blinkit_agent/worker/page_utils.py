"""
blinkit_agent/worker/page_utils.py

Small Playwright helpers shared by the worker flows: visibility checks,
store availability and login probes, and debug tracing.
"""

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from blinkit_agent.worker import selectors
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


def is_visible(page: Page, selector: str) -> bool:
    """Visibility check that treats selector and detach errors as not visible."""
    try:
        return page.is_visible(selector)
    except PlaywrightError:
        return False


def locator_visible(locator: Locator, timeout_ms: float | None = None) -> bool:
    try:
        if timeout_ms is None:
            return locator.is_visible()
        return locator.is_visible(timeout=timeout_ms)
    except PlaywrightError:
        return False


def inner_text_or(locator: Locator, default: str = "") -> str:
    try:
        return locator.inner_text()
    except PlaywrightError:
        return default


def attribute_or_none(locator: Locator, name: str) -> str | None:
    try:
        return locator.get_attribute(name)
    except PlaywrightError:
        return None


def store_unavailable_reason(page: Page) -> str | None:
    """Human-readable availability problem shown on the page, or None when the store is open."""
    for selector, message in selectors.STORE_STATUS_MESSAGES:
        if is_visible(page, selector):
            return message
    return None


def is_logged_in(page: Page) -> bool:
    """
    Positive markers only: account link, profile element or profile button.
    Anything else, including a blocking overlay, counts as logged out.
    """
    if is_visible(page, selectors.MY_ACCOUNT):
        return True
    if is_visible(page, selectors.USER_PROFILE):
        return True
    return locator_visible(page.locator(selectors.PROFILE_BUTTON).first, timeout_ms=1000)


class DebugTracer:
    """Outlines elements and pauses at labelled steps when debug mode is on."""

    def __init__(self, enabled: bool = False, pause_ms: int = 800) -> None:
        self.enabled = enabled
        self.pause_ms = pause_ms

    def step(self, page: Page, label: str) -> None:
        if not self.enabled:
            return
        logger.info("[DEBUG] %s", label)
        page.wait_for_timeout(self.pause_ms)

    def highlight(self, page: Page, selector: str, color: str = "red") -> None:
        if not self.enabled:
            return
        try:
            page.evaluate(
                "([sel, col]) => { const el = document.querySelector(sel); if (el) el.style.outline = `3px solid ${col}`; }",
                [selector, color],
            )
        except PlaywrightError as e:
            logger.debug("Highlight of %s failed: %s", selector, e)
