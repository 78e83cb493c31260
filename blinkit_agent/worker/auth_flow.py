"""
blinkit_agent/worker/auth_flow.py

Phone and OTP login flow.
"""

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from blinkit_agent.constants import BLINKIT_BASE_URL
from blinkit_agent.data_models.protocol import LoginStatusResult, MessageResult
from blinkit_agent.exceptions import WorkflowError
from blinkit_agent.utils.logger import get_logger
from blinkit_agent.worker import selectors
from blinkit_agent.worker.page_utils import DebugTracer, is_logged_in, is_visible

logger = get_logger(name=__name__)


def _open_login(page: Page) -> None:
    if is_visible(page, selectors.LOGIN_BUTTON):
        page.click(selectors.LOGIN_BUTTON)
        return
    profile = page.locator(selectors.PROFILE_BUTTON_CONTAINER)
    if profile.count() > 0:
        profile.first.click()
        return
    raise WorkflowError("Login button not found.", next_action="Check whether you are already logged in.")


def _submit_phone(page: Page) -> None:
    for selector in (selectors.NEXT_BUTTON, selectors.CONTINUE_BUTTON):
        if is_visible(page, selector):
            page.click(selector)
            return
    page.keyboard.press("Enter")


def login(page: Page, phone_number: str, tracer: DebugTracer) -> MessageResult:
    """Open the login modal and submit ``phone_number`` so the site sends an OTP."""
    if "blinkit.com" not in page.url:
        page.goto(BLINKIT_BASE_URL, wait_until="domcontentloaded", timeout=60_000)
    page.wait_for_timeout(1000)

    tracer.step(page, "Opening login")
    _open_login(page)

    try:
        phone_input = page.wait_for_selector(selectors.PHONE_INPUT, state="visible", timeout=30_000)
    except PlaywrightTimeoutError as e:
        raise WorkflowError("Phone number input did not appear.") from e
    if phone_input is None:
        raise WorkflowError("Phone number input did not appear.")

    tracer.step(page, "Entering phone number")
    phone_input.fill(phone_number)
    page.wait_for_timeout(500)
    _submit_phone(page)
    page.wait_for_timeout(1000)
    logger.info("Phone number submitted, waiting for OTP")
    return MessageResult(message="OTP sent")


def enter_otp(page: Page, otp: str, tracer: DebugTracer) -> LoginStatusResult:
    """
    Fill the OTP into either a row of single-digit inputs or a single OTP field,
    then wait for the page to settle and report whether login succeeded.
    """
    tracer.step(page, "Entering OTP")
    inputs = page.locator(selectors.OTP_INPUT_GENERIC)
    if inputs.count() >= 4:
        numeric = page.locator(selectors.OTP_INPUT_NUMERIC)
        boxes = numeric if numeric.count() >= 4 else inputs
        for i, digit in enumerate(otp):
            if i >= boxes.count():
                break
            boxes.nth(i).fill(digit)
            page.wait_for_timeout(100)
    else:
        named = page.locator(selectors.OTP_INPUT_NAMED)
        if named.count() == 0:
            raise WorkflowError("OTP input not found.", next_action="Request a new OTP with login.")
        named.first.fill(otp)

    page.keyboard.press("Enter")
    page.wait_for_timeout(5000)
    try:
        page.wait_for_load_state("networkidle", timeout=15_000)
    except PlaywrightError as e:
        logger.debug("Page did not reach network idle after OTP: %s", e)

    logged_in = is_logged_in(page)
    logger.info("Login %s after OTP", "confirmed" if logged_in else "not confirmed")
    return LoginStatusResult(logged_in=logged_in)
