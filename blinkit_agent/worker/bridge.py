"""
blinkit_agent/worker/bridge.py

The worker process: owns the Playwright browser and serves the line protocol.

Reads one JSON command per line from stdin and writes exactly one JSON
response per line to stdout, in the order the commands arrive. Diagnostics go
to stderr only. Browser storage state is saved on login, on close, at end of
input and on SIGTERM.
"""

import json
import signal
import sys
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, Response, sync_playwright
from playwright.sync_api import Error as PlaywrightError
from pydantic import BaseModel, ValidationError

from blinkit_agent.constants import (
    BLINKIT_BASE_URL,
    BROWSER_USER_AGENT,
    BROWSER_VIEWPORT,
    CRITICAL_ERROR_PREFIX,
    PAYMENT_NAVIGATION_DEADLINE,
)
from blinkit_agent.data_models.protocol import (
    AckResult,
    AliveResult,
    InitParams,
    InitResult,
    LoginStatusResult,
    ScreenshotResult,
    WorkerAction,
    WorkerCommand,
    WorkerResponse,
    command_adapter,
)
from blinkit_agent.exceptions import BlinkitError, StoreUnavailableError, WorkflowError
from blinkit_agent.utils.logger import get_logger
from blinkit_agent.worker import auth_flow, cart_flow, checkout_flow, location_flow, orders_flow, search_flow
from blinkit_agent.worker import selectors
from blinkit_agent.worker.page_utils import DebugTracer, is_logged_in, store_unavailable_reason

logger = get_logger(name=__name__)

Handler = Callable[[Any], BaseModel]

_PAYMENT_URL_MARKERS = ("zpaykit", "payment")


class WorkerBridge:
    """
    Dispatches protocol commands to the browser flows.

    Every handler returns a result model; any raised error becomes a
    ``success: false`` response. Store availability problems are reported
    with the ``CRITICAL: `` prefix so the orchestrator can tell them apart.
    """

    def __init__(self, output: TextIO) -> None:
        self._output = output
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._params = InitParams()
        self._tracer = DebugTracer()
        self._shut_down = False

        self._handlers: dict[WorkerAction, Handler] = {
            WorkerAction.INIT: self._init,
            WorkerAction.IS_ALIVE: lambda _: AliveResult(alive=True),
            WorkerAction.IS_LOGGED_IN: lambda _: LoginStatusResult(logged_in=is_logged_in(self.page)),
            WorkerAction.SAVE_SESSION: self._save_session,
            WorkerAction.LOGIN: lambda p: auth_flow.login(self.page, p.phone_number, self._tracer),
            WorkerAction.ENTER_OTP: self._enter_otp,
            WorkerAction.SEARCH_INTERCEPT: lambda p: search_flow.intercept_search(self.page, p.query, p.limit, self._tracer),
            WorkerAction.SCRAPE_RESULTS: lambda p: search_flow.scrape_results(self.page, p.limit, self._tracer),
            WorkerAction.SEARCH_VIA_UI: lambda p: search_flow.search_via_ui(self.page, p.query, self._tracer),
            WorkerAction.LOCATE_ITEM: lambda p: search_flow.locate_item(self.page, p.item_id),
            WorkerAction.GET_PRODUCT_DETAILS: lambda p: search_flow.get_product_details(self.page, p.item_id),
            WorkerAction.BROWSE_CATEGORIES: lambda _: search_flow.browse_categories(self.page),
            WorkerAction.BROWSE_CATEGORY: lambda p: search_flow.browse_category(self.page, p.category_id, p.limit),
            WorkerAction.ADD_TO_CART: lambda p: cart_flow.add_to_cart(self.page, p.item_id, p.quantity, self._tracer),
            WorkerAction.UPDATE_CART_ITEM: lambda p: cart_flow.update_cart_item(self.page, p.item_id, p.quantity, self._tracer),
            WorkerAction.REMOVE_FROM_CART: lambda p: cart_flow.remove_from_cart(self.page, p.item_id, p.quantity, self._tracer),
            WorkerAction.CLEAR_CART: lambda _: cart_flow.clear_cart(self.page, self._tracer),
            WorkerAction.GET_CART: lambda _: cart_flow.get_cart(self.page, self._tracer),
            WorkerAction.SET_LOCATION: lambda p: location_flow.set_location(self.page, p.address_query, self._tracer),
            WorkerAction.GET_ADDRESSES: lambda _: location_flow.get_addresses(self.page, self._tracer),
            WorkerAction.SELECT_ADDRESS: lambda p: location_flow.select_address(self.page, p.index, self._tracer),
            WorkerAction.CHECKOUT: lambda _: checkout_flow.checkout(self.page, self._tracer),
            WorkerAction.NAVIGATE_TO_PAYMENT: lambda p: checkout_flow.navigate_to_payment(self.page, p.deadline_seconds, self._tracer),
            WorkerAction.GET_UPI_IDS: lambda _: checkout_flow.get_upi_ids(self.page, PAYMENT_NAVIGATION_DEADLINE, self._tracer),
            WorkerAction.SELECT_UPI_ID: lambda p: checkout_flow.select_upi_id(self.page, p.upi_id, self._tracer),
            WorkerAction.PAY_NOW: lambda _: checkout_flow.pay_now(self.page, self._tracer),
            WorkerAction.GET_ORDERS: lambda p: orders_flow.get_orders(self.page, p.limit),
            WorkerAction.TRACK_ORDER: lambda p: orders_flow.track_order(self.page, p.order_id),
            WorkerAction.SCREENSHOT: self._screenshot,
            WorkerAction.CLOSE: self._close,
        }

    @property
    def page(self) -> Page:
        """The active page; reopened if the previous one was closed."""
        if self._context is None or self._page is None:
            raise WorkflowError("Browser not initialized. Send 'init' command first.")
        if self._page.is_closed():
            logger.warning("Page was closed, opening a new one")
            self._page = self._context.new_page()
        return self._page

    # Protocol ____________________________________________________________________________________

    def run(self, lines: TextIO) -> None:
        """Serve commands until end of input, then shut down."""
        signal.signal(signal.SIGTERM, self._on_sigterm)
        logger.info("Worker started, waiting for commands")
        try:
            for line in lines:
                line = line.strip()
                if not line:
                    continue
                response = self.handle_line(line)
                if response is not None:
                    self._write(response)
            logger.info("Input closed, shutting down")
        finally:
            self.shutdown()

    def handle_line(self, line: str) -> WorkerResponse | None:
        """
        Turn one input line into a response. Lines that are not JSON objects
        with a string id cannot be answered and yield None.
        """
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            logger.error("Failed to parse command: %s", line[:200])
            return None
        if not isinstance(payload, dict) or not isinstance(payload.get("id"), str):
            logger.error("Command without an id: %s", line[:200])
            return None

        command_id = payload["id"]
        action = payload.get("action")
        if action not in {a.value for a in WorkerAction}:
            return WorkerResponse(id=command_id, success=False, error=f"Unknown action: {action}")
        try:
            command = command_adapter.validate_python(payload)
        except ValidationError as e:
            return WorkerResponse(id=command_id, success=False, error=f"Invalid params for '{action}': {e}")
        return self.handle(command)

    def handle(self, command: WorkerCommand) -> WorkerResponse:
        action = WorkerAction(command.action)
        handler = self._handlers[action]
        logger.debug("Handling %s (%s)", action, command.id)
        params = getattr(command, "params", None)
        try:
            result = handler(params)
        except StoreUnavailableError as e:
            logger.warning("%s failed, store unavailable: %s", action, e.message)
            return WorkerResponse(id=command.id, success=False, error=f"{CRITICAL_ERROR_PREFIX}{e.message}")
        except BlinkitError as e:
            logger.warning("%s failed: %s", action, e)
            return WorkerResponse(id=command.id, success=False, error=str(e))
        except PlaywrightError as e:
            logger.warning("%s failed in browser: %s", action, e.message)
            return WorkerResponse(id=command.id, success=False, error=e.message.splitlines()[0] if e.message else str(e))
        return WorkerResponse(id=command.id, success=True, data=result.model_dump(mode="json"))

    def _write(self, response: WorkerResponse) -> None:
        self._output.write(response.model_dump_json(exclude_none=True) + "\n")
        self._output.flush()

    # Handlers ____________________________________________________________________________________

    def _init(self, params: InitParams) -> InitResult:
        if self._page is not None:
            logger.info("Browser already initialized")
            return InitResult(store_warning=store_unavailable_reason(self._page))

        self._params = params
        self._tracer = DebugTracer(enabled=params.debug)
        self._shut_down = False
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.firefox.launch(headless=params.headless, slow_mo=params.slow_mo)

        options: dict[str, Any] = {
            "user_agent": BROWSER_USER_AGENT,
            "viewport": BROWSER_VIEWPORT,
            "locale": "en-IN",
            "timezone_id": "Asia/Kolkata",
            "permissions": ["geolocation"],
            "geolocation": {"latitude": params.lat, "longitude": params.lon},
        }
        state_path = Path(params.storage_state_path) if params.storage_state_path else None
        restored = False
        if state_path is not None and state_path.exists():
            try:
                self._context = self._browser.new_context(storage_state=str(state_path), **options)
                restored = True
                logger.info("Restored browser storage state from %s", state_path)
            except PlaywrightError as e:
                logger.warning("Could not restore storage state, starting fresh: %s", e.message)
        if self._context is None:
            self._context = self._browser.new_context(**options)

        self._context.on("response", self._watch_payment_response)
        self._page = self._context.new_page()
        self._page.goto(BLINKIT_BASE_URL, wait_until="domcontentloaded", timeout=60_000)
        self._page.wait_for_timeout(2000)
        self._dismiss_location_prompt()

        store_warning = store_unavailable_reason(self._page)
        if store_warning:
            logger.warning("Store status on load: %s", store_warning)
        return InitResult(store_warning=store_warning, restored_session=restored)

    def _dismiss_location_prompt(self) -> None:
        detect = self.page.locator("button").filter(has_text=selectors.DETECT_MY_LOCATION)
        try:
            if detect.count() > 0 and detect.first.is_visible():
                detect.first.click(timeout=3000)
                self.page.wait_for_timeout(1000)
        except PlaywrightError as e:
            logger.debug("Location prompt not dismissed: %s", e.message)

    def _watch_payment_response(self, response: Response) -> None:
        if response.status < 400:
            return
        if any(marker in response.url for marker in _PAYMENT_URL_MARKERS):
            logger.warning("Payment API returned %d: %s", response.status, response.url)

    def _save_session(self, _: Any = None) -> AckResult:
        self.save_storage_state()
        return AckResult()

    def _enter_otp(self, params: Any) -> LoginStatusResult:
        result = auth_flow.enter_otp(self.page, params.otp, self._tracer)
        if result.logged_in:
            self.save_storage_state()
        return result

    def _screenshot(self, params: Any) -> ScreenshotResult:
        directory = Path(self._params.screenshot_dir) if self._params.screenshot_dir else Path.cwd()
        directory.mkdir(parents=True, exist_ok=True)
        label = "".join(c if c.isalnum() or c in "-_" else "_" for c in params.label)
        path = directory / f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{label}.png"
        self.page.screenshot(path=str(path), full_page=True)
        logger.info("Saved screenshot to %s", path)
        return ScreenshotResult(path=str(path))

    def _close(self, _: Any = None) -> AckResult:
        self.shutdown()
        return AckResult()

    # Lifecycle ___________________________________________________________________________________

    def save_storage_state(self) -> None:
        if self._context is None or not self._params.storage_state_path:
            return
        path = Path(self._params.storage_state_path)
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        self._context.storage_state(path=str(path))
        logger.info("Saved browser storage state to %s", path)

    def shutdown(self) -> None:
        """Save storage state and release the browser. Safe to call more than once."""
        if self._shut_down:
            return
        self._shut_down = True
        try:
            self.save_storage_state()
        except PlaywrightError as e:
            logger.warning("Could not save storage state: %s", e.message)
        for closer in (self._context, self._browser):
            if closer is None:
                continue
            try:
                closer.close()
            except PlaywrightError as e:
                logger.debug("Close failed: %s", e.message)
        if self._playwright is not None:
            self._playwright.stop()
        self._page = self._context = self._browser = self._playwright = None

    def _on_sigterm(self, signum: int, frame: Any) -> None:
        logger.info("Received SIGTERM, shutting down")
        raise SystemExit(0)


def main() -> None:
    """Entry point for the worker process."""
    protocol_out = sys.stdout
    # anything printed by libraries must not corrupt the protocol channel
    sys.stdout = sys.stderr
    WorkerBridge(output=protocol_out).run(sys.stdin)


if __name__ == "__main__":
    main()
