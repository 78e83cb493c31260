"""
blinkit_agent/worker/search_flow.py

Search and catalogue flows: direct search with API interception, rendered-card
scraping, the on-screen search control, and product/category pages.
"""

import re

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, Response
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from blinkit_agent.constants import (
    BLINKIT_BASE_URL,
    SEARCH_API_PATH,
    SEARCH_INTERCEPT_TIMEOUT,
    category_page_url,
    product_page_url,
    search_page_url,
)
from blinkit_agent.data_models.catalog import Category, ProductDetails
from blinkit_agent.data_models.protocol import (
    CategoriesResult,
    InterceptResult,
    LocateResult,
    ProductListResult,
    ScrapeResult,
    SearchUiResult,
)
from blinkit_agent.utils.logger import get_logger
from blinkit_agent.worker import selectors
from blinkit_agent.worker.page_utils import (
    DebugTracer,
    attribute_or_none,
    is_visible,
)
from blinkit_agent.worker.parsers import (
    CARD_BATCH_PARSE_JS,
    parse_price,
    parse_search_payload,
    products_from_cards,
)

logger = get_logger(name=__name__)

_CATEGORY_HREF = re.compile(r"/cn/([^/?#]+)")


def _is_search_api_response(response: Response) -> bool:
    url = response.url
    return SEARCH_API_PATH in url and "q=" in url and response.status == 200


def no_results_visible(page: Page) -> bool:
    return is_visible(page, selectors.NO_RESULTS_FOUND) or is_visible(page, selectors.NO_RESULTS_REGEX)


def ensure_on_site(page: Page) -> None:
    if "blinkit.com" not in page.url:
        page.goto(BLINKIT_BASE_URL, wait_until="domcontentloaded", timeout=60_000)
        page.wait_for_timeout(2000)


def intercept_search(page: Page, query: str, limit: int, tracer: DebugTracer) -> InterceptResult:
    """
    Load the search page for ``query`` directly while listening for the search API response.
    """
    tracer.step(page, f"Navigating directly to search for '{query}'")
    navigated = False
    payload = None
    try:
        with page.expect_response(_is_search_api_response, timeout=SEARCH_INTERCEPT_TIMEOUT * 1000) as response_info:
            page.goto(search_page_url(query), wait_until="domcontentloaded", timeout=30_000)
            navigated = True
        payload = response_info.value.json()
    except PlaywrightTimeoutError as e:
        logger.debug("Search API response not intercepted (navigated=%s): %s", navigated, e)
    except (PlaywrightError, ValueError) as e:
        logger.debug("Direct search failed (navigated=%s): %s", navigated, e)

    items = parse_search_payload(payload, limit) if payload is not None else []
    if items:
        logger.info("Intercepted %d products for '%s'", len(items), query)
        return InterceptResult(navigated=navigated, items=items)

    no_results = navigated and no_results_visible(page)
    return InterceptResult(navigated=navigated, items=[], no_results=no_results)


def scrape_results(page: Page, limit: int, tracer: DebugTracer) -> ScrapeResult:
    """Parse rendered product cards on the current page."""
    tracer.step(page, "Extracting product data from cards")
    try:
        page.wait_for_selector(selectors.PRODUCT_CARD_ADD, timeout=10_000)
    except PlaywrightTimeoutError:
        if no_results_visible(page):
            return ScrapeResult(no_results=True)
        logger.debug("No product cards found on %s", page.url)
        return ScrapeResult()

    cards = page.evaluate(CARD_BATCH_PARSE_JS, limit)
    items = products_from_cards(cards if isinstance(cards, list) else [], limit)
    for item in items:
        if item.has_stable_id:
            tracer.highlight(page, selectors.product_by_id(item.id), "blue")
    logger.info("Scraped %d product cards", len(items))
    return ScrapeResult(items=items)


def activate_search(page: Page) -> bool:
    """Open the search control. False when no search affordance could be found."""
    for selector in (selectors.SEARCH_LINK, selectors.SEARCH_PLACEHOLDER, selectors.SEARCH_INPUT_PLACEHOLDER):
        if is_visible(page, selector):
            page.click(selector)
            return True
    try:
        page.click(selectors.SEARCH_TEXT, timeout=3000)
        return True
    except PlaywrightError:
        return False


def search_via_ui(page: Page, query: str, tracer: DebugTracer) -> SearchUiResult:
    """Type ``query`` into the on-screen search control and submit it."""
    ensure_on_site(page)
    tracer.step(page, "Activating search bar")
    if not activate_search(page):
        logger.debug("Search control not found")
        return SearchUiResult(submitted=False)

    try:
        search_input = page.wait_for_selector(selectors.SEARCH_INPUT, state="visible", timeout=15_000)
    except PlaywrightTimeoutError:
        logger.debug("Search input did not appear")
        return SearchUiResult(submitted=False)
    if search_input is None:
        return SearchUiResult(submitted=False)

    tracer.step(page, f"Typing search query: '{query}'")
    search_input.fill(query)
    page.wait_for_timeout(300)
    page.keyboard.press("Enter")

    try:
        page.wait_for_selector(selectors.PRODUCT_CARD_ADD, timeout=30_000)
    except PlaywrightTimeoutError:
        logger.debug("No product cards appeared after UI search for '%s'", query)
    page.wait_for_timeout(1000)
    return SearchUiResult(submitted=True)


def locate_item(page: Page, item_id: str) -> LocateResult:
    return LocateResult(present=page.locator(selectors.product_by_id(item_id)).count() > 0)


def _first_text(page: Page, selector: str) -> str | None:
    try:
        text = page.locator(selector).first.text_content(timeout=5000)
    except PlaywrightError:
        return None
    return text.strip() if text else None


def get_product_details(page: Page, item_id: str) -> ProductDetails:
    page.goto(product_page_url(item_id), wait_until="domcontentloaded", timeout=60_000)
    page.wait_for_timeout(2000)

    price = parse_price(_first_text(page, selectors.PRODUCT_DETAIL_PRICE))
    images = [
        src for src in (attribute_or_none(img, "src") for img in page.locator(selectors.PRODUCT_IMAGE).all())
        if src
    ]
    return ProductDetails(
        id=item_id,
        name=_first_text(page, selectors.PRODUCT_DETAIL_NAME) or "Unknown",
        price=price,
        mrp=price,
        description=_first_text(page, selectors.PRODUCT_DETAIL_DESCRIPTION),
        brand=_first_text(page, selectors.PRODUCT_DETAIL_BRAND),
        image_url=images[0] if images else "",
        images=images,
    )


def browse_categories(page: Page) -> CategoriesResult:
    page.goto(BLINKIT_BASE_URL, wait_until="domcontentloaded", timeout=60_000)
    page.wait_for_timeout(2000)

    categories: list[Category] = []
    for link in page.locator(selectors.CATEGORY_LINK).all():
        try:
            name = link.text_content()
            href = link.get_attribute("href")
        except PlaywrightError:
            continue
        match = _CATEGORY_HREF.search(href or "")
        if not name or not name.strip() or match is None:
            continue
        icon = link.locator("img").first
        categories.append(Category(
            id=match.group(1),
            name=name.strip(),
            icon_url=attribute_or_none(icon, "src") if icon.count() > 0 else None,
        ))
    return CategoriesResult(categories=categories)


def browse_category(page: Page, category_id: str, limit: int) -> ProductListResult:
    page.goto(category_page_url(category_id), wait_until="domcontentloaded", timeout=60_000)
    page.wait_for_timeout(2000)
    try:
        page.wait_for_selector(selectors.PRODUCT_CARD_ADD, timeout=15_000)
    except PlaywrightTimeoutError:
        return ProductListResult()

    cards = page.evaluate(CARD_BATCH_PARSE_JS, limit)
    return ProductListResult(items=products_from_cards(cards if isinstance(cards, list) else [], limit))
