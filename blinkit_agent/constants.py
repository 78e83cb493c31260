"""
blinkit_agent/constants.py

Fixed URLs, limits, timeouts and file names shared by the orchestrator and the worker.
"""

from urllib.parse import quote

# Remote target _____________________________________________________________________________________

BLINKIT_BASE_URL = "https://blinkit.com"
SEARCH_API_PATH = "/v1/layout/search"
ORDERS_URL = f"{BLINKIT_BASE_URL}/orders"

ENDPOINT_SEARCH = f"{BLINKIT_BASE_URL}{SEARCH_API_PATH}"
ENDPOINT_CATEGORIES = f"{BLINKIT_BASE_URL}/v2/categories"


def search_page_url(query: str) -> str:
    """URL of the rendered search results page for a query."""
    return f"{BLINKIT_BASE_URL}/s/?q={quote(query, safe='')}"


def product_page_url(product_id: str) -> str:
    """URL of a product details page."""
    return f"{BLINKIT_BASE_URL}/prn/product/prid/{product_id}"


def category_page_url(category_id: str) -> str:
    """URL of a category listing page."""
    return f"{BLINKIT_BASE_URL}/cn/{category_id}"


def order_page_url(order_id: str) -> str:
    """URL of a single order's tracking page."""
    return f"{BLINKIT_BASE_URL}/order/{order_id}"


def product_details_endpoint(product_id: str) -> str:
    return f"{BLINKIT_BASE_URL}/v1/layout/product/{product_id}"


def category_products_endpoint(category_id: str) -> str:
    return f"{BLINKIT_BASE_URL}/v6/category/products/{category_id}"


DEFAULT_HEADERS: dict[str, str] = {
    "app_client": "consumer_web",
    "Content-Type": "application/json",
    "Accept": "application/json",
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
}

BROWSER_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:120.0) Gecko/20100101 Firefox/120.0"
BROWSER_VIEWPORT: dict[str, int] = {"width": 1280, "height": 800}

# Rate limiting _____________________________________________________________________________________

RATE_LIMIT_BUCKET_CAPACITY = 5
RATE_LIMIT_REFILL_RATE = 2.0  # tokens per second
RATE_LIMIT_MIN_INTERVAL_MS = 200

# Timeouts (seconds) ________________________________________________________________________________

WORKER_COMMAND_TIMEOUT = 60.0
WORKER_STARTUP_TIMEOUT = 10.0
WORKER_PROBE_TIMEOUT = 5.0
WORKER_CLOSE_TIMEOUT = 15.0
HTTP_REQUEST_TIMEOUT = 15.0
SEARCH_INTERCEPT_TIMEOUT = 15.0
GEO_LOOKUP_TIMEOUT = 3.0

# navigation deadlines for reaching the payment screen
CHECKOUT_NAVIGATION_DEADLINE = 10.0
PAYMENT_NAVIGATION_DEADLINE = 15.0

# Defaults __________________________________________________________________________________________

DEFAULT_LAT = 28.6139
DEFAULT_LON = 77.209
DEFAULT_SEARCH_LIMIT = 10
DEFAULT_CATEGORY_LIMIT = 20
DEFAULT_ORDER_LIMIT = 5
CLEAR_CART_MAX_CLICKS = 100
TRACKING_TEXT_MAX_CHARS = 2000

GEO_LOOKUP_URL = "http://ip-api.com/json/"

# Files _____________________________________________________________________________________________

DEFAULT_DATA_DIR = ".blinkit-mcp"
AUTH_FILE = "auth.json"
COOKIES_DIR = "cookies"
STORAGE_STATE_FILE = "auth.json"
CONFIG_FILE = "config.json"
SCREENSHOTS_DIR = "debug-screenshots"

# prefix the worker puts on availability failures so the orchestrator can classify them
CRITICAL_ERROR_PREFIX = "CRITICAL: "
