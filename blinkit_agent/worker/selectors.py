"""
blinkit_agent/worker/selectors.py

CSS and text selectors for the Blinkit web UI. Update these when the site layout changes.
"""

# Auth
LOGIN_BUTTON = "text='Login'"
PROFILE_BUTTON_CONTAINER = "div[class*='ProfileButton__Container']"
PROFILE_BUTTON = "div[class*='ProfileButton'], div[class*='AccountButton'], div[class*='UserProfile']"
PHONE_INPUT = "input[type='tel'], input[name='mobile'], input[type='text']"
NEXT_BUTTON = "text='Next'"
CONTINUE_BUTTON = "text='Continue'"
OTP_INPUT_GENERIC = "input"
OTP_INPUT_NUMERIC = "input[inputmode='numeric']"
OTP_INPUT_NAMED = "input[data-test-id='otp-input'], input[name*='otp'], input[id*='otp']"
MY_ACCOUNT = "text='My Account'"
USER_PROFILE = ".user-profile"
DETECT_MY_LOCATION = "Detect my location"  # used with filter(has_text=...)

# Search
SEARCH_LINK = "a[href='/s/']"
SEARCH_PLACEHOLDER = "div[class*='SearchBar__PlaceholderContainer']"
SEARCH_INPUT_PLACEHOLDER = "input[placeholder*='Search']"
SEARCH_INPUT = "input[placeholder*='Search'], input[type='text']"
SEARCH_TEXT = "text='Search'"
PRODUCT_CARD = "div[role='button']"
PRODUCT_CARD_ADD = "div[role='button']:has-text('ADD')"
NO_RESULTS_FOUND = "text='No results found'"
NO_RESULTS_REGEX = "text=/no results/i"

# Product details and categories
PRODUCT_DETAIL_NAME = "h1, [class*='ProductName']"
PRODUCT_DETAIL_PRICE = "[class*='Price'], [class*='price']"
PRODUCT_DETAIL_DESCRIPTION = "[class*='Description'], [class*='description']"
PRODUCT_DETAIL_BRAND = "[class*='Brand'], [class*='brand']"
PRODUCT_IMAGE = "img[class*='product'], img[class*='Product']"
CATEGORY_LINK = "a[href*='/cn/']"
CARD_NAME = "div[class*='line-clamp']"

# Cart
CART_BUTTON = "div[class*='CartButton__Button'], div[class*='CartButton__Container']"
CART_DRAWER = (
    "div[class*='CartDrawer'], div[class*='CartSidebar'], div.cart-modal-rn, "
    "div[class*='CartWrapper__CartContainer']"
)
BILL_DETAILS_REGEX = "text=/Bill details/i"
PROCEED_HAS_TEXT = "button:has-text('Proceed')"
ORDERING_FOR = "text='ordering for'"
ICON_PLUS = ".icon-plus"
ICON_MINUS = ".icon-minus"
QUANTITY_LIMIT_TEXT = "Sorry, you can't add more of this item"

# Location and addresses
LOCATION_INPUT_NAME = "input[name='select-locality']"
LOCATION_INPUT = "input[name='select-locality'], input[placeholder*='search delivery location']"
LOCATION_BAR = "div[class*='LocationBar__Container']"
LOCATION_SEARCH_RESULT = "div[class*='LocationSearchBox__LocationItemContainer']"
SELECT_DELIVERY_ADDRESS = "text='Select delivery address'"
ADDRESS_ITEM = "div[class*='AddressList__AddressItemWrapper']"
ADDRESS_LABEL = "div[class*='AddressList__AddressLabel']"
ADDRESS_DETAILS = "div[class*='AddressList__AddressDetails']"

# Checkout and payment
PAYMENT_WIDGET = "#payment_widget"
PROCEED_TO_PAY = (
    "button:has-text('Proceed to Pay'), div:has-text('Proceed to Pay'), "
    "button:has-text('Proceed to Payment'), button:has-text('Continue to Payment')"
)
SKIP_STEP: tuple[str, ...] = ("text=/[Nn]o [Tt]ip/", "text=/[Ss]kip/")
CLOSE_MODAL = "button[aria-label='close'], button[aria-label='Close'], div[class*='close']"
ZPAYMENTS_PAY_NOW = "div[class*='Zpayments__Button']:has-text('Pay Now')"
PAY_NOW_FRAME = "text='Pay Now'"
VPA_TEXT = "text=/@/"
ADD_NEW_UPI = "text='Add new UPI ID'"
UPI_INPUT = "input[placeholder*='UPI'], input[type='text']"
VERIFY_BUTTON = "text='Verify'"

# Store status, in the order they are checked
STORE_STATUS_MESSAGES: tuple[tuple[str, str], ...] = (
    ("text='Store is closed'", "Store is closed."),
    ("text=\"Sorry, can't take your order\"", "Sorry, can't take your order. Store is unavailable."),
    ("text='Currently unavailable'", "Store is currently unavailable at this location."),
    ("text='High Demand'", "Store is experiencing high demand. Please try again later."),
)
STORE_UNAVAILABLE_MODAL = "text=\"Sorry, can't take your order\""
CURRENTLY_UNAVAILABLE = "text='Currently unavailable'"

# Orders
ORDER_CARD = "div[class*='OrderCard'], div[class*='order-card']"


def product_by_id(item_id: str) -> str:
    """Selector for a product card by its DOM id."""
    return f"div[id='{item_id}']"
