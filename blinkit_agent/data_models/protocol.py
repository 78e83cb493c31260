"""
blinkit_agent/data_models/protocol.py

Line-delimited JSON protocol between the orchestrator and the worker process.

Each line on the worker's stdin is a command ``{id, action, params}``; each line
on its stdout is a response ``{id, success, data?, error?}``. Commands form a
discriminated union on ``action`` so every action has exactly one params shape,
and every action maps to one result model that ``data`` is validated into.
"""

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from blinkit_agent.constants import (
    DEFAULT_CATEGORY_LIMIT,
    DEFAULT_LAT,
    DEFAULT_LON,
    DEFAULT_ORDER_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    PAYMENT_NAVIGATION_DEADLINE,
)
from blinkit_agent.data_models.catalog import (
    Address,
    CartSnapshot,
    Category,
    OrderSummary,
    OrderTracking,
    Product,
    ProductDetails,
)
from blinkit_agent.data_models.outcomes import NavigationOutcome
from blinkit_agent.exceptions import ProtocolError


class WorkerAction(StrEnum):
    """Every action the worker understands."""
    INIT = "init"
    IS_ALIVE = "isAlive"
    IS_LOGGED_IN = "isLoggedIn"
    SAVE_SESSION = "saveSession"
    LOGIN = "login"
    ENTER_OTP = "enterOtp"
    SEARCH_INTERCEPT = "searchIntercept"
    SCRAPE_RESULTS = "scrapeResults"
    SEARCH_VIA_UI = "searchViaUi"
    LOCATE_ITEM = "locateItem"
    GET_PRODUCT_DETAILS = "getProductDetails"
    BROWSE_CATEGORIES = "browseCategories"
    BROWSE_CATEGORY = "browseCategory"
    ADD_TO_CART = "addToCart"
    UPDATE_CART_ITEM = "updateCartItem"
    REMOVE_FROM_CART = "removeFromCart"
    CLEAR_CART = "clearCart"
    GET_CART = "getCart"
    SET_LOCATION = "setLocation"
    GET_ADDRESSES = "getAddresses"
    SELECT_ADDRESS = "selectAddress"
    CHECKOUT = "checkout"
    NAVIGATE_TO_PAYMENT = "navigateToPayment"
    GET_UPI_IDS = "getUpiIds"
    SELECT_UPI_ID = "selectUpiId"
    PAY_NOW = "payNow"
    GET_ORDERS = "getOrders"
    TRACK_ORDER = "trackOrder"
    SCREENSHOT = "screenshot"
    CLOSE = "close"


# Params __________________________________________________________________________________________

class EmptyParams(BaseModel):
    """Params for actions that take none."""
    pass


class InitParams(BaseModel):
    """Single configuration payload sent when the worker starts."""
    headless: bool = Field(default=True, description="Launch the browser without a window")
    debug: bool = Field(default=False, description="Outline matched elements and pause at labelled steps")
    slow_mo: int = Field(default=0, ge=0, description="Browser slow-motion delay in ms")
    lat: float = Field(default=DEFAULT_LAT, description="Geolocation latitude granted to the page")
    lon: float = Field(default=DEFAULT_LON, description="Geolocation longitude granted to the page")
    storage_state_path: str | None = Field(default=None, description="Persisted cookies/storage file to restore and save")
    screenshot_dir: str | None = Field(default=None, description="Directory for error screenshots")


class LoginParams(BaseModel):
    phone_number: str = Field(min_length=1)


class OtpParams(BaseModel):
    otp: str = Field(min_length=1)


class SearchParams(BaseModel):
    query: str = Field(min_length=1)
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, gt=0)


class LimitParams(BaseModel):
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, gt=0)


class ItemParams(BaseModel):
    item_id: str = Field(min_length=1)


class CategoryParams(BaseModel):
    category_id: str = Field(min_length=1)
    limit: int = Field(default=DEFAULT_CATEGORY_LIMIT, gt=0)


class CartItemParams(BaseModel):
    item_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=0)


class LocationParams(BaseModel):
    address_query: str = Field(min_length=1)


class AddressIndexParams(BaseModel):
    index: int = Field(default=0, ge=0)


class NavigateParams(BaseModel):
    deadline_seconds: float = Field(default=PAYMENT_NAVIGATION_DEADLINE, gt=0)


class UpiParams(BaseModel):
    upi_id: str = Field(min_length=1)


class OrdersParams(BaseModel):
    limit: int = Field(default=DEFAULT_ORDER_LIMIT, gt=0)


class TrackParams(BaseModel):
    order_id: str | None = None


class ScreenshotParams(BaseModel):
    label: str = Field(default="error", description="Short label included in the file name")


# Commands ________________________________________________________________________________________

class WorkerCommand(BaseModel):
    """Base class for all commands. ``id`` is unique among outstanding commands."""
    id: str = Field(min_length=1)
    action: str


class InitCommand(WorkerCommand):
    action: Literal["init"] = "init"
    params: InitParams = Field(default_factory=InitParams)


class IsAliveCommand(WorkerCommand):
    action: Literal["isAlive"] = "isAlive"
    params: EmptyParams = Field(default_factory=EmptyParams)


class IsLoggedInCommand(WorkerCommand):
    action: Literal["isLoggedIn"] = "isLoggedIn"
    params: EmptyParams = Field(default_factory=EmptyParams)


class SaveSessionCommand(WorkerCommand):
    action: Literal["saveSession"] = "saveSession"
    params: EmptyParams = Field(default_factory=EmptyParams)


class LoginCommand(WorkerCommand):
    action: Literal["login"] = "login"
    params: LoginParams


class EnterOtpCommand(WorkerCommand):
    action: Literal["enterOtp"] = "enterOtp"
    params: OtpParams


class SearchInterceptCommand(WorkerCommand):
    action: Literal["searchIntercept"] = "searchIntercept"
    params: SearchParams


class ScrapeResultsCommand(WorkerCommand):
    action: Literal["scrapeResults"] = "scrapeResults"
    params: LimitParams = Field(default_factory=LimitParams)


class SearchViaUiCommand(WorkerCommand):
    action: Literal["searchViaUi"] = "searchViaUi"
    params: SearchParams


class LocateItemCommand(WorkerCommand):
    action: Literal["locateItem"] = "locateItem"
    params: ItemParams


class GetProductDetailsCommand(WorkerCommand):
    action: Literal["getProductDetails"] = "getProductDetails"
    params: ItemParams


class BrowseCategoriesCommand(WorkerCommand):
    action: Literal["browseCategories"] = "browseCategories"
    params: EmptyParams = Field(default_factory=EmptyParams)


class BrowseCategoryCommand(WorkerCommand):
    action: Literal["browseCategory"] = "browseCategory"
    params: CategoryParams


class AddToCartCommand(WorkerCommand):
    action: Literal["addToCart"] = "addToCart"
    params: CartItemParams


class UpdateCartItemCommand(WorkerCommand):
    action: Literal["updateCartItem"] = "updateCartItem"
    params: CartItemParams


class RemoveFromCartCommand(WorkerCommand):
    action: Literal["removeFromCart"] = "removeFromCart"
    params: CartItemParams


class ClearCartCommand(WorkerCommand):
    action: Literal["clearCart"] = "clearCart"
    params: EmptyParams = Field(default_factory=EmptyParams)


class GetCartCommand(WorkerCommand):
    action: Literal["getCart"] = "getCart"
    params: EmptyParams = Field(default_factory=EmptyParams)


class SetLocationCommand(WorkerCommand):
    action: Literal["setLocation"] = "setLocation"
    params: LocationParams


class GetAddressesCommand(WorkerCommand):
    action: Literal["getAddresses"] = "getAddresses"
    params: EmptyParams = Field(default_factory=EmptyParams)


class SelectAddressCommand(WorkerCommand):
    action: Literal["selectAddress"] = "selectAddress"
    params: AddressIndexParams = Field(default_factory=AddressIndexParams)


class CheckoutCommand(WorkerCommand):
    action: Literal["checkout"] = "checkout"
    params: EmptyParams = Field(default_factory=EmptyParams)


class NavigateToPaymentCommand(WorkerCommand):
    action: Literal["navigateToPayment"] = "navigateToPayment"
    params: NavigateParams = Field(default_factory=NavigateParams)


class GetUpiIdsCommand(WorkerCommand):
    action: Literal["getUpiIds"] = "getUpiIds"
    params: EmptyParams = Field(default_factory=EmptyParams)


class SelectUpiIdCommand(WorkerCommand):
    action: Literal["selectUpiId"] = "selectUpiId"
    params: UpiParams


class PayNowCommand(WorkerCommand):
    action: Literal["payNow"] = "payNow"
    params: EmptyParams = Field(default_factory=EmptyParams)


class GetOrdersCommand(WorkerCommand):
    action: Literal["getOrders"] = "getOrders"
    params: OrdersParams = Field(default_factory=OrdersParams)


class TrackOrderCommand(WorkerCommand):
    action: Literal["trackOrder"] = "trackOrder"
    params: TrackParams = Field(default_factory=TrackParams)


class ScreenshotCommand(WorkerCommand):
    action: Literal["screenshot"] = "screenshot"
    params: ScreenshotParams = Field(default_factory=ScreenshotParams)


class CloseCommand(WorkerCommand):
    action: Literal["close"] = "close"
    params: EmptyParams = Field(default_factory=EmptyParams)


WorkerCommandUnion = Annotated[
    Union[
        InitCommand,
        IsAliveCommand,
        IsLoggedInCommand,
        SaveSessionCommand,
        LoginCommand,
        EnterOtpCommand,
        SearchInterceptCommand,
        ScrapeResultsCommand,
        SearchViaUiCommand,
        LocateItemCommand,
        GetProductDetailsCommand,
        BrowseCategoriesCommand,
        BrowseCategoryCommand,
        AddToCartCommand,
        UpdateCartItemCommand,
        RemoveFromCartCommand,
        ClearCartCommand,
        GetCartCommand,
        SetLocationCommand,
        GetAddressesCommand,
        SelectAddressCommand,
        CheckoutCommand,
        NavigateToPaymentCommand,
        GetUpiIdsCommand,
        SelectUpiIdCommand,
        PayNowCommand,
        GetOrdersCommand,
        TrackOrderCommand,
        ScreenshotCommand,
        CloseCommand,
    ],
    Field(discriminator="action"),
]

command_adapter: TypeAdapter[WorkerCommandUnion] = TypeAdapter(WorkerCommandUnion)


# Results _________________________________________________________________________________________

class AckResult(BaseModel):
    """Result of actions that only acknowledge."""
    pass


class InitResult(BaseModel):
    store_warning: str | None = Field(default=None, description="Availability text seen on the home page, if any")
    restored_session: bool = Field(default=False, description="Whether persisted storage state was loaded")


class AliveResult(BaseModel):
    alive: bool


class LoginStatusResult(BaseModel):
    logged_in: bool


class MessageResult(BaseModel):
    message: str


class InterceptResult(BaseModel):
    """Outcome of navigating straight to the search page while listening for the search API response."""
    navigated: bool = Field(description="Whether the search page loaded")
    items: list[Product] = Field(default_factory=list)
    no_results: bool = False


class ScrapeResult(BaseModel):
    """Items parsed from the rendered cards on the current page."""
    items: list[Product] = Field(default_factory=list)
    no_results: bool = False


class SearchUiResult(BaseModel):
    submitted: bool = Field(description="Whether the query was typed into the search control and submitted")


class LocateResult(BaseModel):
    present: bool


class CategoriesResult(BaseModel):
    categories: list[Category] = Field(default_factory=list)


class ProductListResult(BaseModel):
    items: list[Product] = Field(default_factory=list)


class AddToCartResult(BaseModel):
    added: bool
    quantity: int
    limit_reached: bool = False


class UpdateCartResult(BaseModel):
    updated: bool


class RemoveFromCartResult(BaseModel):
    removed: bool


class ClearCartResult(BaseModel):
    items_removed: int


class LocationResult(BaseModel):
    location_set: bool
    warning: str | None = None


class AddressesResult(BaseModel):
    addresses: list[Address] = Field(default_factory=list)
    hint: str | None = None


class SelectAddressResult(BaseModel):
    selected: bool


class CheckoutResult(BaseModel):
    next_step: Literal["select_address", "payment", "unknown"]
    message: str
    skipped_steps: list[str] = Field(default_factory=list)


class UpiIdsResult(BaseModel):
    upi_ids: list[str] = Field(default_factory=list)
    hint: str | None = None


class SelectUpiResult(BaseModel):
    selected: bool


class OrdersResult(BaseModel):
    orders: list[OrderSummary] = Field(default_factory=list)


class ScreenshotResult(BaseModel):
    path: str


_RESULT_MODELS: dict[WorkerAction, type[BaseModel]] = {
    WorkerAction.INIT: InitResult,
    WorkerAction.IS_ALIVE: AliveResult,
    WorkerAction.IS_LOGGED_IN: LoginStatusResult,
    WorkerAction.SAVE_SESSION: AckResult,
    WorkerAction.LOGIN: MessageResult,
    WorkerAction.ENTER_OTP: LoginStatusResult,
    WorkerAction.SEARCH_INTERCEPT: InterceptResult,
    WorkerAction.SCRAPE_RESULTS: ScrapeResult,
    WorkerAction.SEARCH_VIA_UI: SearchUiResult,
    WorkerAction.LOCATE_ITEM: LocateResult,
    WorkerAction.GET_PRODUCT_DETAILS: ProductDetails,
    WorkerAction.BROWSE_CATEGORIES: CategoriesResult,
    WorkerAction.BROWSE_CATEGORY: ProductListResult,
    WorkerAction.ADD_TO_CART: AddToCartResult,
    WorkerAction.UPDATE_CART_ITEM: UpdateCartResult,
    WorkerAction.REMOVE_FROM_CART: RemoveFromCartResult,
    WorkerAction.CLEAR_CART: ClearCartResult,
    WorkerAction.GET_CART: CartSnapshot,
    WorkerAction.SET_LOCATION: LocationResult,
    WorkerAction.GET_ADDRESSES: AddressesResult,
    WorkerAction.SELECT_ADDRESS: SelectAddressResult,
    WorkerAction.CHECKOUT: CheckoutResult,
    WorkerAction.NAVIGATE_TO_PAYMENT: NavigationOutcome,
    WorkerAction.GET_UPI_IDS: UpiIdsResult,
    WorkerAction.SELECT_UPI_ID: SelectUpiResult,
    WorkerAction.PAY_NOW: MessageResult,
    WorkerAction.GET_ORDERS: OrdersResult,
    WorkerAction.TRACK_ORDER: OrderTracking,
    WorkerAction.SCREENSHOT: ScreenshotResult,
    WorkerAction.CLOSE: AckResult,
}


class WorkerResponse(BaseModel):
    """A response line. ``id`` always equals the originating command's id."""
    id: str
    success: bool
    data: Any = None
    error: str | None = None


# Exports _________________________________________________________________________________________

def result_model_for(action: WorkerAction) -> type[BaseModel]:
    """Return the result model that a successful response's data validates into."""
    return _RESULT_MODELS[action]


def build_command(command_id: str, action: WorkerAction, params: BaseModel | dict[str, Any] | None = None) -> WorkerCommandUnion:
    """
    Build a typed command, validating params against the action's params model.
    Args:
        command_id (str): Unique id for this command.
        action (WorkerAction): The action to run.
        params (BaseModel | dict | None): Params as a model or plain mapping.
    Returns:
        WorkerCommandUnion: The validated command.
    Raises:
        ProtocolError: If the params do not fit the action.
    """
    if isinstance(params, BaseModel):
        params = params.model_dump()
    payload: dict[str, Any] = {"id": command_id, "action": action.value}
    if params is not None:
        payload["params"] = params
    try:
        return command_adapter.validate_python(payload)
    except ValidationError as e:
        raise ProtocolError(f"Invalid params for action '{action.value}': {e}") from e


def parse_result(action: WorkerAction, response: WorkerResponse) -> BaseModel:
    """
    Validate a successful response's data into the action's result model.
    Raises:
        ProtocolError: If the data does not match.
    """
    model = result_model_for(action)
    try:
        return model.model_validate(response.data if response.data is not None else {})
    except ValidationError as e:
        raise ProtocolError(f"Malformed '{action.value}' response data: {e}") from e
