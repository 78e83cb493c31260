"""
blinkit_agent/data_models/catalog.py

Records exchanged with the worker and returned by the services:
products, categories, cart snapshots, addresses and orders.
"""

from pydantic import BaseModel, Field


class Product(BaseModel):
    """A product card as extracted from the search API payload or the rendered page."""
    id: str = Field(description="Product id; DOM-scraped cards without one get an 'unknown-<n>' id")
    name: str = Field(default="Unknown Product", description="Display name")
    price: float = Field(default=0, description="Selling price in rupees")
    price_display: str = Field(default="", description="Price text as rendered")
    mrp: float = Field(default=0, description="Maximum retail price in rupees")
    unit: str = Field(default="", description="Pack size or weight label")
    in_stock: bool = Field(default=True, description="Whether the product can be added")
    image_url: str = Field(default="", description="Thumbnail URL")
    brand: str = Field(default="", description="Brand name if known")
    inventory: int | None = Field(default=None, description="Units available, when the API reports it")

    @property
    def has_stable_id(self) -> bool:
        """True when the id came from the remote system rather than a positional placeholder."""
        return bool(self.id) and not self.id.startswith("unknown-")


class ProductDetails(BaseModel):
    """Details scraped from a product page or returned by the product endpoint."""
    id: str
    name: str = "Unknown"
    price: float = 0
    mrp: float = 0
    unit: str = ""
    brand: str | None = None
    description: str | None = None
    in_stock: bool = True
    image_url: str = ""
    images: list[str] = Field(default_factory=list)


class Category(BaseModel):
    """A top-level category link."""
    id: str
    name: str
    icon_url: str | None = None


class CartSnapshot(BaseModel):
    """Cart drawer contents. Line items are not itemised by the drawer scrape, only totals."""
    items: list[dict] = Field(default_factory=list)
    subtotal: float = 0
    delivery_fee: float = 0
    total: float = 0
    item_count: int = 0
    warning: str | None = Field(default=None, description="Availability or empty-cart warning from the page")
    raw_cart_text: str | None = Field(default=None, description="Drawer text the total was parsed from")
    spending_warning: str | None = Field(default=None, description="Spend guard warning, attached by the cart service")


class Address(BaseModel):
    """A saved delivery address from the address selection modal."""
    index: int
    label: str
    address_line: str
    is_default: bool = False


class OrderSummary(BaseModel):
    """An order history card."""
    order_id: str
    text: str


class OrderTracking(BaseModel):
    """Tracking page text for one order."""
    order_id: str
    status: str
    page_text: str
