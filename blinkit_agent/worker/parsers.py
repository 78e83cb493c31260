"""
blinkit_agent/worker/parsers.py

Pure parsers for search data: the layout/search API payload, rendered card
records returned by the in-page batch parser, and price text.
"""

import re
from typing import Any

from blinkit_agent.data_models.catalog import Product

PRODUCT_SNIPPET_WIDGET = "product_card_snippet_type_2"

_NON_PRICE_CHARS = re.compile(r"[^0-9.]")

# Runs inside the page. Collects up to `limit` cards that show both an ADD control
# and a rupee price, in a single round trip.
CARD_BATCH_PARSE_JS = r"""
(limit) => {
  const results = [];
  for (const card of document.querySelectorAll("div[role='button']")) {
    const text = card.innerText || card.textContent || "";
    if (!text.includes("ADD") || !text.includes("₹")) continue;
    if (results.length >= limit) break;

    const nameEl = card.querySelector("div[class*='line-clamp-2']") || card.querySelector("div[class*='line-clamp']");
    const firstLine = text.split("\n").map((l) => l.trim()).find((l) => l) || "";
    const weightEl = card.querySelector("div[class*='plp-product__quantity'], div[class*='Weight']");
    const img = card.querySelector("img");

    results.push({
      id: card.id || "",
      name: (nameEl && nameEl.textContent.trim()) || firstLine,
      text: text,
      unit: (weightEl && weightEl.textContent.trim()) || "",
      image_url: (img && img.getAttribute("src")) || "",
    });
  }
  return results;
}
"""

_CARD_PRICE = re.compile(r"₹\s*([\d,]+(?:\.\d+)?)")


def parse_price(text: str | None) -> float:
    """Strip everything but digits and dots; 0 when nothing numeric is left."""
    if not text:
        return 0.0
    try:
        return float(_NON_PRICE_CHARS.sub("", text))
    except ValueError:
        return 0.0


def _text(node: Any) -> str | None:
    """Read ``{"text": ...}`` wrappers used throughout the layout payload."""
    if isinstance(node, dict):
        value = node.get("text")
        return value if isinstance(value, str) else None
    return None


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def parse_search_payload(payload: Any, limit: int) -> list[Product]:
    """
    Parse products from a layout/search API response.

    Product snippets have widget_type ``product_card_snippet_type_2``. The
    ``atc_action.add_to_cart.cart_item`` block carries typed fields and is preferred;
    otherwise fields are read from the snippet data itself.
    """
    snippets = _dig(payload, "response", "snippets")
    if snippets is None:
        snippets = _dig(payload, "snippets")
    if not isinstance(snippets, list):
        return []

    products: list[Product] = []
    for snippet in snippets:
        if len(products) >= limit:
            break
        if not isinstance(snippet, dict) or snippet.get("widget_type") != PRODUCT_SNIPPET_WIDGET:
            continue
        data = snippet.get("data")
        if not isinstance(data, dict):
            continue

        index = len(products)
        out_of_stock = data.get("product_state") == "out_of_stock"
        cart_item = _dig(data, "atc_action", "add_to_cart", "cart_item")

        if isinstance(cart_item, dict) and cart_item.get("product_id") is not None:
            price = float(cart_item.get("price") or 0)
            inventory = int(cart_item.get("inventory") or 0)
            products.append(Product(
                id=str(cart_item["product_id"]),
                name=cart_item.get("product_name") or cart_item.get("display_name") or "Unknown Product",
                price=price,
                price_display=_text(data.get("normal_price")) or f"₹{price:g}",
                mrp=float(cart_item.get("mrp") or price),
                unit=cart_item.get("unit") or "",
                in_stock=inventory > 0 and not out_of_stock,
                image_url=cart_item.get("image_url") or _dig(data, "image", "url") or "",
                brand=cart_item.get("brand") or _text(data.get("brand_name")) or "",
                inventory=inventory,
            ))
            continue

        product_id = data.get("product_id") or _dig(data, "identity", "id") or _dig(data, "meta", "product_id")
        price_text = _text(data.get("normal_price")) or ""
        price = parse_price(price_text)
        inventory = int(data.get("inventory") or 0)
        products.append(Product(
            id=str(product_id) if product_id is not None else f"unknown-{index}",
            name=_text(data.get("name")) or _text(data.get("display_name")) or "Unknown Product",
            price=price,
            price_display=price_text or f"₹{price:g}",
            mrp=parse_price(_text(data.get("mrp")) or price_text) or price,
            unit=_text(data.get("variant")) or "",
            in_stock=inventory > 0 and not out_of_stock,
            image_url=_dig(data, "image", "url") or "",
            brand=_text(data.get("brand_name")) or "",
            inventory=inventory,
        ))

    return products


def products_from_cards(cards: list[dict[str, Any]], limit: int) -> list[Product]:
    """
    Turn raw card records from CARD_BATCH_PARSE_JS into products.

    The price is the first rupee amount in the card text. Cards without a DOM id
    get a positional ``unknown-<n>`` id, which is never remembered for recovery.
    """
    products: list[Product] = []
    for card in cards[:limit]:
        index = len(products)
        text = card.get("text") or ""
        price = 0.0
        price_display = "Unknown Price"
        match = _CARD_PRICE.search(text)
        if match:
            price = parse_price(match.group(1).replace(",", ""))
            start = max(0, match.start() - 5)
            price_display = text[start:match.end() + 5].strip()

        products.append(Product(
            id=card.get("id") or f"unknown-{index}",
            name=(card.get("name") or "").strip() or "Unknown Product",
            price=price,
            price_display=price_display,
            mrp=price,
            unit=(card.get("unit") or "").strip(),
            in_stock=True,
            image_url=card.get("image_url") or "",
        ))
    return products
