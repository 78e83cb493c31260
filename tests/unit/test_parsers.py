"""
tests/unit/test_parsers.py

Unit tests for the search payload, card and price parsers.
"""

from blinkit_agent.worker.parsers import parse_price, parse_search_payload, products_from_cards


def snippet(data: dict, widget_type: str = "product_card_snippet_type_2") -> dict:
    return {"widget_type": widget_type, "data": data}


class TestParsePrice:

    def test_rupee_text(self) -> None:
        assert parse_price("₹1,249.50") == 1249.5

    def test_plain_number(self) -> None:
        assert parse_price("27") == 27.0

    def test_empty_and_none(self) -> None:
        assert parse_price("") == 0.0
        assert parse_price(None) == 0.0

    def test_unparseable(self) -> None:
        assert parse_price("1.2.3") == 0.0
        assert parse_price("free") == 0.0


class TestParseSearchPayload:
    """layout/search responses with product_card_snippet_type_2 widgets."""

    def test_cart_item_block_is_preferred(self) -> None:
        payload = {"response": {"snippets": [snippet({
            "normal_price": {"text": "₹27"},
            "atc_action": {"add_to_cart": {"cart_item": {
                "product_id": 10001,
                "product_name": "Amul Taaza Toned Milk",
                "price": 27,
                "mrp": 28,
                "unit": "500 ml",
                "inventory": 12,
                "brand": "Amul",
            }}},
        })]}}
        [product] = parse_search_payload(payload, 10)
        assert product.id == "10001"
        assert product.name == "Amul Taaza Toned Milk"
        assert product.price == 27
        assert product.mrp == 28
        assert product.price_display == "₹27"
        assert product.in_stock
        assert product.inventory == 12
        assert product.brand == "Amul"

    def test_snippet_fields_fallback(self) -> None:
        payload = {"snippets": [snippet({
            "product_id": 555,
            "name": {"text": "Brown Bread"},
            "normal_price": {"text": "₹45"},
            "variant": {"text": "400 g"},
            "inventory": 3,
        })]}
        [product] = parse_search_payload(payload, 10)
        assert product.id == "555"
        assert product.name == "Brown Bread"
        assert product.price == 45
        assert product.unit == "400 g"

    def test_out_of_stock(self) -> None:
        payload = {"snippets": [snippet({
            "product_state": "out_of_stock",
            "atc_action": {"add_to_cart": {"cart_item": {"product_id": 1, "price": 10, "inventory": 5}}},
        })]}
        assert not parse_search_payload(payload, 10)[0].in_stock

    def test_zero_inventory_is_out_of_stock(self) -> None:
        payload = {"snippets": [snippet({
            "atc_action": {"add_to_cart": {"cart_item": {"product_id": 1, "price": 10, "inventory": 0}}},
        })]}
        assert not parse_search_payload(payload, 10)[0].in_stock

    def test_other_widgets_ignored_and_limit_applied(self) -> None:
        products = [snippet({"product_id": i, "inventory": 1}) for i in range(1, 6)]
        payload = {"snippets": [snippet({}, widget_type="banner"), *products]}
        parsed = parse_search_payload(payload, 3)
        assert [p.id for p in parsed] == ["1", "2", "3"]

    def test_missing_id_gets_positional_id(self) -> None:
        payload = {"snippets": [snippet({"name": {"text": "Mystery"}})]}
        assert parse_search_payload(payload, 10)[0].id == "unknown-0"

    def test_garbage_payloads(self) -> None:
        assert parse_search_payload(None, 10) == []
        assert parse_search_payload({"response": {"snippets": "nope"}}, 10) == []
        assert parse_search_payload([], 10) == []


class TestProductsFromCards:
    """Records produced by the in-page card batch parser."""

    def test_price_and_display(self) -> None:
        cards = [{"id": "777", "name": "Eggs", "text": "Eggs\n6 pcs\n₹1,049\nADD", "unit": "6 pcs"}]
        [product] = products_from_cards(cards, 10)
        assert product.id == "777"
        assert product.price == 1049
        assert "₹1,049" in product.price_display
        assert product.unit == "6 pcs"

    def test_cards_without_dom_id(self) -> None:
        cards = [{"name": "A", "text": "A ₹10 ADD"}, {"name": "B", "text": "B ₹20 ADD"}]
        assert [p.id for p in products_from_cards(cards, 10)] == ["unknown-0", "unknown-1"]
        assert not products_from_cards(cards, 10)[0].has_stable_id

    def test_card_without_price(self) -> None:
        [product] = products_from_cards([{"id": "1", "name": "X", "text": "X ADD"}], 10)
        assert product.price == 0
        assert product.price_display == "Unknown Price"

    def test_limit(self) -> None:
        cards = [{"id": str(i), "text": "₹1"} for i in range(4)]
        assert len(products_from_cards(cards, 2)) == 2
