"""
tests/unit/test_known_items.py

Unit tests for KnownItemMemory.
"""

from blinkit_agent.core.known_items import KnownItemMemory


class TestKnownItemMemory:
    """Recording items under the query that surfaced them."""

    def test_remember_and_get(self, make_product) -> None:
        memory = KnownItemMemory()
        assert memory.remember(make_product(id="501", name="Bread"), "bread")
        known = memory.get("501")
        assert known is not None
        assert known.source_query == "bread"
        assert known.display_name == "Bread"
        assert "501" in memory

    def test_unstable_ids_are_skipped(self, make_product) -> None:
        """Positional ids from scraped cards cannot be re-resolved and are not recorded."""
        memory = KnownItemMemory()
        assert not memory.remember(make_product(id="unknown-0"), "milk")
        assert len(memory) == 0

    def test_latest_query_wins(self, make_product) -> None:
        memory = KnownItemMemory()
        memory.remember(make_product(id="501"), "bread")
        memory.remember(make_product(id="501"), "brown bread")
        assert memory.get("501").source_query == "brown bread"

    def test_remember_all_counts_recorded(self, make_product) -> None:
        memory = KnownItemMemory()
        products = [make_product(id="1"), make_product(id="unknown-1"), make_product(id="2")]
        assert memory.remember_all(products, "milk") == 2
        assert len(memory) == 2

    def test_get_missing_returns_none(self) -> None:
        assert KnownItemMemory().get("nope") is None
