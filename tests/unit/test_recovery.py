"""
tests/unit/test_recovery.py

Unit tests for cart recovery through KnownItemMemory.
"""

import pytest

from blinkit_agent.core.known_items import KnownItemMemory
from blinkit_agent.core.recovery import CartRecovery
from blinkit_agent.exceptions import ItemNotFoundAfterRecoveryError, ItemUnknownError


class FakePage:
    """Tracks which item cards are rendered; searching renders the query's items."""

    def __init__(self, results: dict[str, list[str]]) -> None:
        self.results = results
        self.on_screen: set[str] = set()
        self.searches: list[str] = []

    def search(self, query: str) -> None:
        self.searches.append(query)
        self.on_screen = set(self.results.get(query, []))

    def locate(self, item_id: str) -> bool:
        return item_id in self.on_screen


@pytest.fixture
def memory(make_product) -> KnownItemMemory:
    memory = KnownItemMemory()
    memory.remember(make_product(id="501", name="Bread"), "bread")
    return memory


class TestCartRecovery:
    """Single-shot re-search of an item's source query."""

    def test_present_item_needs_no_search(self, memory) -> None:
        page = FakePage({"bread": ["501"]})
        page.on_screen = {"501"}
        recovery = CartRecovery(memory, page.search, page.locate)
        assert recovery.ensure_present("501") is False
        assert page.searches == []

    def test_absent_known_item_is_recovered(self, memory) -> None:
        """The item was found under 'bread'; the page has moved on to milk."""
        page = FakePage({"bread": ["501"], "milk": ["601"]})
        page.search("milk")
        recovery = CartRecovery(memory, page.search, page.locate)
        assert recovery.ensure_present("501") is True
        assert page.searches == ["milk", "bread"]
        assert page.locate("501")

    def test_unknown_item_fails_without_searching(self, memory) -> None:
        page = FakePage({})
        recovery = CartRecovery(memory, page.search, page.locate)
        with pytest.raises(ItemUnknownError):
            recovery.ensure_present("999")
        assert page.searches == []

    def test_item_gone_after_search_fails_once(self, memory) -> None:
        """Exactly one re-search, then ItemNotFoundAfterRecoveryError."""
        page = FakePage({"bread": ["502"]})
        recovery = CartRecovery(memory, page.search, page.locate)
        with pytest.raises(ItemNotFoundAfterRecoveryError) as exc_info:
            recovery.ensure_present("501")
        assert page.searches == ["bread"]
        assert "Bread" in exc_info.value.message

    def test_recovery_is_idempotent(self, memory) -> None:
        """A second call after a successful recovery finds the card without searching again."""
        page = FakePage({"bread": ["501"]})
        recovery = CartRecovery(memory, page.search, page.locate)
        recovery.ensure_present("501")
        recovery.ensure_present("501")
        assert page.searches == ["bread"]
