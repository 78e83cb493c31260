"""
blinkit_agent/core/recovery.py

Brings an item back on screen by re-running the search that first surfaced it.
"""

from collections.abc import Callable

from blinkit_agent.core.known_items import KnownItem, KnownItemMemory
from blinkit_agent.exceptions import ItemNotFoundAfterRecoveryError, ItemUnknownError
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class CartRecovery:
    """
    Single-shot recovery of an item's card via KnownItemMemory.

    Args:
        memory: Shared item -> source query memory.
        search: Re-runs the search flow for a query on the live page.
        locate: Whether the item's card is present on the current page.
    """

    def __init__(
        self,
        memory: KnownItemMemory,
        search: Callable[[str], object],
        locate: Callable[[str], bool],
    ) -> None:
        self.memory = memory
        self._search = search
        self._locate = locate

    def ensure_present(self, item_id: str) -> bool:
        """
        Make sure the item's card is on screen.
        Returns:
            bool: True if a recovery search was needed, False if the card was already present.
        """
        if self._locate(item_id):
            return False
        self.recover(item_id)
        return True

    def recover(self, item_id: str) -> KnownItem:
        """
        Re-run the item's source query and re-resolve its card.
        Raises:
            ItemUnknownError: If no search ever returned this item.
            ItemNotFoundAfterRecoveryError: If the card is still absent after the re-search.
        """
        known = self.memory.get(item_id)
        if known is None:
            raise ItemUnknownError(
                f"Item {item_id} is not on the current page and was never returned by a search.",
                next_action="Search for the item first, then use an id from the results.",
            )

        logger.info("Item %s not on page, re-searching '%s'", item_id, known.source_query)
        self._search(known.source_query)

        if not self._locate(item_id):
            raise ItemNotFoundAfterRecoveryError(
                f"Item {item_id} ({known.display_name}) was not found after re-searching '{known.source_query}'.",
                next_action="The item may no longer be offered. Search again and pick another item.",
            )
        return known
