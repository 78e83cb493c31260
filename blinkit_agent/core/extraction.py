"""
blinkit_agent/core/extraction.py

Search extraction with automatic fallback.

Strategies, in order:
1. intercept: load the search page directly and parse the structured search API response
2. scrape: parse the rendered product cards on that same loaded page
3. ui_search: operate the on-screen search control, then scrape again

A visible "no results" marker ends the search at whichever step observes it.
Every extracted item with a stable id is written to KnownItemMemory under the query.
"""

from typing import Protocol

from blinkit_agent.core.known_items import KnownItemMemory
from blinkit_agent.data_models.catalog import Product
from blinkit_agent.data_models.outcomes import ExtractionStrategy, SearchOutcome, SearchResult
from blinkit_agent.data_models.protocol import InterceptResult, ScrapeResult
from blinkit_agent.exceptions import WorkflowError
from blinkit_agent.utils.logger import get_logger

logger = get_logger(name=__name__)


class SearchDriver(Protocol):
    """Page operations the selector needs. Implemented over worker commands."""

    def intercept_search(self, query: str, limit: int) -> InterceptResult:
        ...

    def scrape_results(self, limit: int) -> ScrapeResult:
        ...

    def search_via_ui(self, query: str, limit: int) -> bool:
        ...


class ExtractionStrategySelector:
    """
    Runs the extraction strategies for a query and records what it finds.
    """

    def __init__(self, driver: SearchDriver, memory: KnownItemMemory) -> None:
        self.driver = driver
        self.memory = memory

    def search(self, query: str, limit: int) -> SearchResult:
        """
        Return up to ``limit`` items for ``query``.

        Step failures reported by the worker fall through to the next strategy.
        Transport errors (timeouts, crashes) propagate.
        """
        # 1. direct navigation + structured response interception
        navigated = False
        try:
            intercepted = self.driver.intercept_search(query, limit)
            navigated = intercepted.navigated
            if intercepted.no_results:
                return self._no_results(query, ExtractionStrategy.INTERCEPT)
            if intercepted.items:
                return self._found(query, intercepted.items, limit, ExtractionStrategy.INTERCEPT)
            logger.debug("Interception yielded nothing for '%s' (navigated=%s)", query, navigated)
        except WorkflowError as e:
            logger.debug("Interception failed for '%s': %s", query, e)

        # 2. rendered-card scrape on the same loaded page
        if navigated:
            scraped = self._scrape(query, limit)
            if scraped is not None:
                if scraped.no_results:
                    return self._no_results(query, ExtractionStrategy.SCRAPE)
                if scraped.items:
                    return self._found(query, scraped.items, limit, ExtractionStrategy.SCRAPE)

        # 3. operate the search control, then scrape again
        try:
            submitted = self.driver.search_via_ui(query, limit)
        except WorkflowError as e:
            logger.debug("UI search failed for '%s': %s", query, e)
            submitted = False

        if submitted:
            scraped = self._scrape(query, limit)
            if scraped is not None:
                if scraped.no_results:
                    return self._no_results(query, ExtractionStrategy.UI_SEARCH)
                if scraped.items:
                    return self._found(query, scraped.items, limit, ExtractionStrategy.UI_SEARCH)

        logger.debug("All extraction strategies came back empty for '%s'", query)
        return SearchResult(query=query, items=[], outcome=SearchOutcome.EXTRACTION_FAILED)

    def _scrape(self, query: str, limit: int) -> ScrapeResult | None:
        try:
            return self.driver.scrape_results(limit)
        except WorkflowError as e:
            logger.debug("Card scrape failed for '%s': %s", query, e)
            return None

    def _found(
        self,
        query: str,
        items: list[Product],
        limit: int,
        strategy: ExtractionStrategy,
    ) -> SearchResult:
        items = items[:limit]
        self.memory.remember_all(items, query)
        logger.info("Found %d items for '%s' via %s", len(items), query, strategy)
        return SearchResult(query=query, items=items, outcome=SearchOutcome.FOUND, strategy=strategy)

    def _no_results(self, query: str, strategy: ExtractionStrategy) -> SearchResult:
        logger.info("No results for '%s'", query)
        return SearchResult(query=query, items=[], outcome=SearchOutcome.NO_RESULTS, strategy=strategy)
