"""
blinkit_agent/data_models/outcomes.py

Immutable results produced by the orchestration components:
navigation outcomes, spend decisions and search results.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from blinkit_agent.data_models.catalog import Product


class NavigationOutcome(BaseModel):
    """Result of one navigation call toward the payment screen."""
    model_config = ConfigDict(frozen=True)

    reached: bool = Field(description="Whether the target marker was observed before the deadline")
    cleared_steps: tuple[str, ...] = Field(
        default=(),
        description="Labels of every clearing action attempted, including ones that failed, in order",
    )


class SpendDecision(BaseModel):
    """Verdict of the spend guard for one cart total."""
    model_config = ConfigDict(frozen=True)

    allowed: bool
    exceeded_hard_limit: bool = False
    warning: str | None = None


class SearchOutcome(StrEnum):
    """Why a search returned what it did."""
    FOUND = "found"
    NO_RESULTS = "no_results"
    EXTRACTION_FAILED = "extraction_failed"


class ExtractionStrategy(StrEnum):
    """Which extraction path produced the items."""
    INTERCEPT = "intercept"
    SCRAPE = "scrape"
    UI_SEARCH = "ui_search"


class SearchResult(BaseModel):
    """Items for a query together with how they were obtained."""
    model_config = ConfigDict(frozen=True)

    query: str
    items: list[Product] = Field(default_factory=list)
    outcome: SearchOutcome
    strategy: ExtractionStrategy | None = Field(
        default=None,
        description="Strategy that produced the items, or that observed the no-results marker",
    )

    @property
    def no_results(self) -> bool:
        return self.outcome == SearchOutcome.NO_RESULTS
