"""Data models for the price aggregation engine."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    """Product category resolved for a query."""

    ELECTRONICS = "electronics"
    GROCERIES = "groceries"
    VEGETABLES = "vegetables"
    FOOD = "food"
    GENERAL = "general"


class ProviderStatus(str, Enum):
    """Outcome of a single provider call."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class RawOffer(BaseModel):
    """An offer as returned by a provider, before validation."""

    source: Optional[str] = None
    title: Optional[str] = None
    price: Optional[float] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    currency: str = "INR"
    category_hint: Optional[str] = None


class Offer(BaseModel):
    """A validated offer. Ranking fields are filled in by the ranker."""

    source: str
    title: str
    price: float = Field(gt=0)
    url: str
    image_url: Optional[str] = None
    currency: str = "INR"
    category_hint: Optional[str] = None

    rank: Optional[int] = None
    is_cheapest: bool = False
    savings_amount: Optional[float] = None
    savings_percent: Optional[int] = None


class AggregationQuery(BaseModel):
    """A classified query. Built once per request."""

    model_config = ConfigDict(frozen=True)

    raw_query: str
    search_term: str
    category: Category = Category.GENERAL


class PriceTier(BaseModel):
    """One of the four equal-width price bands."""

    label: str
    min_price: float
    max_price: float
    range_label: str = ""
    offers: list[Offer] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.offers)


class SourceShare(BaseModel):
    """How many offers a source contributed."""

    source: str
    count: int
    percent_of_total: int


class PriceSummary(BaseModel):
    """Price statistics over a finalized offer list."""

    total: int
    lowest: float
    highest: float
    average: float
    median: float
    price_range: float
    tiers: list[PriceTier]
    source_distribution: list[SourceShare]
    savings_opportunity: float
    lowest_option: Offer
    highest_option: Offer


class ProductInfo(BaseModel):
    """Descriptive text about the searched product."""

    product_name: str
    category: str
    key_features: list[str] = Field(default_factory=list)
    description: str = ""
    recommendation: str = ""
    price_stats: dict[str, float] = Field(default_factory=dict)
    generated: bool = True  # False when built from the fallback template


class ProviderOutcome(BaseModel):
    """Diagnostic record for one provider call."""

    provider: str
    status: ProviderStatus
    offer_count: int = 0
    duration_ms: float = 0.0
    error: Optional[str] = None


class ResponseMetadata(BaseModel):
    """Request metadata returned alongside the results."""

    processing_time_ms: float
    cache_hit: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)
    providers_queried: list[str] = Field(default_factory=list)
    providers_succeeded: list[str] = Field(default_factory=list)
    provider_outcomes: list[ProviderOutcome] = Field(default_factory=list)


class AggregationResponse(BaseModel):
    """Full response for one aggregation request."""

    query: str
    search_term: str
    category: Category
    results: list[Offer]
    count: int
    product_info: Optional[ProductInfo] = None
    price_analysis: Optional[PriceSummary] = None
    platforms: list[str] = Field(default_factory=list)
    metadata: ResponseMetadata
