"""State model exports."""

from neuroshop.state.models import (
    AggregationQuery,
    AggregationResponse,
    Category,
    Offer,
    PriceSummary,
    PriceTier,
    ProductInfo,
    ProviderOutcome,
    ProviderStatus,
    RawOffer,
    ResponseMetadata,
    SourceShare,
)

__all__ = [
    "AggregationQuery",
    "AggregationResponse",
    "Category",
    "Offer",
    "PriceSummary",
    "PriceTier",
    "ProductInfo",
    "ProviderOutcome",
    "ProviderStatus",
    "RawOffer",
    "ResponseMetadata",
    "SourceShare",
]
