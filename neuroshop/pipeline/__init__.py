"""Offer post-processing: validation, de-duplication, ranking, analysis."""

from .analysis import TIER_LABELS, analyze_prices, build_tiers, source_distribution
from .normalize import (
    deduplicate_offers,
    is_duplicate,
    normalize_and_deduplicate,
    normalize_offers,
    title_similarity,
    validate_offer,
)
from .ranking import rank_offers, round_half_up

__all__ = [
    "TIER_LABELS",
    "analyze_prices",
    "build_tiers",
    "source_distribution",
    "deduplicate_offers",
    "is_duplicate",
    "normalize_and_deduplicate",
    "normalize_offers",
    "title_similarity",
    "validate_offer",
    "rank_offers",
    "round_half_up",
]
