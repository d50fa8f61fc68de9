"""Offer validation and fuzzy de-duplication across sources."""

import math
from typing import Iterable, Optional

import structlog
from rapidfuzz.distance import Levenshtein

from neuroshop.config.settings import settings
from neuroshop.state.models import Offer, RawOffer

logger = structlog.get_logger()


def validate_offer(raw: RawOffer) -> Optional[Offer]:
    """Turn a raw offer into a validated Offer.

    Returns None when the price is not a positive finite number, or when
    the title, url or source is missing/blank.
    """
    price = raw.price
    if price is None or not math.isfinite(price) or price <= 0:
        return None

    title = (raw.title or "").strip()
    url = (raw.url or "").strip()
    source = (raw.source or "").strip()
    if not title or not url or not source:
        return None

    return Offer(
        source=source,
        title=title,
        price=price,
        url=url,
        image_url=raw.image_url or None,
        currency=raw.currency,
        category_hint=raw.category_hint,
    )


def normalize_offers(raw_offers: Iterable[RawOffer]) -> list[Offer]:
    """Validate raw offers, keeping input order."""
    offers = []
    dropped = 0
    for raw in raw_offers:
        offer = validate_offer(raw)
        if offer is None:
            dropped += 1
            logger.debug(
                "Invalid offer dropped",
                source=raw.source,
                title=(raw.title or "")[:60],
                price=raw.price,
            )
            continue
        offers.append(offer)

    if dropped:
        logger.info("Offers validated", kept=len(offers), dropped=dropped)
    return offers


def title_similarity(a: str, b: str) -> float:
    """Normalized edit-distance similarity of two titles, case-insensitive.

    1 - levenshtein(a, b) / max(len(a), len(b))
    """
    return Levenshtein.normalized_similarity(a.lower(), b.lower())


def is_duplicate(
    first: Offer,
    second: Offer,
    similarity_threshold: float = 0.8,
    price_tolerance: float = 0.10,
) -> bool:
    """Check if two offers describe the same listing.

    Both conditions must hold: title similarity above the threshold, and a
    price difference smaller than ``price_tolerance`` of the higher price.
    """
    higher = max(first.price, second.price)
    if abs(first.price - second.price) >= price_tolerance * higher:
        return False
    return title_similarity(first.title, second.title) > similarity_threshold


def deduplicate_offers(
    offers: Iterable[Offer],
    similarity_threshold: Optional[float] = None,
    price_tolerance: Optional[float] = None,
) -> list[Offer]:
    """Drop near-duplicate offers; the first one seen survives.

    Each offer is compared against every survivor so far, so input order
    decides which of two duplicates is kept.

    Args:
        offers: Validated offers in provider submission order
        similarity_threshold: Override for settings.dedup_similarity_threshold
        price_tolerance: Override for settings.dedup_price_tolerance

    Returns:
        Deduplicated offers, in input order
    """
    threshold = (
        settings.dedup_similarity_threshold
        if similarity_threshold is None
        else similarity_threshold
    )
    tolerance = settings.dedup_price_tolerance if price_tolerance is None else price_tolerance

    unique: list[Offer] = []
    total = 0
    for offer in offers:
        total += 1
        duplicate_of = next(
            (kept for kept in unique if is_duplicate(kept, offer, threshold, tolerance)),
            None,
        )
        if duplicate_of is not None:
            logger.debug(
                "Duplicate filtered",
                title=offer.title[:60],
                source=offer.source,
                price=offer.price,
                kept_source=duplicate_of.source,
            )
            continue
        unique.append(offer)

    logger.info("Deduplication complete", original=total, unique=len(unique))
    return unique


def normalize_and_deduplicate(
    raw_offers: Iterable[RawOffer],
    similarity_threshold: Optional[float] = None,
    price_tolerance: Optional[float] = None,
) -> list[Offer]:
    """Validate then de-duplicate the merged provider output."""
    return deduplicate_offers(
        normalize_offers(raw_offers),
        similarity_threshold=similarity_threshold,
        price_tolerance=price_tolerance,
    )
