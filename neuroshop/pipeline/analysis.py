"""Price distribution summary over a ranked offer list."""

from collections import Counter
from typing import Optional, Sequence

from neuroshop.state.models import Offer, PriceSummary, PriceTier, SourceShare

from .ranking import round_half_up

TIER_LABELS = ("Budget", "Affordable", "Premium", "Luxury")


def build_tiers(offers: Sequence[Offer], lowest: float, highest: float) -> list[PriceTier]:
    """Split [lowest, highest] into four equal-width tiers and bucket offers.

    An offer goes into the first tier whose upper bound is >= its price, so
    a price sitting exactly on a boundary lands in the lower tier.
    """
    width = (highest - lowest) / len(TIER_LABELS)
    tiers = []
    for i, label in enumerate(TIER_LABELS):
        lower = lowest + width * i
        upper = highest if i == len(TIER_LABELS) - 1 else lowest + width * (i + 1)
        tiers.append(
            PriceTier(
                label=label,
                min_price=lower,
                max_price=upper,
                range_label=f"₹{round_half_up(lower):,} - ₹{round_half_up(upper):,}",
            )
        )

    for offer in offers:
        tier = next((t for t in tiers if offer.price <= t.max_price), tiers[-1])
        tier.offers.append(offer)
    return tiers


def source_distribution(offers: Sequence[Offer]) -> list[SourceShare]:
    """Offer count and rounded percentage per source, in first-seen order."""
    counts = Counter(o.source for o in offers)
    total = len(offers)
    return [
        SourceShare(
            source=source,
            count=count,
            percent_of_total=round_half_up(count / total * 100),
        )
        for source, count in counts.items()
    ]


def analyze_prices(offers: Sequence[Offer]) -> Optional[PriceSummary]:
    """Compute the price summary for a finalized offer list.

    The median is the element at index n // 2 of the sorted prices, i.e.
    the upper median for even n ([10, 20, 30, 40] -> 30).
    Among equal prices, lowest_option is the first offer in input order
    and highest_option the last.

    Returns:
        PriceSummary, or None when there are no offers
    """
    if not offers:
        return None

    ordered = sorted(offers, key=lambda o: o.price)
    prices = [o.price for o in ordered]
    lowest = prices[0]
    highest = prices[-1]

    return PriceSummary(
        total=len(offers),
        lowest=lowest,
        highest=highest,
        average=round_half_up(sum(prices) / len(prices)),
        median=prices[len(prices) // 2],
        price_range=highest - lowest,
        tiers=build_tiers(offers, lowest, highest),
        source_distribution=source_distribution(offers),
        savings_opportunity=highest - lowest,
        lowest_option=ordered[0],
        highest_option=ordered[-1],
    )
