"""Price ranking and savings annotation."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from neuroshop.state.models import Offer


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def rank_offers(offers: Iterable[Offer]) -> list[Offer]:
    """Sort offers by price and annotate rank, cheapest flag and savings.

    The sort is stable, so equal prices keep their input order. For every
    offer after the first, ``savings_amount`` is how much more it costs than
    the cheapest one, and ``savings_percent`` expresses that amount as a
    share of the offer's own price. Single-offer lists get no savings.

    Returns:
        New Offer copies; the inputs are not modified
    """
    ordered = sorted(offers, key=lambda o: o.price)
    if not ordered:
        return []

    lowest = ordered[0].price
    with_savings = len(ordered) > 1

    ranked = []
    for index, offer in enumerate(ordered):
        update: dict = {"rank": index + 1, "is_cheapest": index == 0}
        if with_savings and index > 0:
            savings = offer.price - lowest
            update["savings_amount"] = savings
            update["savings_percent"] = round_half_up(100 * savings / offer.price)
        ranked.append(offer.model_copy(update=update))
    return ranked
