"""Search results scraper for amazon.in."""

from typing import Optional

from bs4 import BeautifulSoup

from neuroshop.providers.base_provider import (
    HtmlProvider,
    ProviderConfig,
    select_attr,
    select_text,
)
from neuroshop.providers.registry import ProviderRegistry
from neuroshop.state.models import RawOffer


@ProviderRegistry.register("amazon")
class AmazonProvider(HtmlProvider):
    """Parses the organic result cards of an amazon.in search page."""

    display_name = "Amazon"

    def __init__(self, config: Optional[ProviderConfig] = None):
        if config is None:
            config = ProviderConfig(
                name="amazon",
                base_url="https://www.amazon.in",
                search_path="/s?k={query}",
            )
        super().__init__(config)

    def parse_results(self, soup: BeautifulSoup) -> list[RawOffer]:
        offers = []
        for card in soup.select('[data-component-type="s-search-result"]'):
            # Whole-rupee price first; the offscreen label is the fallback
            price_text = select_text(card, ".a-price-whole") or select_text(
                card, ".a-price .a-offscreen"
            )
            offer = self.make_offer(
                title=select_text(card, "h2 a span, h2 span"),
                price_text=price_text,
                href=select_attr(card, "h2 a, a.a-link-normal", "href"),
                image=select_attr(card, "img.s-image, img", "src"),
            )
            if offer:
                offers.append(offer)
        return offers
