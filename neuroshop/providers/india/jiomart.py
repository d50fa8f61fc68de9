"""Search results scraper for jiomart.com."""

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


@ProviderRegistry.register("jiomart")
class JioMartProvider(HtmlProvider):
    """Parses a jiomart.com search page."""

    display_name = "JioMart"

    def __init__(self, config: Optional[ProviderConfig] = None):
        if config is None:
            config = ProviderConfig(
                name="jiomart",
                base_url="https://www.jiomart.com",
                search_path="/search/{query}",
                max_results=20,
            )
        super().__init__(config)

    def parse_results(self, soup: BeautifulSoup) -> list[RawOffer]:
        offers = []
        for card in soup.select(".product-tile, .jm-product, [data-product]"):
            offer = self.make_offer(
                title=select_text(card, ".product-title, h3, .jm-heading-xs"),
                price_text=select_text(card, ".jm-heading-xxs, .final-price, .price"),
                href=select_attr(card, "a", "href"),
                image=select_attr(card, "img", "src"),
                category_hint="Groceries",
            )
            if offer:
                offers.append(offer)
        return offers
