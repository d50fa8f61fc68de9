"""Search results scraper for flipkart.com."""

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

# Flipkart rotates its class names; try each card layout in turn
CARD_SELECTORS = ["[data-id]", "._1AtVbE", "._13oc-S", ".tUxRFH"]
TITLE_SELECTOR = "a.wjcEIp, a.WKTcLC, a.IRpwTa, a.s1Q9rs, .KzDlHZ"
PRICE_SELECTOR = "div.Nx9bqj, div._30jeq3, div._1_WHN1, ._30jeq3"


@ProviderRegistry.register("flipkart")
class FlipkartProvider(HtmlProvider):
    """Parses a flipkart.com search page."""

    display_name = "Flipkart"

    def __init__(self, config: Optional[ProviderConfig] = None):
        if config is None:
            config = ProviderConfig(
                name="flipkart",
                base_url="https://www.flipkart.com",
                search_path="/search?q={query}",
            )
        super().__init__(config)

    def parse_results(self, soup: BeautifulSoup) -> list[RawOffer]:
        for selector in CARD_SELECTORS:
            offers = []
            for card in soup.select(selector):
                title = select_text(card, TITLE_SELECTOR) or select_attr(card, "a[title]", "title")
                offer = self.make_offer(
                    title=title,
                    price_text=select_text(card, PRICE_SELECTOR),
                    href=select_attr(card, "a", "href"),
                    image=select_attr(card, "img", "src"),
                )
                if offer:
                    offers.append(offer)
            # First layout that yields anything wins
            if offers:
                return offers
        return []
