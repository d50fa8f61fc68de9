"""Search results scraper for bigbasket.com."""

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


@ProviderRegistry.register("bigbasket")
class BigBasketProvider(HtmlProvider):
    """Parses a bigbasket.com product search page."""

    display_name = "BigBasket"

    def __init__(self, config: Optional[ProviderConfig] = None):
        if config is None:
            config = ProviderConfig(
                name="bigbasket",
                base_url="https://www.bigbasket.com",
                search_path="/ps/?q={query}",
                max_results=20,
            )
        super().__init__(config)

    def parse_results(self, soup: BeautifulSoup) -> list[RawOffer]:
        offers = []
        for card in soup.select('.SKUDeck, .product, [data-qa="product"]'):
            offer = self.make_offer(
                title=select_text(card, ".SKUDeck___StyledH, h3, .product-name"),
                price_text=select_text(card, ".Pricing___StyledLabel, .discnt-price, .price"),
                href=select_attr(card, "a", "href"),
                image=select_attr(card, "img", "src"),
                category_hint="Groceries",
            )
            if offer:
                offers.append(offer)
        return offers
