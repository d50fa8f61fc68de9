"""Base provider interface for offer sources."""

import re
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import quote, urljoin

import httpx
import structlog
from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel

from neuroshop.config.settings import settings
from neuroshop.errors import ProviderError
from neuroshop.state.models import RawOffer

logger = structlog.get_logger()

# Browser-like headers shared by the HTML providers
DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_PRICE_RE = re.compile(r"\d+(?:\.\d+)?")


class ProviderConfig(BaseModel):
    """Configuration for a provider."""

    name: str
    base_url: str
    search_path: str
    timeout_seconds: float = settings.provider_timeout_seconds
    max_results: int = 10


class BaseProvider(ABC):
    """Abstract base class for offer sources."""

    # Source label stamped on every offer this provider returns
    display_name: str = ""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.name = config.name
        self.base_url = config.base_url

    @property
    def timeout_seconds(self) -> float:
        return self.config.timeout_seconds

    @abstractmethod
    async def fetch_offers(self, search_term: str) -> list[RawOffer]:
        """Fetch offers matching a search term.

        Args:
            search_term: Normalized search term

        Returns:
            List of RawOffer objects (possibly empty)

        Raises:
            ProviderError: If the source could not be queried
        """
        pass

    def build_search_url(self, search_term: str) -> str:
        """Build the search URL for a term."""
        return f"{self.base_url}{self.config.search_path.format(query=quote(search_term))}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class HtmlProvider(BaseProvider):
    """Provider that scrapes a search results page."""

    headers: dict[str, str] = DEFAULT_HEADERS

    async def fetch_offers(self, search_term: str) -> list[RawOffer]:
        search_url = self.build_search_url(search_term)
        logger.debug("Fetching offers", provider=self.name, url=search_url)

        async with httpx.AsyncClient(
            headers=self.headers,
            follow_redirects=True,
            timeout=self.config.timeout_seconds,
        ) as client:
            try:
                response = await client.get(search_url)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ProviderError(
                    self.name, f"HTTP {e.response.status_code} from {self.name}", cause=e
                ) from e
            except httpx.HTTPError as e:
                raise ProviderError(self.name, f"Request to {self.name} failed", cause=e) from e

        soup = BeautifulSoup(response.text, "lxml")
        offers = self.parse_results(soup)[: self.config.max_results]

        logger.info("Offers parsed", provider=self.name, term=search_term, offers=len(offers))
        return offers

    @abstractmethod
    def parse_results(self, soup: BeautifulSoup) -> list[RawOffer]:
        """Parse offer cards out of a results page."""
        pass

    def make_offer(
        self,
        title: Optional[str],
        price_text: Optional[str],
        href: Optional[str],
        image: Optional[str] = None,
        category_hint: Optional[str] = None,
    ) -> Optional[RawOffer]:
        """Build a RawOffer from scraped strings, or None if unusable."""
        price = parse_price(price_text)
        if not title or price is None or price <= 0:
            return None
        return RawOffer(
            source=self.display_name or self.name,
            title=title.strip(),
            price=price,
            url=self.absolute_url(href),
            image_url=image or None,
            currency="INR",
            category_hint=category_hint,
        )

    def absolute_url(self, href: Optional[str]) -> str:
        """Resolve a possibly relative link against the provider's base URL."""
        if not href:
            return ""
        if href.startswith("http"):
            return href
        return urljoin(self.base_url + "/", href.lstrip("/"))


def parse_price(text: Optional[str]) -> Optional[float]:
    """Extract a price from text like "₹1,299.00" or "Rs. 79,999".

    Returns:
        The first number found (thousands separators removed), or None
    """
    if not text:
        return None
    match = _PRICE_RE.search(text.replace(",", ""))
    if not match:
        return None
    return float(match.group(0))


def select_text(element: Tag, selector: str) -> str:
    """Text of the first element matching a selector list, or ''."""
    found = element.select_one(selector)
    return found.get_text(strip=True) if found else ""


def select_attr(element: Tag, selector: str, attr: str) -> Optional[str]:
    """Attribute of the first element matching a selector list."""
    found = element.select_one(selector)
    if found is None:
        return None
    value = found.get(attr)
    if isinstance(value, list):
        value = " ".join(value)
    return value or None
