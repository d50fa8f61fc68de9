"""Tests for the marketplace HTML providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from bs4 import BeautifulSoup

from neuroshop.errors import ProviderError
from neuroshop.providers.base_provider import parse_price
from neuroshop.providers.india import (
    AmazonProvider,
    BigBasketProvider,
    FlipkartProvider,
    JioMartProvider,
)

AMAZON_HTML = """
<html><body>
  <div data-component-type="s-search-result">
    <h2><a href="/Apple-iPhone-15-128-GB/dp/B0CHX1W1XY"><span>Apple iPhone 15 (128 GB) - Black</span></a></h2>
    <span class="a-price"><span class="a-offscreen">₹79,900.00</span><span class="a-price-whole">79,900</span></span>
    <img class="s-image" src="https://m.media-amazon.com/images/I/iphone.jpg">
  </div>
  <div data-component-type="s-search-result">
    <h2><a href="/sponsored"><span>Phone case without price</span></a></h2>
  </div>
  <div data-component-type="s-search-result">
    <h2><a href="https://www.amazon.in/dp/B0CX"><span>Apple iPhone 15 Plus</span></a></h2>
    <span class="a-price"><span class="a-offscreen">₹89,900</span></span>
  </div>
</body></html>
"""

FLIPKART_HTML = """
<html><body>
  <div class="_1AtVbE">
    <a class="s1Q9rs" href="/apple-iphone-15/p/itm6ac6485515ae4">Apple iPhone 15 (Blue, 128 GB)</a>
    <div class="_30jeq3">₹69,999</div>
    <img src="https://rukminim2.flixcart.com/iphone.jpeg">
  </div>
</body></html>
"""

BIGBASKET_HTML = """
<html><body>
  <div class="SKUDeck">
    <h3><a href="/pd/10000200/fresho-tomato-hybrid-1-kg/">Fresho Tomato - Hybrid, 1 kg</a></h3>
    <span class="discnt-price">₹45</span>
    <img src="https://www.bigbasket.com/media/tomato.jpg">
  </div>
</body></html>
"""

JIOMART_HTML = """
<html><body>
  <div class="product-tile">
    <div class="product-title"><a href="/p/groceries/tomato-local-500-g/590003515">Tomato Local 500 g</a></div>
    <span class="final-price">₹ 25.00</span>
  </div>
</body></html>
"""


def soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestParsePrice:
    """Tests for parse_price."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("₹79,999", 79999.0),
            ("Rs. 1,299.50", 1299.5),
            ("₹ 25.00", 25.0),
            ("45", 45.0),
        ],
    )
    def test_prices(self, text, expected):
        assert parse_price(text) == expected

    @pytest.mark.parametrize("text", [None, "", "Currently unavailable"])
    def test_no_price(self, text):
        assert parse_price(text) is None


class TestAmazonProvider:
    """Tests for AmazonProvider."""

    @pytest.fixture
    def provider(self):
        return AmazonProvider()

    def test_initialization(self, provider):
        assert provider.name == "amazon"
        assert "amazon.in" in provider.base_url

    def test_build_search_url(self, provider):
        assert provider.build_search_url("iPhone 15") == "https://www.amazon.in/s?k=iPhone%2015"

    def test_parse_results(self, provider):
        offers = provider.parse_results(soup(AMAZON_HTML))

        assert len(offers) == 2
        first = offers[0]
        assert first.source == "Amazon"
        assert first.title == "Apple iPhone 15 (128 GB) - Black"
        assert first.price == 79900
        assert first.url == "https://www.amazon.in/Apple-iPhone-15-128-GB/dp/B0CHX1W1XY"
        assert first.image_url.endswith("iphone.jpg")
        # offscreen price is used when the whole-rupee span is missing
        assert offers[1].price == 89900
        assert offers[1].url == "https://www.amazon.in/dp/B0CX"

    @pytest.mark.asyncio
    async def test_fetch_offers(self, provider):
        mock_response = MagicMock(spec=httpx.Response)
        mock_response.status_code = 200
        mock_response.text = AMAZON_HTML

        with patch("httpx.AsyncClient") as mock_async_client:
            mock_client_instance = AsyncMock()
            mock_client_instance.get.return_value = mock_response
            mock_async_client.return_value.__aenter__.return_value = mock_client_instance

            offers = await provider.fetch_offers("iPhone 15")

            mock_client_instance.get.assert_awaited_once_with(
                "https://www.amazon.in/s?k=iPhone%2015"
            )
            headers = mock_async_client.call_args[1]["headers"]
            assert "Mozilla" in headers["User-Agent"]

        assert len(offers) == 2

    @pytest.mark.asyncio
    async def test_fetch_offers_respects_max_results(self):
        provider = AmazonProvider()
        provider.config.max_results = 1
        mock_response = MagicMock(spec=httpx.Response)
        mock_response.text = AMAZON_HTML

        with patch("httpx.AsyncClient") as mock_async_client:
            mock_client_instance = AsyncMock()
            mock_client_instance.get.return_value = mock_response
            mock_async_client.return_value.__aenter__.return_value = mock_client_instance

            offers = await provider.fetch_offers("iPhone 15")

        assert len(offers) == 1

    @pytest.mark.asyncio
    async def test_http_error_raises_provider_error(self, provider):
        request = httpx.Request("GET", "https://www.amazon.in/s?k=x")
        error = httpx.HTTPStatusError(
            "503", request=request, response=httpx.Response(503, request=request)
        )
        mock_response = MagicMock(spec=httpx.Response)
        mock_response.raise_for_status.side_effect = error

        with patch("httpx.AsyncClient") as mock_async_client:
            mock_client_instance = AsyncMock()
            mock_client_instance.get.return_value = mock_response
            mock_async_client.return_value.__aenter__.return_value = mock_client_instance

            with pytest.raises(ProviderError) as exc_info:
                await provider.fetch_offers("x")

        assert exc_info.value.provider == "amazon"
        assert "503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connection_error_raises_provider_error(self, provider):
        with patch("httpx.AsyncClient") as mock_async_client:
            mock_client_instance = AsyncMock()
            mock_client_instance.get.side_effect = httpx.ConnectError("connection refused")
            mock_async_client.return_value.__aenter__.return_value = mock_client_instance

            with pytest.raises(ProviderError):
                await provider.fetch_offers("x")


class TestFlipkartProvider:
    """Tests for FlipkartProvider."""

    def test_parse_results(self):
        offers = FlipkartProvider().parse_results(soup(FLIPKART_HTML))

        assert len(offers) == 1
        assert offers[0].source == "Flipkart"
        assert offers[0].title == "Apple iPhone 15 (Blue, 128 GB)"
        assert offers[0].price == 69999
        assert offers[0].url.startswith("https://www.flipkart.com/apple-iphone-15/")

    def test_unknown_layout_returns_empty(self):
        assert FlipkartProvider().parse_results(soup("<html><body><p>Captcha</p></body></html>")) == []


class TestGroceryProviders:
    """Tests for BigBasket and JioMart providers."""

    def test_bigbasket_parse_results(self):
        offers = BigBasketProvider().parse_results(soup(BIGBASKET_HTML))

        assert len(offers) == 1
        assert offers[0].source == "BigBasket"
        assert offers[0].title == "Fresho Tomato - Hybrid, 1 kg"
        assert offers[0].price == 45
        assert offers[0].category_hint == "Groceries"
        assert offers[0].url == "https://www.bigbasket.com/pd/10000200/fresho-tomato-hybrid-1-kg/"

    def test_jiomart_parse_results(self):
        offers = JioMartProvider().parse_results(soup(JIOMART_HTML))

        assert len(offers) == 1
        assert offers[0].source == "JioMart"
        assert offers[0].title == "Tomato Local 500 g"
        assert offers[0].price == 25
        assert offers[0].url == "https://www.jiomart.com/p/groceries/tomato-local-500-g/590003515"
