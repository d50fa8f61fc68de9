"""Descriptive product info with a templated fallback."""

import asyncio
import json
from typing import Optional

import structlog
from pydantic import ValidationError

from neuroshop.cache import CacheManager, make_cache_key
from neuroshop.config.settings import settings
from neuroshop.errors import EnrichmentError
from neuroshop.state.models import PriceSummary, ProductInfo

from .client import complete, strip_code_fences

logger = structlog.get_logger()

PRODUCT_INFO_SYSTEM_PROMPT = "Product expert. Return valid JSON only."

PRODUCT_INFO_PROMPT = """Product: "{search_term}"
Price range: ₹{lowest:,.0f} - ₹{highest:,.0f}

Provide JSON with:
- productName
- category
- keyFeatures (3-4 items)
- description (1-2 sentences)
- recommendation (1 sentence)

JSON only:"""


def price_stats(summary: PriceSummary) -> dict[str, float]:
    return {"min": summary.lowest, "max": summary.highest, "average": summary.average}


def fallback_product_info(search_term: str, summary: PriceSummary) -> ProductInfo:
    """Deterministic product info built only from the price summary."""
    sources = [share.source for share in summary.source_distribution]
    if len(sources) > 1:
        availability = f"{search_term} available across {len(sources)} platforms."
    else:
        availability = f"{search_term} available on {sources[0] if sources else 'one platform'}."

    return ProductInfo(
        product_name=search_term,
        category="Product",
        key_features=["Multi-platform availability", "Price comparison", "Best deals"],
        description=(
            f"{availability} Prices range from ₹{summary.lowest:,.0f} "
            f"to ₹{summary.highest:,.0f} (average ₹{summary.average:,.0f})."
        ),
        recommendation="Compare prices for best deals.",
        price_stats=price_stats(summary),
        generated=False,
    )


class ProductInfoGenerator:
    """Generates ProductInfo with the LLM, falling back to a template.

    ``describe`` never raises: timeouts, API errors and malformed model
    output all produce ``fallback_product_info``.
    """

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        timeout_seconds: Optional[float] = None,
        cache_ttl_seconds: Optional[float] = None,
        enabled: Optional[bool] = None,
        cache_enabled: Optional[bool] = None,
    ):
        self.cache = cache
        self.cache_enabled = settings.cache_enabled if cache_enabled is None else cache_enabled
        self.timeout_seconds = (
            settings.enrichment_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.cache_ttl_seconds = (
            settings.product_info_cache_ttl_seconds
            if cache_ttl_seconds is None
            else cache_ttl_seconds
        )
        self.enabled = settings.enrichment_enabled if enabled is None else enabled

    async def describe(
        self,
        search_term: str,
        summary: PriceSummary,
        timeout: Optional[float] = None,
    ) -> ProductInfo:
        """Describe a product, using the summary for price context.

        Args:
            search_term: Resolved search term
            summary: Price summary of the final offers
            timeout: Budget override in seconds

        Returns:
            Generated ProductInfo, or the templated fallback
        """
        budget = self.timeout_seconds if timeout is None else timeout
        if not self.enabled or budget <= 0:
            return fallback_product_info(search_term, summary)

        try:
            return await asyncio.wait_for(self._generate(search_term, summary), timeout=budget)
        except Exception as e:
            logger.warning(
                "Product info fallback",
                search_term=search_term,
                error_type=e.__class__.__name__,
                error=str(e)[:200],
            )
            return fallback_product_info(search_term, summary)

    async def _generate(self, search_term: str, summary: PriceSummary) -> ProductInfo:
        key = make_cache_key("info", search_term)
        if self.cache is not None and self.cache_enabled:
            cached = await self.cache.get(key)
            if cached is not None:
                # Price context belongs to this request, not the cached one
                return ProductInfo.model_validate(cached).model_copy(
                    update={"price_stats": price_stats(summary)}
                )

        content = await complete(
            PRODUCT_INFO_SYSTEM_PROMPT,
            PRODUCT_INFO_PROMPT.format(
                search_term=search_term,
                lowest=summary.lowest,
                highest=summary.highest,
            ),
            temperature=0.5,
            max_tokens=300,
        )
        info = parse_product_info(content, search_term, summary)

        if self.cache is not None and self.cache_enabled:
            await self.cache.set(
                key, info, ttl_seconds=self.cache_ttl_seconds, cache_type="info"
            )
        return info


def parse_product_info(content: str, search_term: str, summary: PriceSummary) -> ProductInfo:
    """Parse the model's JSON answer into ProductInfo.

    Raises:
        EnrichmentError: If the answer is not a JSON object of the expected shape
    """
    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        raise EnrichmentError("Product info is not valid JSON", cause=e) from e
    if not isinstance(data, dict):
        raise EnrichmentError("Product info is not a JSON object")

    features = data.get("keyFeatures") or []
    if isinstance(features, str):
        features = [features]

    try:
        return ProductInfo(
            product_name=data.get("productName") or search_term,
            category=data.get("category") or "Product",
            key_features=[str(f) for f in features],
            description=data.get("description") or "",
            recommendation=data.get("recommendation") or "",
            price_stats=price_stats(summary),
        )
    except ValidationError as e:
        raise EnrichmentError("Product info has unexpected fields", cause=e) from e
