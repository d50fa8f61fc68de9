"""End-to-end aggregation: cache, classify, fan out, rank, analyze."""

import time
from datetime import datetime
from typing import Any, Mapping, Optional

import structlog

from neuroshop.cache import CacheManager, get_llm_cache, get_search_cache, make_cache_key
from neuroshop.config.settings import Settings, settings
from neuroshop.errors import InvalidQueryError
from neuroshop.llm import ProductInfoGenerator, QueryClassifier, fallback_product_info
from neuroshop.logging import log_error, log_search
from neuroshop.pipeline import analyze_prices, normalize_and_deduplicate, rank_offers
from neuroshop.providers import (
    BaseProvider,
    Deadline,
    ProviderRegistry,
    ProviderSelection,
    fan_out,
)
from neuroshop.state.models import (
    AggregationQuery,
    AggregationResponse,
    Category,
    Offer,
    PriceSummary,
    ProductInfo,
    ResponseMetadata,
)

logger = structlog.get_logger()


def validate_query(query: Any, max_length: int = 200) -> str:
    """Check a raw query and return it trimmed.

    Raises:
        InvalidQueryError: If the query is missing, not a string, blank or too long
    """
    if query is None:
        raise InvalidQueryError("Query parameter is required")
    if not isinstance(query, str):
        raise InvalidQueryError("Query must be a string")
    if not query.strip():
        raise InvalidQueryError("Query cannot be empty")
    # Length is measured before trimming
    if len(query) > max_length:
        raise InvalidQueryError(
            f"Query too long (max {max_length} characters)",
            details={"length": len(query), "max_length": max_length},
        )
    return query.strip()


class SearchOrchestrator:
    """Runs one aggregation request from raw query to cached response.

    Every stage after classification degrades instead of failing: a
    failed classifier falls back to the raw query and GENERAL, failed or
    slow providers contribute nothing, and product info falls back to a
    template. The whole pipeline runs against a single Deadline.
    """

    def __init__(
        self,
        providers: Mapping[str, BaseProvider],
        selection: ProviderSelection,
        classifier: Optional[QueryClassifier] = None,
        enricher: Optional[ProductInfoGenerator] = None,
        search_cache: Optional[CacheManager] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or settings
        self.providers = dict(providers)
        self.selection = selection
        self.classifier = classifier or QueryClassifier(cache_enabled=self.config.cache_enabled)
        self.enricher = enricher or ProductInfoGenerator(cache_enabled=self.config.cache_enabled)
        self.search_cache = search_cache

    @classmethod
    def from_settings(cls) -> "SearchOrchestrator":
        """Build an orchestrator from the provider registry and shared caches."""
        llm_cache = get_llm_cache()
        return cls(
            providers=ProviderRegistry.get_all_providers(),
            selection=ProviderRegistry.get_selection(),
            classifier=QueryClassifier(cache=llm_cache),
            enricher=ProductInfoGenerator(cache=llm_cache),
            search_cache=get_search_cache(),
        )

    def select_providers(self, category: Category) -> list[BaseProvider]:
        """Providers to query for a category, in submission order."""
        selected = []
        for name in self.selection.select(category):
            provider = self.providers.get(name)
            if provider is None:
                logger.warning("Selected provider not available", provider=name)
                continue
            selected.append(provider)
        return selected

    async def search(self, raw_query: Any) -> AggregationResponse:
        """Aggregate, rank and analyze offers for a query.

        Args:
            raw_query: Query as received from the boundary layer

        Returns:
            AggregationResponse (from cache or freshly computed)

        Raises:
            InvalidQueryError: If the query is malformed
        """
        start = time.perf_counter()
        query = validate_query(raw_query, self.config.max_query_length)
        cache_key = make_cache_key("search", query)

        cached = await self._cache_lookup(cache_key)
        if cached is not None:
            cached.metadata.cache_hit = True
            cached.metadata.processing_time_ms = (time.perf_counter() - start) * 1000
            cached.metadata.timestamp = datetime.now()
            self._log(cached)
            return cached

        deadline = Deadline(self.config.pipeline_timeout_seconds)
        try:
            response = await self._run_pipeline(query, deadline, start)
        except Exception as e:
            log_error(e.__class__.__name__, str(e), context={"query": query})
            raise

        if self._should_cache(response):
            await self.search_cache.set(
                cache_key,
                response.model_dump(mode="json"),
                ttl_seconds=self.config.search_cache_ttl_seconds,
                cache_type="search",
            )

        self._log(response)
        return response

    async def _run_pipeline(
        self, query: str, deadline: Deadline, start: float
    ) -> AggregationResponse:
        classified = await self._classify(query, deadline)

        providers = self.select_providers(classified.category)
        gateway = await fan_out(
            providers,
            classified.search_term,
            global_timeout=deadline.cap(self.config.gateway_timeout_seconds),
        )

        offers = normalize_and_deduplicate(
            gateway.offers,
            similarity_threshold=self.config.dedup_similarity_threshold,
            price_tolerance=self.config.dedup_price_tolerance,
        )
        ranked = rank_offers(offers)
        summary = analyze_prices(ranked)
        product_info = await self._enrich(classified.search_term, summary, deadline)

        return AggregationResponse(
            query=query,
            search_term=classified.search_term,
            category=classified.category,
            results=ranked,
            count=len(ranked),
            product_info=product_info,
            price_analysis=summary,
            platforms=distinct_sources(ranked),
            metadata=ResponseMetadata(
                processing_time_ms=(time.perf_counter() - start) * 1000,
                providers_queried=gateway.queried,
                providers_succeeded=gateway.succeeded,
                provider_outcomes=gateway.outcomes,
            ),
        )

    async def _classify(self, query: str, deadline: Deadline) -> AggregationQuery:
        try:
            return await self.classifier.classify(
                query, timeout=deadline.cap(self.config.classifier_timeout_seconds)
            )
        except Exception as e:
            logger.warning("Classification failed, using raw query", query=query, error=str(e))
            return AggregationQuery(raw_query=query, search_term=query, category=Category.GENERAL)

    async def _enrich(
        self, search_term: str, summary: Optional[PriceSummary], deadline: Deadline
    ) -> Optional[ProductInfo]:
        if summary is None:
            return None
        try:
            return await self.enricher.describe(
                search_term,
                summary,
                timeout=deadline.cap(self.config.enrichment_timeout_seconds),
            )
        except Exception as e:
            logger.warning("Enrichment failed", search_term=search_term, error=str(e))
            return fallback_product_info(search_term, summary)

    async def _cache_lookup(self, key: str) -> Optional[AggregationResponse]:
        if self.search_cache is None or not self.config.cache_enabled:
            return None
        cached = await self.search_cache.get(key)
        if cached is None:
            return None
        return AggregationResponse.model_validate(cached)

    def _should_cache(self, response: AggregationResponse) -> bool:
        # A request where every provider failed is not worth replaying
        return (
            self.search_cache is not None
            and self.config.cache_enabled
            and bool(response.metadata.providers_succeeded)
        )

    def caches(self) -> list[CacheManager]:
        """Distinct caches used by the orchestrator and its collaborators."""
        found: list[CacheManager] = []
        for cache in (self.search_cache, self.classifier.cache, self.enricher.cache):
            if cache is not None and all(cache is not c for c in found):
                found.append(cache)
        return found

    def cache_stats(self) -> dict[str, dict[str, Any]]:
        """Hit/miss statistics per cache."""
        return {cache.name: cache.get_stats().as_dict() for cache in self.caches()}

    async def clear_caches(self) -> dict[str, int]:
        """Clear every cache; returns the number of entries removed per cache."""
        return {cache.name: await cache.clear() for cache in self.caches()}

    @staticmethod
    def _log(response: AggregationResponse) -> None:
        log_search(
            query=response.query,
            search_term=response.search_term,
            category=response.category.value,
            results_count=response.count,
            sources=response.platforms,
            duration_ms=response.metadata.processing_time_ms,
            cached=response.metadata.cache_hit,
        )


def distinct_sources(offers: list[Offer]) -> list[str]:
    """Sources that contributed at least one offer, in rank order."""
    return list(dict.fromkeys(o.source for o in offers))
