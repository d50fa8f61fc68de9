"""Pytest configuration and shared fixtures."""

import asyncio
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from neuroshop.state.models import RawOffer
from tests.factories import make_raw_offer


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Drop process-wide caches and the LLM client between tests."""
    from neuroshop.cache import reset_caches
    from neuroshop.llm import reset_llm_client

    reset_caches()
    reset_llm_client()
    yield
    reset_caches()
    reset_llm_client()


@pytest.fixture
def raw_offer() -> Callable[..., RawOffer]:
    """Factory for RawOffer objects."""
    return make_raw_offer


@pytest.fixture
def cache_manager():
    """Provide a fresh cache manager for each test."""
    from neuroshop.cache import CacheManager

    return CacheManager(name="test")


@pytest.fixture
def provider_factory():
    """Build mock providers.

    Usage:
        provider = provider_factory("amazon", offers=[...], delay=0.1)
        failing = provider_factory("flipkart", error=RuntimeError("blocked"))
        hung = provider_factory("jiomart", hang=True)
    """

    def _create(
        name: str,
        offers: Optional[list] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
        hang: bool = False,
        timeout_seconds: float = 5.0,
    ) -> MagicMock:
        async def fetch(search_term: str):
            if hang:
                await asyncio.Event().wait()
            if delay:
                await asyncio.sleep(delay)
            if error is not None:
                raise error
            return list(offers or [])

        provider = MagicMock()
        provider.name = name
        provider.timeout_seconds = timeout_seconds
        provider.fetch_offers = AsyncMock(side_effect=fetch)
        return provider

    return _create


@pytest.fixture
def marketplace_providers(provider_factory):
    """The four configured providers, each returning a distinct offer."""
    return {
        "amazon": provider_factory(
            "amazon",
            offers=[
                make_raw_offer("Apple iPhone 15 128GB", 79999, source="Amazon"),
                make_raw_offer("Organic Tomato 1kg", 60, source="Amazon"),
            ],
        ),
        "flipkart": provider_factory(
            "flipkart",
            offers=[
                make_raw_offer("Apple iPhone15 128GB", 80999, source="Flipkart"),
                make_raw_offer("Samsung Galaxy S24", 74999, source="Flipkart"),
            ],
        ),
        "bigbasket": provider_factory(
            "bigbasket",
            offers=[make_raw_offer("Fresho Tomato Hybrid 1kg", 45, source="BigBasket")],
        ),
        "jiomart": provider_factory(
            "jiomart",
            offers=[make_raw_offer("Tomato Local 500g", 25, source="JioMart")],
        ),
    }


@pytest.fixture
def identity_rewriter():
    """Search term rewriter that returns the query unchanged."""

    async def _rewrite(query: str) -> str:
        return query

    return _rewrite


@pytest.fixture
def orchestrator_factory(marketplace_providers, identity_rewriter):
    """Build an orchestrator wired to mock providers and no LLM."""
    from neuroshop.cache import CacheManager
    from neuroshop.llm import ProductInfoGenerator, QueryClassifier
    from neuroshop.orchestrator import SearchOrchestrator
    from neuroshop.providers import ProviderRegistry

    def _create(providers: Optional[dict] = None, config=None, rewriter=None):
        from neuroshop.config.settings import settings

        llm_cache = CacheManager(name="llm")
        cache_enabled = (config or settings).cache_enabled
        return SearchOrchestrator(
            providers=providers if providers is not None else marketplace_providers,
            selection=ProviderRegistry.get_selection(),
            classifier=QueryClassifier(
                cache=llm_cache,
                rewriter=rewriter or identity_rewriter,
                cache_enabled=cache_enabled,
            ),
            enricher=ProductInfoGenerator(
                cache=llm_cache, enabled=False, cache_enabled=cache_enabled
            ),
            search_cache=CacheManager(name="search"),
            config=config,
        )

    return _create
