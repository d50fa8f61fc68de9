"""Query classification: search term rewriting and category detection."""

import asyncio
import re
from typing import Any, Awaitable, Callable, Optional

import structlog

from neuroshop.cache import CacheManager, make_cache_key
from neuroshop.config.settings import settings
from neuroshop.errors import ClassifierError
from neuroshop.state.models import AggregationQuery, Category

from .client import complete

logger = structlog.get_logger()

# Checked in order; the first category with a matching keyword wins
CATEGORY_KEYWORDS: dict[Category, list[str]] = {
    Category.VEGETABLES: [
        "tomato", "potato", "onion", "carrot", "cabbage", "spinach",
        "broccoli", "vegetable", "veggie",
    ],
    Category.GROCERIES: [
        "rice", "wheat", "flour", "atta", "oil", "milk", "bread", "sugar",
        "salt", "grocery", "groceries",
    ],
    Category.FOOD: [
        "food", "snack", "biscuit", "chocolate", "juice", "tea", "coffee",
    ],
    Category.ELECTRONICS: [
        "phone", "smartphone", "mobile", "laptop", "tv", "television",
        "camera", "headphone", "earbuds", "speaker", "tablet", "watch",
        "iphone", "samsung", "sony", "lg", "dell", "hp", "lenovo",
    ],
}

REWRITE_SYSTEM_PROMPT = "Extract clean, searchable product terms. Be concise."

REWRITE_PROMPT = """Extract clean product search term from: "{query}"
Return ONLY the product name/model:

Examples:
"best apple phone under 80k" → "iPhone 15"
"gaming laptop with rtx 4060" → "gaming laptop RTX 4060"
"sony headphones wireless" → "Sony wireless headphones"

Search term:"""

_KEYWORD_PATTERNS = {
    category: re.compile(r"\b(?:" + "|".join(map(re.escape, words)) + ")")
    for category, words in CATEGORY_KEYWORDS.items()
}


def detect_category(query: str) -> Category:
    """Detect the product category from keywords.

    Keywords match at the start of a word, so "tomatoes" is a vegetable
    but "steam" is not a tea. Queries with no keyword are GENERAL.
    """
    text = query.lower()
    for category, pattern in _KEYWORD_PATTERNS.items():
        if pattern.search(text):
            return category
    return Category.GENERAL


async def detect_category_async(query: str) -> Category:
    return detect_category(query)


async def rewrite_query(query: str) -> str:
    """Ask the LLM for a clean search term.

    Returns the raw query when the model answers with nothing usable.
    """
    term = await complete(
        REWRITE_SYSTEM_PROMPT,
        REWRITE_PROMPT.format(query=query),
        temperature=0.2,
        max_tokens=30,
    )
    term = term.strip().strip('"\'').strip()
    return term or query


class QueryClassifier:
    """Resolves a raw query into an AggregationQuery.

    Search term rewriting and category detection run concurrently, each
    under the classifier time budget, and fall back independently: a
    failed rewrite keeps the raw query, a failed detection yields GENERAL.
    Successful outputs are memoized in the supplied cache.
    """

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        rewriter: Callable[[str], Awaitable[str]] = rewrite_query,
        categorizer: Callable[[str], Awaitable[Any]] = detect_category_async,
        timeout_seconds: Optional[float] = None,
        cache_ttl_seconds: Optional[float] = None,
        cache_enabled: Optional[bool] = None,
    ):
        self.cache = cache
        self.cache_enabled = settings.cache_enabled if cache_enabled is None else cache_enabled
        self._rewriter = rewriter
        self._categorizer = categorizer
        self.timeout_seconds = (
            settings.classifier_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.cache_ttl_seconds = (
            settings.llm_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )

    async def classify(self, raw_query: str, timeout: Optional[float] = None) -> AggregationQuery:
        """Classify a query, never raising for collaborator failures.

        Args:
            raw_query: Validated user query
            timeout: Budget override in seconds (capped by the caller's deadline)

        Returns:
            AggregationQuery with resolved search term and category
        """
        budget = self.timeout_seconds if timeout is None else timeout

        term_result, category_result = await asyncio.gather(
            self._resolve("search_term", raw_query, self._rewriter, budget),
            self._resolve("category", raw_query, self._categorizer, budget),
            return_exceptions=True,
        )

        search_term = raw_query
        if isinstance(term_result, BaseException):
            self._log_fallback("search_term", raw_query, term_result)
        elif isinstance(term_result, str) and term_result.strip():
            search_term = term_result.strip()

        category = Category.GENERAL
        if isinstance(category_result, BaseException):
            self._log_fallback("category", raw_query, category_result)
        else:
            try:
                category = Category(category_result)
            except ValueError:
                self._log_fallback(
                    "category",
                    raw_query,
                    ClassifierError(f"Unknown category {category_result!r}"),
                )

        logger.info(
            "Query classified",
            query=raw_query,
            search_term=search_term,
            product_category=category.value,
        )
        return AggregationQuery(raw_query=raw_query, search_term=search_term, category=category)

    async def _resolve(
        self,
        kind: str,
        query: str,
        producer: Callable[[str], Awaitable[Any]],
        budget: float,
    ) -> Any:
        key = make_cache_key(kind, query)
        if self.cache is not None and self.cache_enabled:
            cached = await self.cache.get(key)
            if cached is not None:
                return cached

        if budget <= 0:
            raise ClassifierError(f"No time left to resolve {kind}")

        value = await asyncio.wait_for(producer(query), timeout=budget)

        if self.cache is not None and self.cache_enabled and value:
            await self.cache.set(key, value, ttl_seconds=self.cache_ttl_seconds, cache_type=kind)
        return value

    @staticmethod
    def _log_fallback(kind: str, query: str, error: BaseException) -> None:
        logger.warning(
            "Classifier fallback",
            kind=kind,
            query=query,
            error_type=error.__class__.__name__,
            error=str(error)[:200],
        )
