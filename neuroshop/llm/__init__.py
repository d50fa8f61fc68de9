"""LLM-backed collaborators: query classification and product info."""

from .classifier import QueryClassifier, detect_category, rewrite_query
from .client import get_llm_client, reset_llm_client
from .product_info import ProductInfoGenerator, fallback_product_info, parse_product_info

__all__ = [
    "QueryClassifier",
    "detect_category",
    "rewrite_query",
    "get_llm_client",
    "reset_llm_client",
    "ProductInfoGenerator",
    "fallback_product_info",
    "parse_product_info",
]
