"""Cache key construction."""


def normalize_query(query: str) -> str:
    """Lower-case a query and collapse internal whitespace.

    "  Gaming   LAPTOP " and "gaming laptop" map to the same key.
    """
    return " ".join(query.lower().split())


def make_cache_key(namespace: str, *parts: str) -> str:
    """Generate deterministic cache key.

    Format: {namespace}:{normalized part}[:{normalized part}...]

    Args:
        namespace: Kind of cached value (search, search_term, category, info)
        *parts: Free-text components, normalized before joining

    Returns:
        Cache key string
    """
    return ":".join([namespace, *(normalize_query(p) for p in parts)])
